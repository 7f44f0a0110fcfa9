"""
Core data models for donorplex.

- Categorical matching values (gender, occupancy, health, labour)
- Simulated households and their per-labour query profiles
- Donor records with known tax-benefit outcomes
"""

from donorplex.core.categories import (
    Gender,
    Occupancy,
    HealthStatus,
    Labour,
    coerce_enum,
)
from donorplex.core.entities import (
    AdultProfile,
    BenefitUnitProfile,
    QueryProfile,
    DonorRecord,
    SimulatedAdult,
    SimulatedHousehold,
)

__all__ = [
    # Categories
    "Gender",
    "Occupancy",
    "HealthStatus",
    "Labour",
    "coerce_enum",
    # Entities
    "AdultProfile",
    "BenefitUnitProfile",
    "QueryProfile",
    "DonorRecord",
    "SimulatedAdult",
    "SimulatedHousehold",
]
