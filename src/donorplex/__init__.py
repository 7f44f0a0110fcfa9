"""
donorplex: Donor matching and disposable income imputation for microsimulation.

For each candidate labour supply configuration of a simulated benefit unit:
- Find the most similar donor benefit unit, relaxing key dimensions
  (age, region, children, health) until one is found
- Break ties between equally similar donors at random
- Convert simulated gross income to disposable income using the donor's
  tax-benefit outcome

Example:
    >>> from donorplex import DonorIndex, DonorImputer, MedianIncomeSchedule
    >>> index = DonorIndex.from_frame(donor_data)
    >>> imputer = DonorImputer(index, medians)
    >>> incomes = imputer.impute_household(household, gross, year=2020, rng=rng)
"""

from donorplex.config import MatchingConfig, default_children_discrepancy
from donorplex.core import (
    Gender,
    Occupancy,
    HealthStatus,
    Labour,
    AdultProfile,
    QueryProfile,
    DonorRecord,
    SimulatedAdult,
    SimulatedHousehold,
)
from donorplex.matching import (
    KeyTuple,
    RelaxationLevel,
    build_key,
    DonorIndex,
    DonorMatcher,
    Matched,
    Unmatched,
    MatchOutcome,
    select_donor,
    refine_candidates,
)
from donorplex.imputation import (
    ImputationMethod,
    ImputedIncome,
    MedianIncomeSchedule,
    convert_gross_to_disposable,
)
from donorplex.household import (
    DonorImputer,
    NoDonorFoundError,
    labour_configurations,
    gross_income_from_wages,
)

__version__ = "0.1.0"

__all__ = [
    # Config
    "MatchingConfig",
    "default_children_discrepancy",
    # Core
    "Gender",
    "Occupancy",
    "HealthStatus",
    "Labour",
    "AdultProfile",
    "QueryProfile",
    "DonorRecord",
    "SimulatedAdult",
    "SimulatedHousehold",
    # Matching
    "KeyTuple",
    "RelaxationLevel",
    "build_key",
    "DonorIndex",
    "DonorMatcher",
    "Matched",
    "Unmatched",
    "MatchOutcome",
    "select_donor",
    "refine_candidates",
    # Imputation
    "ImputationMethod",
    "ImputedIncome",
    "MedianIncomeSchedule",
    "convert_gross_to_disposable",
    # Household
    "DonorImputer",
    "NoDonorFoundError",
    "labour_configurations",
    "gross_income_from_wages",
]
