"""
Donor index keys.

A key has five dimensions, in descending order of importance:
labour, health, children, region, age. Coarser keys are prefixes of the
full key, formed by dropping dimensions from the right.

For couples the health and age components are (male, female) pairs. They
are not sorted: a donor couple with the genders' values swapped sits under
a different key, and cross-gender equivalence is left to refinement.
"""

from enum import Enum
from typing import Hashable, NamedTuple, Optional, Tuple

from donorplex.core.entities import BenefitUnitProfile


class KeyTuple(NamedTuple):
    """Full five-dimensional donor key."""

    labour: Tuple
    health: Hashable
    children: int
    region: str
    age: Hashable

    def prefix(self, n_dims: int) -> Tuple:
        """Leading ``n_dims`` components, used to query coarser index levels."""
        if not 1 <= n_dims <= len(self):
            raise ValueError(f"Key prefix length must be in [1, {len(self)}], got {n_dims}")
        return tuple(self[:n_dims])


class RelaxationLevel(Enum):
    """Key specificity levels, tried from EXACT down to LABOUR_ONLY."""

    EXACT = 1
    NO_AGE = 2
    NO_REGION = 3
    NO_CHILDREN = 4
    LABOUR_ONLY = 5

    @property
    def n_dims(self) -> int:
        """Number of key dimensions used at this level."""
        return 6 - self.value

    @property
    def check_age(self) -> bool:
        return self.value >= 2

    @property
    def check_children(self) -> bool:
        return self.value >= 4

    @property
    def check_health(self) -> bool:
        return self.value >= 5

    @classmethod
    def ordered(cls) -> tuple:
        return tuple(sorted(cls, key=lambda level: level.value))


def build_key(
    profile: BenefitUnitProfile,
    age_top_code: int = 80,
    labour_key: Optional[Tuple] = None,
) -> KeyTuple:
    """Derive the index key of a donor record or query profile.

    Args:
        profile: Donor record or query profile
        age_top_code: Ages above this are recorded at the top code
        labour_key: Overrides the profile's own labour bins

    Returns:
        KeyTuple for the profile
    """
    if labour_key is None:
        labour_key = profile.labour_key

    if profile.is_couple:
        health = (profile.male.health, profile.female.health)
        age = (
            min(age_top_code, profile.male.age),
            min(age_top_code, profile.female.age),
        )
    else:
        single = profile.single
        health = single.health
        age = min(age_top_code, single.age)

    return KeyTuple(
        labour=tuple(labour_key),
        health=health,
        children=profile.n_children,
        region=profile.region,
        age=age,
    )


def labour_label(labour_key: Tuple) -> str:
    """Readable form of a labour key, e.g. ``(TEN, None)``."""
    return "(" + ", ".join(labour.name if labour is not None else "None" for labour in labour_key) + ")"
