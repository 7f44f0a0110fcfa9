"""Categorical values used as donor matching keys.

All categories are plain enums so they hash and compare by value and can be
used directly as components of an index key.
"""

import math
from enum import Enum
from typing import Optional


class Gender(Enum):
    """Gender of an adult benefit unit member."""

    MALE = "male"
    FEMALE = "female"

    @property
    def opposite(self) -> "Gender":
        return Gender.FEMALE if self == Gender.MALE else Gender.MALE


class Occupancy(Enum):
    """Adult composition of a benefit unit."""

    COUPLE = "couple"
    SINGLE_MALE = "single_male"
    SINGLE_FEMALE = "single_female"

    @property
    def is_couple(self) -> bool:
        return self == Occupancy.COUPLE

    @property
    def genders(self) -> tuple:
        """Genders of the adults present, male first."""
        return {
            Occupancy.COUPLE: (Gender.MALE, Gender.FEMALE),
            Occupancy.SINGLE_MALE: (Gender.MALE,),
            Occupancy.SINGLE_FEMALE: (Gender.FEMALE,),
        }[self]

    @classmethod
    def for_single(cls, gender: Gender) -> "Occupancy":
        return cls.SINGLE_MALE if gender == Gender.MALE else cls.SINGLE_FEMALE


class HealthStatus(Enum):
    """Binary health category derived from long-term sickness/disability."""

    GOOD = "good"
    POOR = "poor"

    @classmethod
    def from_long_term_sick(cls, is_long_term_sick: bool) -> "HealthStatus":
        """Poor if long-term sick or disabled, Good otherwise."""
        if is_long_term_sick not in (True, False):
            raise ValueError(
                f"Long-term sick flag must be boolean, got {is_long_term_sick!r}"
            )
        return cls.POOR if is_long_term_sick else cls.GOOD


class Labour(Enum):
    """Discrete weekly hours of work.

    The enum value is the representative number of weekly hours used when
    a labour bin is turned back into hours (e.g. for gross earnings).
    """

    ZERO = 0
    TEN = 20
    TWENTY = 30
    THIRTY = 36
    FORTY = 40

    @property
    def hours(self) -> int:
        return self.value

    @classmethod
    def from_hours(cls, hours_worked: float, gender: Optional[Gender] = None) -> "Labour":
        """Bucket observed weekly hours into a labour bin.

        Both genders currently share the same cut points; ``gender`` is kept
        in the signature because the enumeration is gender-specific in
        principle.
        """
        if hours_worked is None or math.isnan(hours_worked):
            raise ValueError(f"Hours worked must be a number, got {hours_worked!r}")
        if hours_worked <= 5:
            return cls.ZERO
        elif hours_worked <= 15:
            return cls.TEN
        elif hours_worked <= 25:
            return cls.TWENTY
        elif hours_worked <= 35:
            return cls.THIRTY
        return cls.FORTY

    @classmethod
    def choices_for(cls, gender: Gender) -> tuple:
        """Labour bins a person of ``gender`` may choose between."""
        if not isinstance(gender, Gender):
            raise ValueError(f"Unknown gender: {gender!r}")
        return (cls.ZERO, cls.TEN, cls.TWENTY, cls.THIRTY, cls.FORTY)


def coerce_enum(enum_cls, value):
    """Return ``value`` as a member of ``enum_cls``.

    Accepts members, member values and (case-insensitive) member names.
    Anything else raises ``ValueError`` immediately.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        pass
    if isinstance(value, str):
        key = value.strip().upper()
        if key in enum_cls.__members__:
            return enum_cls[key]
    raise ValueError(f"Invalid {enum_cls.__name__}: {value!r}")
