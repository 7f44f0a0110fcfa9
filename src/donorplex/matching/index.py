"""
Read-only index of donor records by key prefix.

Every donor is registered under all five prefixes of its key, so that a
lookup at any relaxation level is a single dictionary access.

Example:
    >>> index = DonorIndex.from_records(donors, age_top_code=80)
    >>> candidates = index.lookup(key.prefix(3))
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Tuple

import numpy as np
import pandas as pd

from donorplex.core.categories import Gender, HealthStatus, Labour
from donorplex.core.entities import AdultProfile, DonorRecord
from donorplex.matching.keys import build_key, labour_label

logger = logging.getLogger(__name__)

# Columns read by DonorIndex.from_frame, one row per donor benefit unit.
# Person columns are prefixed with "male_" or "female_" and left missing
# (NaN) when the adult is absent.
DONOR_FRAME_COLUMNS = [
    "donor_id",
    "occupancy",
    "region",
    "n_children",
    "gross_income",
    "disposable_income",
]


class DonorIndex:
    """Immutable mapping from key prefixes to donor candidate sets."""

    def __init__(self, entries: Dict[Tuple, Tuple[DonorRecord, ...]], n_donors: int):
        self._entries = MappingProxyType(dict(entries))
        self.n_donors = n_donors

    @classmethod
    def from_records(
        cls,
        records: Iterable[DonorRecord],
        age_top_code: int = 80,
    ) -> "DonorIndex":
        """Build the index, preserving the donors' original order."""
        buckets: Dict[Tuple, List[DonorRecord]] = {}
        n_donors = 0
        for record in records:
            key = build_key(record, age_top_code)
            for n_dims in range(1, len(key) + 1):
                buckets.setdefault(key.prefix(n_dims), []).append(record)
            n_donors += 1

        logger.debug("Indexed %d donors under %d key prefixes", n_donors, len(buckets))
        return cls(
            {prefix: tuple(donors) for prefix, donors in buckets.items()},
            n_donors,
        )

    @classmethod
    def from_frame(cls, data: pd.DataFrame, age_top_code: int = 80) -> "DonorIndex":
        """Build the index from a donor DataFrame.

        Required columns are ``DONOR_FRAME_COLUMNS`` plus, for each adult
        present, ``{male,female}_{age,hours_worked,hourly_wage,long_term_sick}``.
        Missing hours, wages and sickness flags of a present adult count as
        zero hours, zero wage and not sick.
        An optional ``disposable_to_gross_ratio`` column overrides the ratio
        derived from incomes.
        """
        missing = [c for c in DONOR_FRAME_COLUMNS if c not in data.columns]
        if missing:
            raise ValueError(f"Missing columns in donor data: {missing}")

        return cls.from_records(
            (_record_from_row(row) for row in data.to_dict(orient="records")),
            age_top_code=age_top_code,
        )

    def lookup(self, key: Tuple) -> Tuple[DonorRecord, ...]:
        """Donors registered under ``key`` (a full key or one of its prefixes)."""
        return self._entries.get(tuple(key), ())

    def __contains__(self, key: Tuple) -> bool:
        return tuple(key) in self._entries

    def __len__(self) -> int:
        return self.n_donors

    def missing_labour_keys(self) -> List[Tuple]:
        """Labour keys with no donors at all.

        Checks every single-adult key (labour, None) and every couple key
        (male labour, female labour).
        """
        single_bins = dict.fromkeys(
            Labour.choices_for(Gender.MALE) + Labour.choices_for(Gender.FEMALE)
        )
        keys = [(labour, None) for labour in single_bins]
        keys += [
            (male_labour, female_labour)
            for male_labour in Labour.choices_for(Gender.MALE)
            for female_labour in Labour.choices_for(Gender.FEMALE)
        ]
        return [key for key in keys if (key,) not in self]

    def validate_coverage(self) -> "DonorIndex":
        """Raise if any labour key has no donors."""
        missing = self.missing_labour_keys()
        if missing:
            labels = ", ".join(labour_label(key) for key in missing)
            raise ValueError(f"No donors match labour keys: {labels}")
        return self


def _record_from_row(row: dict) -> DonorRecord:
    adults = {}
    for gender in Gender:
        prefix = f"{gender.value}_"
        age = row.get(prefix + "age")
        if age is None or _is_missing(age):
            continue
        adults[gender] = AdultProfile(
            gender=gender,
            health=HealthStatus.from_long_term_sick(_flag(row.get(prefix + "long_term_sick"))),
            age=int(age),
            hourly_wage=_number(row.get(prefix + "hourly_wage")),
            labour=Labour.from_hours(_number(row.get(prefix + "hours_worked")), gender),
        )

    ratio = row.get("disposable_to_gross_ratio")
    return DonorRecord(
        donor_id=str(row["donor_id"]),
        occupancy=row["occupancy"],
        region=str(row["region"]),
        n_children=int(row["n_children"]),
        male=adults.get(Gender.MALE),
        female=adults.get(Gender.FEMALE),
        gross_income=float(row["gross_income"]),
        disposable_income=float(row["disposable_income"]),
        disposable_to_gross_ratio=None if ratio is None or _is_missing(ratio) else float(ratio),
    )


def _is_missing(value) -> bool:
    return isinstance(value, float) and np.isnan(value)


def _flag(value) -> bool:
    if value is None or _is_missing(value):
        return False
    return bool(value)


def _number(value) -> float:
    if value is None or _is_missing(value):
        return 0.0
    return float(value)
