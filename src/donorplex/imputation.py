"""
Gross-to-disposable income conversion from a matched donor.

Two methods:
- Ratio: scale the simulated gross income by the donor's disposable/gross
  ratio. Used when the donor's gross income is at least a fraction of the
  median and its ratio is not implausibly large.
- Direct: take the donor's disposable income as is. The result is flagged
  as imputed, since it does not move with the simulated earnings.

Example:
    >>> schedule = MedianIncomeSchedule(
    ...     base_medians={"uk_2019": 2500.0},
    ...     policy_by_year={2019: "uk_2019", 2020: "uk_2019"},
    ...     uprating={(2020, "uk_2019"): 1.02},
    ... )
    >>> result = convert_gross_to_disposable(donor, 3000.0, schedule.median_for_year(2020))
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from donorplex.config import MatchingConfig
from donorplex.core.entities import DonorRecord


class ImputationMethod(Enum):
    """How disposable income was obtained from the donor."""

    RATIO = "ratio"
    DIRECT = "direct"


@dataclass(frozen=True)
class ImputedIncome:
    """Disposable income for one benefit unit and labour configuration."""

    disposable_income: float
    method: ImputationMethod
    donor_id: Optional[str] = None

    @property
    def imputed(self) -> bool:
        """True when the donor's disposable income was copied directly."""
        return self.method == ImputationMethod.DIRECT


def convert_gross_to_disposable(
    donor: DonorRecord,
    gross_income: float,
    median_income: float,
    config: Optional[MatchingConfig] = None,
) -> ImputedIncome:
    """Convert simulated gross income to disposable income using ``donor``.

    Args:
        donor: Matched donor record
        gross_income: Simulated monthly gross income to convert
        median_income: Median donor gross income for the current year
        config: Supplies ``median_fraction`` and ``max_donor_ratio``

    Returns:
        ImputedIncome with the method used
    """
    config = config or MatchingConfig()
    ratio = donor.disposable_to_gross_ratio

    if (
        donor.gross_income >= config.median_fraction * median_income
        and ratio <= config.max_donor_ratio
    ):
        return ImputedIncome(
            disposable_income=ratio * gross_income,
            method=ImputationMethod.RATIO,
            donor_id=donor.donor_id,
        )

    return ImputedIncome(
        disposable_income=donor.disposable_income,
        method=ImputationMethod.DIRECT,
        donor_id=donor.donor_id,
    )


@dataclass
class MedianIncomeSchedule:
    """
    Median donor gross income by simulated year.

    Medians are computed once per policy system at base prices and uprated
    to the simulated year.

    Attributes:
        base_medians: Policy name -> median monthly gross income
        policy_by_year: Simulated year -> policy name in force
        uprating: (year, policy name) -> uprating factor (default 1.0)
    """

    base_medians: Dict[str, float]
    policy_by_year: Dict[int, str]
    uprating: Dict[Tuple[int, str], float] = field(default_factory=dict)

    def policy_for_year(self, year: int) -> str:
        try:
            return self.policy_by_year[year]
        except KeyError:
            raise KeyError(f"No policy system scheduled for year {year}") from None

    def median_for_year(self, year: int) -> float:
        """Uprated median gross income for ``year``."""
        policy = self.policy_for_year(year)
        if policy not in self.base_medians:
            raise KeyError(f"No median income for policy {policy!r} (year {year})")
        return self.base_medians[policy] * self.uprating.get((year, policy), 1.0)

    @classmethod
    def from_donors(
        cls,
        donors_by_policy: Dict[str, List[DonorRecord]],
        policy_by_year: Dict[int, str],
        uprating: Optional[Dict[Tuple[int, str], float]] = None,
    ) -> "MedianIncomeSchedule":
        """Compute base medians from each policy system's donor incomes."""
        base_medians = {}
        for policy, donors in donors_by_policy.items():
            if not donors:
                raise ValueError(f"No donors for policy {policy!r}")
            base_medians[policy] = float(np.median([d.gross_income for d in donors]))
        return cls(base_medians, dict(policy_by_year), dict(uprating or {}))
