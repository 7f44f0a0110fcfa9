"""
Household-level donor imputation.

For a simulated benefit unit, enumerates the feasible labour
configurations, finds a donor for each and converts gross to disposable
income. Configurations without a donor are skipped; a household with no
donor for any configuration is a fatal data problem.

Configurations are always processed in the same order, so that the random
draws used for tie-breaking land identically under a fixed seed.

Example:
    >>> imputer = DonorImputer(index, medians, config)
    >>> incomes = imputer.impute_household(household, gross_by_labour, year=2020, rng=rng)
    >>> incomes[(Labour.FORTY, Labour.ZERO)].disposable_income
"""

import logging
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from donorplex.config import MatchingConfig
from donorplex.core.categories import Gender, HealthStatus, Labour
from donorplex.core.entities import DonorRecord, QueryProfile, SimulatedHousehold
from donorplex.imputation import (
    ImputedIncome,
    MedianIncomeSchedule,
    convert_gross_to_disposable,
)
from donorplex.matching.index import DonorIndex
from donorplex.matching.keys import labour_label
from donorplex.matching.lookup import DonorMatcher, Matched

logger = logging.getLogger(__name__)

LabourKey = Tuple[Optional[Labour], Optional[Labour]]
GrossIncome = Union[Mapping[LabourKey, float], Callable[[LabourKey], float]]


class NoDonorFoundError(RuntimeError):
    """No labour configuration of a household could be matched to a donor.

    Carries the household context, with ``adults`` as
    (gender, age, health, potential hourly wage) per adult, male first.
    """

    def __init__(self, household: SimulatedHousehold):
        self.household_id = household.household_id
        self.region = household.region
        self.occupancy = household.occupancy
        self.n_children = household.n_children
        self.adults = tuple(
            (
                adult.gender,
                adult.age,
                HealthStatus.from_long_term_sick(adult.is_long_term_sick),
                adult.potential_hourly_wage,
            )
            for adult in household.adults
        )
        super().__init__(
            "No donor benefit units for any labour configuration of "
            + household.describe()
        )


def labour_configurations(household: SimulatedHousehold) -> List[LabourKey]:
    """Feasible labour keys for ``household``, in a fixed order.

    Couples take every (male, female) combination; a partner not at risk of
    work is fixed at ZERO hours. Single adults take every bin for their
    gender, keyed as (labour, None).
    """
    if household.occupancy.is_couple:
        male_choices = (
            Labour.choices_for(Gender.MALE) if household.male.at_risk_of_work else (Labour.ZERO,)
        )
        female_choices = (
            Labour.choices_for(Gender.FEMALE) if household.female.at_risk_of_work else (Labour.ZERO,)
        )
        return [(m, f) for m in male_choices for f in female_choices]

    single = household.single
    return [(labour, None) for labour in Labour.choices_for(single.gender)]


class DonorImputer:
    """
    Impute disposable income for simulated households from donors.

    Attributes:
        matcher: Donor matcher over the read-only donor index
        medians: Median donor gross income by year
        config: Matching and conversion thresholds
    """

    def __init__(
        self,
        index: DonorIndex,
        medians: MedianIncomeSchedule,
        config: Optional[MatchingConfig] = None,
    ):
        self.config = config or MatchingConfig()
        self.matcher = DonorMatcher(index, self.config)
        self.medians = medians

    def find_donors_by_labour(
        self,
        household: SimulatedHousehold,
        rng: np.random.Generator,
    ) -> Dict[LabourKey, DonorRecord]:
        """Chosen donor for every labour configuration that has one.

        Raises:
            NoDonorFoundError: If no configuration has a donor
        """
        donors: Dict[LabourKey, DonorRecord] = {}
        for labour_key in labour_configurations(household):
            query = QueryProfile.from_household(household, labour_key)
            outcome = self.matcher.match(query, rng)
            if isinstance(outcome, Matched):
                donors[labour_key] = outcome.donor
            else:
                logger.debug(
                    "Household %s: no donor for labour %s",
                    household.household_id,
                    labour_label(labour_key),
                )

        if not donors:
            raise NoDonorFoundError(household)
        return donors

    def impute_household(
        self,
        household: SimulatedHousehold,
        gross_income: GrossIncome,
        year: int,
        rng: np.random.Generator,
    ) -> Dict[LabourKey, ImputedIncome]:
        """Disposable income for every labour configuration that has a donor.

        Args:
            household: Simulated benefit unit
            gross_income: Simulated monthly gross income per labour key,
                as a mapping or a callable
            year: Simulated year, selects the median income
            rng: Random stream used to break ties between donors

        Returns:
            Ordered mapping labour key -> ImputedIncome
        """
        median_income = self.medians.median_for_year(year)
        donors = self.find_donors_by_labour(household, rng)

        incomes: Dict[LabourKey, ImputedIncome] = {}
        for labour_key, donor in donors.items():
            gross = (
                gross_income(labour_key)
                if callable(gross_income)
                else gross_income[labour_key]
            )
            incomes[labour_key] = convert_gross_to_disposable(
                donor, gross, median_income, self.config
            )

        n_imputed = sum(income.imputed for income in incomes.values())
        if n_imputed:
            logger.debug(
                "Household %s: %d of %d incomes imputed directly from donors",
                household.household_id,
                n_imputed,
                len(incomes),
            )
        return incomes


def gross_income_from_wages(
    household: SimulatedHousehold,
    weeks_per_month: float = 365.25 / (7.0 * 12.0),
) -> Callable[[LabourKey], float]:
    """Monthly gross earnings as potential wage x labour hours.

    Returns a callable suitable as ``gross_income`` for
    ``DonorImputer.impute_household``.
    """

    def gross(labour_key: LabourKey) -> float:
        first, second = labour_key
        if household.occupancy.is_couple:
            pairs = ((household.male, first), (household.female, second))
        else:
            pairs = ((household.single, first),)
        weekly = sum(adult.potential_hourly_wage * labour.hours for adult, labour in pairs)
        return weekly * weeks_per_month

    return gross
