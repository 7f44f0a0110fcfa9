"""
Tests for household-level imputation.

1. Labour configurations for couples and single adults
2. Imputation over every matched configuration
3. Fatal error when no configuration has a donor
4. Reproducible donor choice under a fixed seed
"""

import numpy as np
import pytest

from donorplex.core.categories import Gender, HealthStatus, Labour
from donorplex.core.entities import SimulatedAdult, SimulatedHousehold
from donorplex.household import (
    DonorImputer,
    NoDonorFoundError,
    gross_income_from_wages,
    labour_configurations,
)
from donorplex.imputation import ImputationMethod, MedianIncomeSchedule
from donorplex.matching.index import DonorIndex


@pytest.fixture
def single_household():
    return SimulatedHousehold(
        household_id="h1",
        region="R1",
        female=SimulatedAdult(
            person_id="p1", gender="female", age=40, potential_hourly_wage=10.0
        ),
    )


@pytest.fixture
def couple_household():
    return SimulatedHousehold(
        household_id="h2",
        region="R2",
        n_children=1,
        male=SimulatedAdult(person_id="p2", gender="male", age=50, potential_hourly_wage=15.0),
        female=SimulatedAdult(person_id="p3", gender="female", age=48, potential_hourly_wage=12.0),
    )


@pytest.fixture
def medians():
    return MedianIncomeSchedule(
        base_medians={"uk_2019": 2500.0}, policy_by_year={2020: "uk_2019"}
    )


class TestLabourConfigurations:
    def test_couple_takes_every_combination(self, couple_household):
        configurations = labour_configurations(couple_household)

        assert len(configurations) == 25
        assert configurations[0] == (Labour.ZERO, Labour.ZERO)
        assert configurations[1] == (Labour.ZERO, Labour.TEN)
        assert configurations[-1] == (Labour.FORTY, Labour.FORTY)

    def test_partner_not_at_risk_is_fixed_at_zero(self):
        household = SimulatedHousehold(
            household_id="h3",
            region="R1",
            male=SimulatedAdult(gender="male", age=70, at_risk_of_work=False),
            female=SimulatedAdult(gender="female", age=60),
        )

        configurations = labour_configurations(household)

        assert len(configurations) == 5
        assert all(male == Labour.ZERO for male, _ in configurations)

    def test_single_keyed_with_none(self, single_household):
        configurations = labour_configurations(single_household)

        assert configurations == [
            (labour, None) for labour in Labour.choices_for(Gender.FEMALE)
        ]


class TestImputeHousehold:
    @pytest.fixture
    def donors(self, make_single_donor):
        return [
            make_single_donor(
                "part_time", age=40, wage=10.0, labour=Labour.TWENTY,
                gross_income=2000.0, disposable_income=1600.0,
            ),
            make_single_donor(
                "full_time", age=40, wage=10.0, labour=Labour.FORTY,
                gross_income=100.0, disposable_income=900.0,
            ),
        ]

    def test_matched_configurations_only(self, single_household, donors, medians, rng):
        imputer = DonorImputer(DonorIndex.from_records(donors), medians)

        incomes = imputer.impute_household(
            single_household,
            {(Labour.TWENTY, None): 1500.0, (Labour.FORTY, None): 3000.0},
            year=2020,
            rng=rng,
        )

        assert list(incomes) == [(Labour.TWENTY, None), (Labour.FORTY, None)]

        part_time = incomes[(Labour.TWENTY, None)]
        assert part_time.method == ImputationMethod.RATIO
        assert part_time.disposable_income == pytest.approx(1200.0)
        assert part_time.donor_id == "part_time"

        # Donor gross below a tenth of the median: copied directly
        full_time = incomes[(Labour.FORTY, None)]
        assert full_time.method == ImputationMethod.DIRECT
        assert full_time.disposable_income == 900.0
        assert full_time.imputed

    def test_callable_gross_income(self, single_household, donors, medians, rng):
        imputer = DonorImputer(DonorIndex.from_records(donors), medians)
        seen = []

        def gross(labour_key):
            seen.append(labour_key)
            return 1000.0

        incomes = imputer.impute_household(single_household, gross, year=2020, rng=rng)

        assert seen == [(Labour.TWENTY, None), (Labour.FORTY, None)]
        assert incomes[(Labour.TWENTY, None)].disposable_income == pytest.approx(800.0)

    def test_unknown_year_raises(self, single_household, donors, medians, rng):
        imputer = DonorImputer(DonorIndex.from_records(donors), medians)
        with pytest.raises(KeyError):
            imputer.impute_household(single_household, {}, year=1990, rng=rng)

    def test_no_donor_raises_with_context(self, couple_household, make_single_donor, medians, rng):
        imputer = DonorImputer(
            DonorIndex.from_records([make_single_donor("lonely")]), medians
        )

        with pytest.raises(NoDonorFoundError) as excinfo:
            imputer.find_donors_by_labour(couple_household, rng)

        error = excinfo.value
        assert error.household_id == "h2"
        assert error.region == "R2"
        assert error.n_children == 1
        assert error.occupancy.is_couple
        assert error.adults == (
            (Gender.MALE, 50, HealthStatus.GOOD, 15.0),
            (Gender.FEMALE, 48, HealthStatus.GOOD, 12.0),
        )
        assert "h2" in str(error)
        assert "R2" in str(error)

    def test_distant_wage_donor_still_used(self, single_household, make_single_donor, medians, rng):
        donor = make_single_donor("distant", age=40, wage=30.0, labour=Labour.TWENTY)
        imputer = DonorImputer(DonorIndex.from_records([donor]), medians)

        donors = imputer.find_donors_by_labour(single_household, rng)

        assert {key: d.donor_id for key, d in donors.items()} == {
            (Labour.TWENTY, None): "distant"
        }

    def test_reproducible_under_fixed_seed(self, single_household, make_single_donor, medians):
        donors = [
            make_single_donor(f"d{i}", age=40, wage=10.0, labour=labour)
            for i, labour in enumerate([Labour.TWENTY] * 3 + [Labour.FORTY] * 3)
        ]
        imputer = DonorImputer(DonorIndex.from_records(donors), medians)
        gross = gross_income_from_wages(single_household)

        def chosen(seed):
            incomes = imputer.impute_household(
                single_household, gross, year=2020, rng=np.random.default_rng(seed)
            )
            return [income.donor_id for income in incomes.values()]

        assert chosen(11) == chosen(11)


class TestGrossIncomeFromWages:
    def test_single(self, single_household):
        gross = gross_income_from_wages(single_household, weeks_per_month=4.0)
        assert gross((Labour.TEN, None)) == pytest.approx(10.0 * 20 * 4.0)
        assert gross((Labour.ZERO, None)) == 0.0

    def test_couple(self, couple_household):
        gross = gross_income_from_wages(couple_household, weeks_per_month=4.0)
        expected = (15.0 * 40 + 12.0 * 30) * 4.0
        assert gross((Labour.FORTY, Labour.TWENTY)) == pytest.approx(expected)
