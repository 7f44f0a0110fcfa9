"""Shared factories for donor matching tests."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np
import pytest

from donorplex.core.categories import Gender, HealthStatus, Labour, Occupancy
from donorplex.core.entities import AdultProfile, DonorRecord, QueryProfile


def _adult(gender, health=HealthStatus.GOOD, age=40, wage=10.0, labour=Labour.ZERO):
    return AdultProfile(
        gender=gender, health=health, age=age, hourly_wage=wage, labour=labour
    )


@pytest.fixture
def make_adult():
    return _adult


@pytest.fixture
def make_single_donor():
    """Single-adult donor; keyword arguments set the adult's attributes."""

    def make(
        donor_id,
        gender=Gender.FEMALE,
        region="R1",
        n_children=0,
        gross_income=2000.0,
        disposable_income=1600.0,
        disposable_to_gross_ratio=None,
        **adult_kwargs,
    ):
        person = _adult(gender, **adult_kwargs)
        return DonorRecord(
            donor_id=donor_id,
            occupancy=Occupancy.for_single(gender),
            region=region,
            n_children=n_children,
            male=person if gender == Gender.MALE else None,
            female=person if gender == Gender.FEMALE else None,
            gross_income=gross_income,
            disposable_income=disposable_income,
            disposable_to_gross_ratio=disposable_to_gross_ratio,
        )

    return make


@pytest.fixture
def make_couple_donor():
    """Couple donor; ``male`` and ``female`` are dicts of adult attributes."""

    def make(
        donor_id,
        male=None,
        female=None,
        region="R1",
        n_children=0,
        gross_income=4000.0,
        disposable_income=3200.0,
    ):
        return DonorRecord(
            donor_id=donor_id,
            occupancy=Occupancy.COUPLE,
            region=region,
            n_children=n_children,
            male=_adult(Gender.MALE, **(male or {})),
            female=_adult(Gender.FEMALE, **(female or {})),
            gross_income=gross_income,
            disposable_income=disposable_income,
        )

    return make


@pytest.fixture
def make_single_query():
    def make(gender=Gender.FEMALE, region="R1", n_children=0, household_id="h1", **adult_kwargs):
        person = _adult(gender, **adult_kwargs)
        return QueryProfile(
            occupancy=Occupancy.for_single(gender),
            region=region,
            n_children=n_children,
            male=person if gender == Gender.MALE else None,
            female=person if gender == Gender.FEMALE else None,
            household_id=household_id,
        )

    return make


@pytest.fixture
def make_couple_query():
    def make(male=None, female=None, region="R1", n_children=0, household_id="h1"):
        return QueryProfile(
            occupancy=Occupancy.COUPLE,
            region=region,
            n_children=n_children,
            male=_adult(Gender.MALE, **(male or {})),
            female=_adult(Gender.FEMALE, **(female or {})),
            household_id=household_id,
        )

    return make


@pytest.fixture
def rng():
    return np.random.default_rng(42)
