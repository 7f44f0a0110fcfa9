"""Benefit unit entities used by donor matching.

- SimulatedAdult / SimulatedHousehold: the simulated population's view of a
  benefit unit, before a labour configuration has been chosen
- AdultProfile: one adult's matching attributes
- QueryProfile: a simulated benefit unit under one labour configuration
- DonorRecord: a reference benefit unit with known tax-benefit outcomes

By convention, the male adult is listed first wherever a pair is formed.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from donorplex.core.categories import (
    Gender,
    HealthStatus,
    Labour,
    Occupancy,
    coerce_enum,
)


class AdultProfile(BaseModel):
    """Matching attributes of one adult."""

    gender: Gender
    health: HealthStatus
    age: int = Field(..., ge=0, le=130)
    hourly_wage: float = Field(default=0.0, ge=0.0)
    labour: Labour = Labour.ZERO

    model_config = {"frozen": True}

    @field_validator("gender", mode="before")
    @classmethod
    def _coerce_gender(cls, value):
        return coerce_enum(Gender, value)

    @field_validator("health", mode="before")
    @classmethod
    def _coerce_health(cls, value):
        return coerce_enum(HealthStatus, value)

    @field_validator("labour", mode="before")
    @classmethod
    def _coerce_labour(cls, value):
        return coerce_enum(Labour, value)


class BenefitUnitProfile(BaseModel):
    """Shared shape of query profiles and donor records."""

    occupancy: Occupancy
    region: str
    n_children: int = Field(default=0, ge=0)
    male: Optional[AdultProfile] = None
    female: Optional[AdultProfile] = None

    model_config = {"frozen": True}

    @field_validator("occupancy", mode="before")
    @classmethod
    def _coerce_occupancy(cls, value):
        return coerce_enum(Occupancy, value)

    @model_validator(mode="after")
    def _check_adults(self):
        if self.male is not None and self.male.gender != Gender.MALE:
            raise ValueError("Adult in the male slot must be male")
        if self.female is not None and self.female.gender != Gender.FEMALE:
            raise ValueError("Adult in the female slot must be female")

        present = tuple(
            g for g, a in ((Gender.MALE, self.male), (Gender.FEMALE, self.female))
            if a is not None
        )
        if present != self.occupancy.genders:
            raise ValueError(
                f"Occupancy {self.occupancy.value} inconsistent with adults "
                f"present: {[g.value for g in present]}"
            )
        return self

    @property
    def is_couple(self) -> bool:
        return self.occupancy.is_couple

    @property
    def adults(self) -> tuple:
        """Adults present, male first."""
        return tuple(a for a in (self.male, self.female) if a is not None)

    @property
    def single(self) -> AdultProfile:
        """The only adult of a single benefit unit."""
        if self.is_couple:
            raise ValueError("Couple benefit units have no single adult")
        return self.male if self.male is not None else self.female

    def adult(self, gender: Gender) -> Optional[AdultProfile]:
        return self.male if gender == Gender.MALE else self.female

    @property
    def labour_key(self) -> tuple:
        """(male, female) labour bins for couples, (labour, None) for singles."""
        if self.is_couple:
            return (self.male.labour, self.female.labour)
        return (self.single.labour, None)


class QueryProfile(BenefitUnitProfile):
    """A simulated benefit unit under one candidate labour configuration."""

    household_id: Optional[str] = None

    @classmethod
    def from_household(
        cls,
        household: "SimulatedHousehold",
        labour_key: tuple,
    ) -> "QueryProfile":
        """Build the query for ``household`` working ``labour_key``.

        ``labour_key`` follows the index convention: (male, female) for a
        couple and (labour, None) for a single adult.
        """
        first, second = labour_key
        if household.occupancy.is_couple:
            if first is None or second is None:
                raise ValueError(f"Couple requires two labour bins, got {labour_key}")
            labour_by_gender = {Gender.MALE: first, Gender.FEMALE: second}
        else:
            if first is None or second is not None:
                raise ValueError(
                    f"Single adult requires (labour, None), got {labour_key}"
                )
            labour_by_gender = {household.single.gender: first}

        adults = {}
        for adult in household.adults:
            adults[adult.gender] = AdultProfile(
                gender=adult.gender,
                health=HealthStatus.from_long_term_sick(adult.is_long_term_sick),
                age=adult.age,
                hourly_wage=adult.potential_hourly_wage,
                labour=labour_by_gender[adult.gender],
            )

        return cls(
            occupancy=household.occupancy,
            region=household.region,
            n_children=household.n_children,
            male=adults.get(Gender.MALE),
            female=adults.get(Gender.FEMALE),
            household_id=household.household_id,
        )


class DonorRecord(BenefitUnitProfile):
    """Reference benefit unit with monthly tax-benefit outcomes.

    Incomes are for the policy system applicable to the simulated year.
    If ``disposable_to_gross_ratio`` is not given it is derived from the
    incomes, and set to 0 when gross income is 0.
    """

    donor_id: str
    gross_income: float
    disposable_income: float
    disposable_to_gross_ratio: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_ratio(cls, data):
        if not isinstance(data, dict) or data.get("disposable_to_gross_ratio") is not None:
            return data
        gross = float(data.get("gross_income", 0.0))
        disposable = float(data.get("disposable_income", 0.0))
        return {
            **data,
            "disposable_to_gross_ratio": disposable / gross if gross != 0.0 else 0.0,
        }


class SimulatedAdult(BaseModel):
    """An adult of the simulated population."""

    person_id: Optional[str] = None
    gender: Gender
    age: int = Field(..., ge=0, le=130)
    is_long_term_sick: bool = False
    potential_hourly_wage: float = Field(default=0.0, ge=0.0)
    at_risk_of_work: bool = True

    model_config = {"frozen": True}

    @field_validator("gender", mode="before")
    @classmethod
    def _coerce_gender(cls, value):
        return coerce_enum(Gender, value)


class SimulatedHousehold(BaseModel):
    """A simulated benefit unit whose labour supply is yet to be chosen."""

    household_id: str
    region: str
    n_children: int = Field(default=0, ge=0)
    male: Optional[SimulatedAdult] = None
    female: Optional[SimulatedAdult] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_adults(self):
        if self.male is None and self.female is None:
            raise ValueError(f"Household {self.household_id} has no adults")
        if self.male is not None and self.male.gender != Gender.MALE:
            raise ValueError("Adult in the male slot must be male")
        if self.female is not None and self.female.gender != Gender.FEMALE:
            raise ValueError("Adult in the female slot must be female")
        return self

    @property
    def occupancy(self) -> Occupancy:
        if self.male is not None and self.female is not None:
            return Occupancy.COUPLE
        return Occupancy.SINGLE_MALE if self.male is not None else Occupancy.SINGLE_FEMALE

    @property
    def adults(self) -> tuple:
        return tuple(a for a in (self.male, self.female) if a is not None)

    @property
    def single(self) -> SimulatedAdult:
        if self.occupancy.is_couple:
            raise ValueError("Couple households have no single adult")
        return self.male if self.male is not None else self.female

    def describe(self) -> str:
        """One-line summary used in diagnostics."""
        parts = [
            f"household {self.household_id}",
            f"region {self.region}",
            f"occupancy {self.occupancy.value}",
            f"{self.n_children} children",
        ]
        for adult in self.adults:
            parts.append(
                f"{adult.gender.value} {adult.person_id or '?'} (age {adult.age}, "
                f"health {HealthStatus.from_long_term_sick(adult.is_long_term_sick).value}, "
                f"potential wage {adult.potential_hourly_wage:.2f})"
            )
        return ", ".join(parts)
