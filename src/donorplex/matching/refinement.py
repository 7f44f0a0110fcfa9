"""
Candidate refinement for dimensions dropped from the index key.

Each step takes the query and a candidate tuple and returns the admitted
donors as a tuple, in candidate order. An empty result means the step
rejected everything and the caller should move to a coarser key.

Steps, in the order the cascade applies them:
1. Health: exact health match, allowing swapped genders (dropped at level 5)
2. Children: widening bound on the difference in number of children
   (dropped from level 4)
3. Earnings: tiers of potential hourly wage distance (always)
4. Age: age distance within a tier (dropped from level 2)
"""

import logging
from typing import Iterable, List, Optional, Tuple

from donorplex.config import MatchingConfig
from donorplex.core.categories import Gender
from donorplex.core.entities import DonorRecord, QueryProfile
from donorplex.matching.distances import (
    modified_proportional_squared,
    paired_distance,
    rank_paired_squared,
    squared_difference,
)
from donorplex.matching.keys import RelaxationLevel

logger = logging.getLogger(__name__)

Candidates = Tuple[DonorRecord, ...]


def _unique(donors: Iterable[DonorRecord]) -> Candidates:
    """Drop repeated donors (by identity), keeping first occurrence order."""
    seen = set()
    unique = []
    for donor in donors:
        if id(donor) not in seen:
            seen.add(id(donor))
            unique.append(donor)
    return tuple(unique)


def _same_structure(query: QueryProfile, donor: DonorRecord) -> bool:
    return query.is_couple == donor.is_couple


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


def refine_by_health(query: QueryProfile, candidates: Candidates) -> Candidates:
    """Keep donors whose adults' health matches the query's.

    Couples are compared under both the direct and swapped gender
    assignment. Donors matching both adults are preferred; failing any,
    donors matching at least one adult are returned. Single adults are
    compared with the donor's single adult whatever its gender.
    """
    both_match: List[DonorRecord] = []
    one_match: List[DonorRecord] = []

    for donor in candidates:
        if not _same_structure(query, donor):
            continue

        if query.is_couple:
            q_male, q_female = query.male.health, query.female.health
            d_male, d_female = donor.male.health, donor.female.health
            for male_value, female_value in ((d_male, d_female), (d_female, d_male)):
                if q_male == male_value and q_female == female_value:
                    both_match.append(donor)
                elif q_male == male_value or q_female == female_value:
                    one_match.append(donor)
        elif query.single.health == donor.single.health:
            both_match.append(donor)

    if both_match:
        return _unique(both_match)
    return _unique(one_match)


# ---------------------------------------------------------------------------
# Children
# ---------------------------------------------------------------------------


def refine_by_children(
    query: QueryProfile,
    candidates: Candidates,
    config: MatchingConfig,
) -> Candidates:
    """Keep donors whose number of children is within a widening bound.

    The bound starts at ``config.children_discrepancy(n_children)`` and
    widens to ``(bound + 1) * factor`` until a donor is admitted. The
    number of widenings is capped, so an empty candidate tuple returns
    empty immediately.
    """
    if not candidates:
        return ()

    n_children = float(query.n_children)
    bound = config.children_discrepancy(n_children)

    for attempt in range(config.max_children_relaxations + 1):
        bound_sq = bound * bound
        admitted = tuple(
            donor for donor in candidates
            if squared_difference(n_children, donor.n_children) <= bound_sq
        )
        if admitted:
            if attempt:
                logger.debug(
                    "Children bound widened %d times to %.2f", attempt, bound
                )
            return admitted
        bound = (bound + 1.0) * config.children_relaxation_factor

    logger.warning(
        "No donor within widened children bound %.2f after %d attempts",
        bound,
        config.max_children_relaxations,
    )
    return ()


# ---------------------------------------------------------------------------
# Earnings
# ---------------------------------------------------------------------------


def earnings_distance(query: QueryProfile, donor: DonorRecord) -> Optional[float]:
    """Potential-wage distance between query and donor, or None if not comparable.

    Couples take the smaller of the direct and swapped averages.
    """
    if not _same_structure(query, donor):
        return None
    if query.is_couple:
        direct, swapped = paired_distance(
            (query.male.hourly_wage, query.female.hourly_wage),
            (donor.male.hourly_wage, donor.female.hourly_wage),
            metric=modified_proportional_squared,
        )
        return min(direct, swapped)
    return modified_proportional_squared(
        query.single.hourly_wage, donor.single.hourly_wage
    )


def refine_by_earnings(
    query: QueryProfile,
    candidates: Candidates,
    config: MatchingConfig,
) -> List[Tuple[float, Candidates]]:
    """Partition donors into nested earnings tiers.

    Returns:
        [(threshold, donors), ...] in ascending threshold order, where a
        donor appears in every tier whose squared threshold its distance
        does not exceed. Tiers may be empty.
    """
    thresholds = config.earnings_thresholds
    tiers: List[List[DonorRecord]] = [[] for _ in thresholds]

    for donor in candidates:
        distance = earnings_distance(query, donor)
        if distance is None:
            continue
        for i, threshold in enumerate(thresholds):
            if distance <= threshold * threshold:
                tiers[i].append(donor)

    result = [(threshold, tuple(tier)) for threshold, tier in zip(thresholds, tiers)]
    if logger.isEnabledFor(logging.DEBUG):
        for threshold, tier in result:
            logger.debug("Earnings threshold %s: %d donors", threshold, len(tier))
    return result


# ---------------------------------------------------------------------------
# Age
# ---------------------------------------------------------------------------


def age_distance(
    query: QueryProfile,
    donor: DonorRecord,
    config: MatchingConfig,
) -> float:
    """Squared age distance after top-coding, ignoring gender.

    Couples pair the older adults with each other and the younger adults
    with each other, averaged. A single adult is compared with the donor
    adult of the same gender, or with the other donor adult if that is the
    only one. Missing donor ages count as ``config.missing_age_penalty``.
    """
    penalty = config.missing_age_penalty
    donor_male = config.top_code_age(donor.male.age) if donor.male is not None else None
    donor_female = config.top_code_age(donor.female.age) if donor.female is not None else None

    if query.is_couple:
        return rank_paired_squared(
            (config.top_code_age(query.male.age), config.top_code_age(query.female.age)),
            (donor_male, donor_female),
            missing_value=penalty,
        )

    single = query.single
    query_age = config.top_code_age(single.age)
    if single.gender == Gender.MALE:
        own, other = donor_male, donor_female
    else:
        own, other = donor_female, donor_male

    if own is None and other is not None:
        return squared_difference(query_age, other)
    return squared_difference(query_age, penalty if own is None else own)


def refine_by_age(
    query: QueryProfile,
    candidates: Candidates,
    config: MatchingConfig,
    guarantee: Optional[bool] = None,
) -> Candidates:
    """Keep donors within the age bound.

    With ``guarantee`` (defaults to ``config.guarantee_age_match``) the
    donor closest in age is always admitted as well, so the result is only
    empty when ``candidates`` is.
    """
    if guarantee is None:
        guarantee = config.guarantee_age_match

    bound_sq = config.age_discrepancy * config.age_discrepancy
    admitted: List[DonorRecord] = []
    closest: Optional[DonorRecord] = None
    closest_distance: Optional[float] = None

    for donor in candidates:
        distance = age_distance(query, donor, config)
        if closest_distance is None or distance < closest_distance:
            closest_distance = distance
            closest = donor
        if distance <= bound_sq:
            admitted.append(donor)

    if guarantee and closest is not None:
        admitted.append(closest)
    return _unique(admitted)


# ---------------------------------------------------------------------------
# Cascade
# ---------------------------------------------------------------------------


def refine_candidates(
    query: QueryProfile,
    candidates: Candidates,
    level: RelaxationLevel,
    config: MatchingConfig,
) -> Candidates:
    """Apply the refinement steps required at ``level``.

    Health and children refinement run only once their dimension has been
    dropped from the key. Earnings tiers are then walked from the
    narrowest; the first non-empty tier is returned as is when age is part
    of the key, or after age refinement otherwise. If age refinement
    rejects a whole tier the next, wider tier is tried.

    If no donor falls within any earnings tier, the candidates surviving
    health and children refinement are returned unchanged, without age
    refinement.

    Returns:
        Admitted donors, or an empty tuple if refinement failed
    """
    if level.check_health:
        candidates = refine_by_health(query, candidates)
        if not candidates:
            return ()

    if level.check_children:
        candidates = refine_by_children(query, candidates, config)
        if not candidates:
            return ()

    tiers = refine_by_earnings(query, candidates, config)
    if not any(tier for _, tier in tiers):
        logger.debug("No donor within any earnings threshold, keeping %d", len(candidates))
        return candidates

    for threshold, tier in tiers:
        if not tier:
            continue
        if not level.check_age:
            return tier
        admitted = refine_by_age(query, tier, config)
        if admitted:
            return admitted
        logger.debug("Age refinement rejected earnings tier %s", threshold)

    return ()
