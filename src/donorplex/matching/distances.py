"""Distance measures shared by the refinement steps."""

from typing import Optional, Tuple


# Query values below this are treated as zero when scaling a difference
NEAR_ZERO = 1e-2


def squared_difference(query_value: float, donor_value: float) -> float:
    diff = donor_value - query_value
    return diff * diff


def modified_proportional_squared(query_value: float, donor_value: float) -> float:
    """Squared proportional difference relative to the query value.

    The denominator is shifted by one for query values close to zero (e.g.
    zero potential earnings) so the distance stays finite.
    """
    denominator = query_value
    if query_value < NEAR_ZERO:
        denominator = query_value + 1.0
    proportion = (donor_value - query_value) / denominator
    return proportion * proportion


def paired_distance(
    query_pair: Tuple[float, float],
    donor_pair: Tuple[float, float],
    metric=modified_proportional_squared,
) -> Tuple[float, float]:
    """Average per-adult distance of two couples, direct and swapped.

    Returns:
        (direct, swapped) where direct compares male to male and swapped
        compares the query's male to the donor's female and vice versa.
    """
    (q_male, q_female), (d_male, d_female) = query_pair, donor_pair
    direct = (metric(q_male, d_male) + metric(q_female, d_female)) / 2.0
    swapped = (metric(q_male, d_female) + metric(q_female, d_male)) / 2.0
    return direct, swapped


def rank_paired_squared(
    query_pair: Tuple[float, float],
    donor_pair: Tuple[Optional[float], Optional[float]],
    missing_value: float = -100.0,
) -> float:
    """Average squared difference pairing older with older, younger with younger.

    Missing donor values are replaced by ``missing_value`` first.
    """
    donor = [missing_value if v is None else v for v in donor_pair]
    diff = squared_difference(max(query_pair), max(donor))
    diff += squared_difference(min(query_pair), min(donor))
    return diff / 2.0
