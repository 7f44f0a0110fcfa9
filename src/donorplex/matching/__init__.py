"""Donor matching: index keys, hierarchical lookup and candidate refinement.

Example:
    >>> from donorplex.matching import DonorIndex, DonorMatcher
    >>> index = DonorIndex.from_records(donors)
    >>> outcome = DonorMatcher(index).match(query, rng)
"""

from .keys import KeyTuple, RelaxationLevel, build_key, labour_label
from .index import DonorIndex
from .refinement import (
    refine_by_health,
    refine_by_children,
    refine_by_earnings,
    refine_by_age,
    refine_candidates,
    earnings_distance,
    age_distance,
)
from .lookup import (
    DonorMatcher,
    Matched,
    Unmatched,
    MatchOutcome,
    select_donor,
)

__all__ = [
    # Keys
    "KeyTuple",
    "RelaxationLevel",
    "build_key",
    "labour_label",
    # Index
    "DonorIndex",
    # Refinement
    "refine_by_health",
    "refine_by_children",
    "refine_by_earnings",
    "refine_by_age",
    "refine_candidates",
    "earnings_distance",
    "age_distance",
    # Lookup
    "DonorMatcher",
    "Matched",
    "Unmatched",
    "MatchOutcome",
    "select_donor",
]
