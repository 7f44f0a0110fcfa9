"""
Hierarchical donor lookup.

Queries the donor index with progressively coarser keys, refining each
non-empty candidate set, and stops at the first level whose refinement
admits at least one donor. One donor is then drawn uniformly from the
admitted set.

Example:
    >>> matcher = DonorMatcher(index, config)
    >>> outcome = matcher.match(query, rng=np.random.default_rng(42))
    >>> if outcome.matched:
    ...     donor = outcome.donor
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from donorplex.config import MatchingConfig
from donorplex.core.entities import DonorRecord, QueryProfile
from donorplex.matching.index import DonorIndex
from donorplex.matching.keys import KeyTuple, RelaxationLevel, build_key, labour_label
from donorplex.matching.refinement import Candidates, refine_candidates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Matched:
    """A donor was found."""

    donor: DonorRecord
    level: RelaxationLevel
    n_candidates: int

    @property
    def matched(self) -> bool:
        return True


@dataclass(frozen=True)
class Unmatched:
    """No donor survived refinement at any relaxation level."""

    @property
    def matched(self) -> bool:
        return False


MatchOutcome = Union[Matched, Unmatched]


def select_donor(candidates: Sequence[DonorRecord], rng: np.random.Generator) -> DonorRecord:
    """Draw one donor uniformly at random."""
    if len(candidates) == 0:
        raise ValueError("Cannot select a donor from an empty candidate set")
    return candidates[int(rng.integers(len(candidates)))]


class DonorMatcher:
    """
    Find the most similar donor for a query profile.

    Relaxation levels are tried in order; each drops one more key dimension
    and refines the dropped dimensions by distance instead (region is simply
    ignored once dropped).

    Attributes:
        index: Read-only donor index
        config: Matching thresholds
        levels: Relaxation levels to try, most specific first
    """

    def __init__(
        self,
        index: DonorIndex,
        config: Optional[MatchingConfig] = None,
        levels: Optional[Sequence[RelaxationLevel]] = None,
    ):
        self.index = index
        self.config = config or MatchingConfig()
        self.levels = tuple(levels) if levels is not None else RelaxationLevel.ordered()

    def key_for(self, query: QueryProfile) -> KeyTuple:
        return build_key(query, self.config.age_top_code)

    def try_level(
        self,
        query: QueryProfile,
        key: KeyTuple,
        level: RelaxationLevel,
    ) -> Candidates:
        """Index lookup and refinement at a single relaxation level."""
        candidates = self.index.lookup(key.prefix(level.n_dims))
        if not candidates:
            logger.debug("Level %s: no donors under key", level.name)
            return ()

        refined = refine_candidates(query, candidates, level, self.config)
        logger.debug(
            "Level %s: %d donors under key, %d after refinement",
            level.name,
            len(candidates),
            len(refined),
        )
        return refined

    def find_candidates(
        self,
        query: QueryProfile,
    ) -> Tuple[Optional[RelaxationLevel], Candidates]:
        """Most specific level with a non-empty refined candidate set.

        Returns:
            (level, candidates), or (None, ()) if every level failed
        """
        key = self.key_for(query)
        for level in self.levels:
            candidates = self.try_level(query, key, level)
            if candidates:
                return level, candidates
        return None, ()

    def match(self, query: QueryProfile, rng: np.random.Generator) -> MatchOutcome:
        """Find candidates and draw one donor with ``rng``."""
        level, candidates = self.find_candidates(query)
        if level is None:
            logger.debug(
                "No donor found for household %s and labour %s",
                query.household_id,
                labour_label(query.labour_key),
            )
            return Unmatched()

        donor = select_donor(candidates, rng)
        return Matched(donor=donor, level=level, n_candidates=len(candidates))
