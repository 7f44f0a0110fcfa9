"""
Matching and conversion parameters.

All thresholds used by the donor search and income conversion live here so
they can be injected per run rather than read from module globals.

Example:
    >>> config = MatchingConfig(earnings_thresholds=(5, 10, 50))
    >>> config = MatchingConfig.from_yaml("matching.yaml")
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Tuple

import yaml


def default_children_discrepancy(n_children: float) -> float:
    """Initial allowed difference in number of children."""
    if n_children <= 1:
        return 0.0
    elif n_children <= 3:
        return 1.0
    elif n_children <= 5:
        return 2.0
    return 3.0


DEFAULT_EARNINGS_THRESHOLDS = (0.01, 0.02, 0.03, 0.04, 0.05)


@dataclass(frozen=True)
class MatchingConfig:
    """Configuration for donor matching and gross-to-disposable conversion."""

    age_top_code: int = 80
    children_discrepancy: Callable[[float], float] = default_children_discrepancy
    earnings_thresholds: Tuple[float, ...] = DEFAULT_EARNINGS_THRESHOLDS
    age_discrepancy: float = 10.0
    median_fraction: float = 0.1  # theta
    max_donor_ratio: float = 3.0  # rho_max
    guarantee_age_match: bool = True

    # Children widening: bound <- (bound + 1) * factor
    children_relaxation_factor: float = 1.5
    max_children_relaxations: int = 64

    # Stand-in donor age when an adult is missing
    missing_age_penalty: float = -100.0

    def __post_init__(self):
        thresholds = tuple(sorted(float(t) for t in self.earnings_thresholds))
        if not thresholds:
            raise ValueError("earnings_thresholds must not be empty")
        if thresholds[0] <= 0:
            raise ValueError("earnings_thresholds must be positive")
        if len(set(thresholds)) != len(thresholds):
            raise ValueError("earnings_thresholds must be distinct")
        object.__setattr__(self, "earnings_thresholds", thresholds)

        if self.age_top_code <= 0:
            raise ValueError("age_top_code must be positive")
        if self.age_discrepancy < 0:
            raise ValueError("age_discrepancy must be non-negative")
        if self.median_fraction < 0:
            raise ValueError("median_fraction must be non-negative")
        if self.max_donor_ratio <= 0:
            raise ValueError("max_donor_ratio must be positive")
        if self.children_relaxation_factor <= 1.0:
            raise ValueError("children_relaxation_factor must exceed 1")
        if self.max_children_relaxations < 1:
            raise ValueError("max_children_relaxations must be at least 1")
        if not callable(self.children_discrepancy):
            raise ValueError("children_discrepancy must be callable")

    def top_code_age(self, age: int) -> int:
        return min(self.age_top_code, age)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchingConfig":
        """Build a config from plain values; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown matching config keys: {sorted(unknown)}")

        kwargs = dict(data)
        if "earnings_thresholds" in kwargs:
            kwargs["earnings_thresholds"] = tuple(kwargs["earnings_thresholds"])
        if "children_discrepancy" in kwargs:
            kwargs["children_discrepancy"] = _children_discrepancy_from_steps(
                kwargs["children_discrepancy"]
            )
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "MatchingConfig":
        """Load config overrides from a YAML mapping.

        ``children_discrepancy`` may be given as a list of
        ``[max_children, bound]`` steps, checked in order; children above
        the last step get the last bound.
        """
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
        return cls.from_dict(data)


def _children_discrepancy_from_steps(steps) -> Callable[[float], float]:
    if callable(steps):
        return steps
    steps = [(float(limit), float(bound)) for limit, bound in steps]
    if not steps:
        raise ValueError("children_discrepancy steps must not be empty")

    def discrepancy(n_children: float) -> float:
        for limit, bound in steps:
            if n_children <= limit:
                return bound
        return steps[-1][1]

    return discrepancy
