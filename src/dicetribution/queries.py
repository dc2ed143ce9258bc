from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Dict, List, Optional

from .distribution import Distribution


@dataclass(frozen=True)
class CumulativeStats:
    at_least: float
    at_most: float
    exactly: float

    @classmethod
    def zero(cls) -> 'CumulativeStats':
        return cls(0.0, 0.0, 0.0)

    def to_dict(self) -> Dict[str, float]:
        return {
            "atLeast": self.at_least,
            "atMost": self.at_most,
            "exactly": self.exactly
        }


@dataclass(frozen=True)
class ModifierImpact:
    """How adding `modifier` to the roll changes the odds against a target.

    `impact.at_least` and `impact.at_most` are signed changes relative to the
    unmodified target. `impact.exactly` is NOT a change: it is the exact
    probability at `new_target`. Callers wanting a delta subtract the base
    exactly themselves.
    """

    impact: CumulativeStats
    new_target: int
    effective_target: int  # target - modifier before clamping
    edge: Optional[str] = None  # "minimum" or "maximum" when new_target sits on the range boundary

    @property
    def at_edge(self) -> bool:
        return self.edge is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "impact": self.impact.to_dict(),
            "newTarget": self.new_target,
            "effectiveTarget": self.effective_target,
            "edge": self.edge
        }


@dataclass(frozen=True)
class TableRow:
    total: int
    count: int
    probability: float
    at_most: float
    at_least: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sum": self.total,
            "count": self.count,
            "probability": self.probability,
            "atMost": self.at_most,
            "atLeast": self.at_least
        }


def cumulative_stats(distribution: Distribution, target: int) -> CumulativeStats:
    """Probability of rolling at least, at most and exactly `target`.

    Counts are accumulated as exact ints over the ascending sum range and
    only divided at the end. Any integer target is allowed; targets outside
    the achievable range give the boundary answers.
    """
    if distribution.total_combinations == 0:
        return CumulativeStats.zero()

    at_least_count = 0
    at_most_count = 0
    for total, count in distribution.combinations.items():
        if total >= target:
            at_least_count += count
        if total <= target:
            at_most_count += count

    n = distribution.total_combinations
    return CumulativeStats(
        at_least=float(Fraction(at_least_count, n)),
        at_most=float(Fraction(at_most_count, n)),
        exactly=float(Fraction(distribution.count(target), n))
    )


def modifier_impact(distribution: Distribution, target: int, modifier: int) -> ModifierImpact:
    # A positive modifier to the roll is the same as lowering the target by that much
    effective_target = target - modifier
    if distribution.total_combinations == 0:
        return ModifierImpact(CumulativeStats.zero(), target, effective_target)

    min_sum = distribution.min_sum
    max_sum = distribution.max_sum
    new_target = max(min_sum, min(max_sum, effective_target))

    base = cumulative_stats(distribution, target)
    new = cumulative_stats(distribution, new_target)

    edge = None
    if new_target == min_sum:
        edge = "minimum"
    elif new_target == max_sum:
        edge = "maximum"

    return ModifierImpact(
        impact=CumulativeStats(
            at_least=new.at_least - base.at_least,
            at_most=new.at_most - base.at_most,
            exactly=new.exactly
        ),
        new_target=new_target,
        effective_target=effective_target,
        edge=edge
    )


def cumulative_table(distribution: Distribution) -> List[TableRow]:
    """One row per achievable sum with its exact and cumulative probabilities."""
    if distribution.total_combinations == 0:
        return []

    n = distribution.total_combinations
    rows: List[TableRow] = []
    below = 0
    for total, count in distribution.combinations.items():
        rows.append(TableRow(
            total=total,
            count=count,
            probability=float(Fraction(count, n)),
            at_most=float(Fraction(below + count, n)),
            at_least=float(Fraction(n - below, n))
        ))
        below += count
    return rows
