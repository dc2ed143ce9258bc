from dataclasses import dataclass
from fractions import Fraction
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
import logging
import math
import threading

from .dice import validate_dice

logger = logging.getLogger(__name__)


class DistributionConfig:
    memoize = True
    max_cached_prefixes = 4096
    # Total sum -> count pairs held across all cached prefixes
    max_cached_entries = 200000


prefix_cache: Dict[Tuple[int, ...], Dict[int, int]] = {}
cached_entries = 0
cache_lock = threading.Lock()


def clear_cache() -> None:
    global cached_entries
    with cache_lock:
        prefix_cache.clear()
        cached_entries = 0


@dataclass(frozen=True)
class Distribution:
    """Exact distribution of the sum of a set of dice.

    `combinations` maps every achievable sum to the number of face
    combinations producing it, and `total_combinations` is the product of
    all side counts (0 when there are no dice). Counts are plain ints so they
    stay exact no matter how many dice are combined.
    """

    combinations: Mapping[int, int]
    total_combinations: int

    def __post_init__(self) -> None:
        ordered = dict(sorted(self.combinations.items()))
        object.__setattr__(self, "combinations", MappingProxyType(ordered))

    def __str__(self) -> str:
        joiner = ",\n"
        items = [(k, float(v)) for k, v in self.probabilities.items()]
        return f"Dist[\n{joiner.join(f'{k}:{v}' for k, v in items)}]"

    @classmethod
    def empty(cls) -> 'Distribution':
        return cls({}, 0)

    @property
    def is_empty(self) -> bool:
        return self.total_combinations == 0

    @property
    def sums(self) -> List[int]:
        return list(self.combinations.keys())

    @property
    def min_sum(self) -> Optional[int]:
        return next(iter(self.combinations), None)

    @property
    def max_sum(self) -> Optional[int]:
        return next(reversed(self.combinations.keys()), None)

    def count(self, total: int) -> int:
        return self.combinations.get(total, 0)

    def probability(self, total: int) -> Fraction:
        if self.is_empty:
            return Fraction(0)
        return Fraction(self.count(total), self.total_combinations)

    @property
    def probabilities(self) -> Dict[int, Fraction]:
        if self.is_empty:
            return {}
        return {x: Fraction(c, self.total_combinations) for x, c in self.combinations.items()}

    @property
    def mean(self) -> Optional[Fraction]:
        if self.is_empty:
            return None
        return Fraction(sum(x * c for x, c in self.combinations.items()), self.total_combinations)

    def most_likely(self) -> List[int]:
        """All sums sharing the highest combination count, ascending."""
        if not self.combinations:
            return []
        best = max(self.combinations.values())
        return [x for x, c in self.combinations.items() if c == best]

    def __hash__(self) -> int:
        return hash((frozenset(self.combinations.items()), self.total_combinations))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Distribution):
            return False
        return (self.total_combinations == other.total_combinations
                and dict(self.combinations) == dict(other.combinations))


def uniform_counts(sides: int) -> Dict[int, int]:
    return {face: 1 for face in range(1, sides + 1)}


def convolve(combinations: Mapping[int, int], sides: int) -> Dict[int, int]:
    """Add one die with `sides` faces to a sum -> count mapping.

    Every existing sum contributes its count to each of sum+1 .. sum+sides.
    """
    validate_dice((sides,))
    result: Dict[int, int] = {}
    for current_sum, current_count in combinations.items():
        for face in range(1, sides + 1):
            new_sum = current_sum + face
            result[new_sum] = result.get(new_sum, 0) + current_count
    return result


def _combinations(dice: Tuple[int, ...]) -> Dict[int, int]:
    counts = uniform_counts(dice[0])
    for sides in dice[1:]:
        counts = convolve(counts, sides)
    return counts


def _remember(prefix: Tuple[int, ...], counts: Dict[int, int]) -> None:
    global cached_entries
    size = len(counts)
    if size > DistributionConfig.max_cached_entries:
        return
    with cache_lock:
        if (len(prefix_cache) >= DistributionConfig.max_cached_prefixes
                or cached_entries + size > DistributionConfig.max_cached_entries):
            logger.debug("Prefix cache full at %d prefixes, %d entries, clearing",
                         len(prefix_cache), cached_entries)
            prefix_cache.clear()
            cached_entries = 0
        if prefix not in prefix_cache:
            prefix_cache[prefix] = counts
            cached_entries += size


def _memoized_combinations(dice: Tuple[int, ...]) -> Dict[int, int]:
    # Resume from the longest prefix we have already convolved
    start = len(dice)
    counts: Optional[Dict[int, int]] = None
    while start > 0:
        counts = prefix_cache.get(dice[:start])
        if counts is not None:
            break
        start -= 1

    if counts is not None:
        logger.debug("Reusing cached convolution of %d of %d dice", start, len(dice))
    else:
        start = 1
        counts = uniform_counts(dice[0])
        _remember(dice[:1], counts)

    # Cached mappings are never mutated; convolve always returns a fresh dict
    for index in range(start, len(dice)):
        counts = convolve(counts, dice[index])
        _remember(dice[:index + 1], counts)
    return counts


def build(dice: Iterable[int]) -> Distribution:
    """Build the exact sum distribution for a set of dice.

    Raises InvalidInputError if any die has fewer than one side; nothing is
    computed in that case. No dice gives the empty distribution.
    """
    sides_list = validate_dice(dice)
    if not sides_list:
        return Distribution.empty()

    if DistributionConfig.memoize:
        counts = _memoized_combinations(sides_list)
    else:
        counts = _combinations(sides_list)

    result = Distribution(counts, math.prod(sides_list))
    logger.debug("Built distribution for %d dice: %d sums, %d combinations",
                 len(sides_list), len(result.combinations), result.total_combinations)
    return result


if __name__ == "__main__":
    print(build([6, 6]))
