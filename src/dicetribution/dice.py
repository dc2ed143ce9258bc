from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple
import operator

# Quick-pick die types offered to callers configuring a dice set
COMMON_DICE: Tuple[int, ...] = (4, 6, 8, 10, 12, 20, 100)


class InvalidInputError(ValueError):
    """Raised when a die has fewer than one side."""

    def __init__(self, index: int, sides: object):
        self.index = index
        self.sides = sides
        super().__init__(f"Die {index} has invalid side count {sides!r}; every die needs at least 1 side")


def validate_dice(dice: Iterable[int]) -> Tuple[int, ...]:
    """Materialise a dice set as a tuple of ints, rejecting any invalid die.

    Any integer type (anything supporting `__index__`) is accepted and
    converted to a plain int. The whole set is checked before anything is
    returned, so a bad die anywhere in the input means no result at all.
    """
    result: List[int] = []
    for index, sides in enumerate(dice):
        # bool is an int subclass but True is not a die
        if isinstance(sides, bool):
            raise InvalidInputError(index, sides)
        try:
            value = operator.index(sides)
        except TypeError:
            raise InvalidInputError(index, sides) from None
        if value < 1:
            raise InvalidInputError(index, sides)
        result.append(value)
    return tuple(result)


@dataclass(frozen=True)
class DiceGroup:
    count: int  # Number of dice
    sides: int  # Number of sides per die

    def __str__(self) -> str:
        return f"{self.count}d{self.sides}"

    def expand(self) -> List[int]:
        return [self.sides] * self.count

    def to_dict(self) -> Dict[str, int]:
        """Convert to JSON-serializable dictionary"""
        return {
            "count": self.count,
            "sides": self.sides
        }

    @staticmethod
    def from_dict(data: Dict[str, int]) -> 'DiceGroup':
        """Create from JSON-serializable dictionary"""
        return DiceGroup(
            count=data["count"],
            sides=data["sides"]
        )


def group_dice(dice: Iterable[int]) -> List[DiceGroup]:
    """Group equal dice together, keeping the order in which each type first appears."""
    counts: Dict[int, int] = {}
    for sides in validate_dice(dice):
        counts[sides] = counts.get(sides, 0) + 1
    return [DiceGroup(count, sides) for sides, count in counts.items()]


def format_notation(dice: Iterable[int]) -> str:
    """Dice notation for a dice set, e.g. [6, 8, 6] -> "2d6 + 1d8"."""
    return " + ".join(str(group) for group in group_dice(dice))


def expand_groups(groups: Iterable[DiceGroup]) -> List[int]:
    result: List[int] = []
    for group in groups:
        result.extend(group.expand())
    return result
