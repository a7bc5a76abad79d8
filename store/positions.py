"""
Fractional positions for lists and cards.

Positions are plain floats. New items go to ``max + 1``, drops between two
neighbours take their midpoint, and a collection is renumbered to
``0..n-1`` once two neighbours get closer than ``POSITION_EPSILON``.
"""

from typing import Iterable, List, Optional, Sequence, TypeVar

POSITION_EPSILON = 1e-9

T = TypeVar("T")


def sort_by_position(items: Iterable[T]) -> List[T]:
    """Stable ascending sort; ties keep their current relative order."""
    return sorted(items, key=lambda item: item.position)


def next_position(positions: Iterable[float]) -> float:
    """Position for appending after every existing item (0 when empty)."""
    return max(positions, default=-1.0) + 1


def position_between(before: float, after: float) -> float:
    return (before + after) / 2


def head_position(first: float) -> float:
    # Halving only moves a position towards the head while it is positive.
    if first > 0:
        return first / 2
    return first - 1


def tail_position(last: float) -> float:
    return last + 1


def drop_position(positions: Sequence[float], index: int) -> float:
    """Position for dropping an item at ``index`` of an ordered sequence.

    ``positions`` must be sorted and must not include the dragged item.
    """
    if not positions:
        return 0.0
    if index <= 0:
        return head_position(positions[0])
    if index >= len(positions):
        return tail_position(positions[-1])
    return position_between(positions[index - 1], positions[index])


def gap_collapsed(positions: Sequence[float], index: int, epsilon: float = POSITION_EPSILON) -> bool:
    """True when the item at ``index`` is within ``epsilon`` of a neighbour."""
    current = positions[index]
    if index > 0 and current - positions[index - 1] < epsilon:
        return True
    if index + 1 < len(positions) and positions[index + 1] - current < epsilon:
        return True
    return False


def renormalize(ordered_items: Sequence[T]) -> List[T]:
    """Assign integer positions 0..n-1 in the given order.

    Returns only the items whose position actually changed.
    """
    changed = []
    for index, item in enumerate(ordered_items):
        target = float(index)
        if item.position != target:
            item.position = target
            changed.append(item)
    return changed


def find_index(items: Sequence[T], item_id: str) -> Optional[int]:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return None
