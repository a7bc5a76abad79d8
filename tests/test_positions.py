"""
Feature: Fractional positions
  As the board engine
  I want to compute positions for new and dropped items
  So that lists and cards keep a stable order without renumbering siblings

Scenario: Drop between two cards
  Given cards at positions 1.0 and 2.0
  When a card is dropped between them
  Then it gets position 1.5

Scenario: Drop at the head or tail
  Given cards ending at 3.0 and starting at 2.0
  When a card is dropped at the tail or head
  Then it gets 4.0 at the tail and 1.0 at the head

Scenario: Gap collapse
  Given two neighbours closer than the epsilon
  When the gap is checked
  Then renormalization is required and assigns 0..n-1
"""

from dataclasses import dataclass
from store.positions import (
    POSITION_EPSILON,
    drop_position,
    find_index,
    gap_collapsed,
    head_position,
    next_position,
    position_between,
    renormalize,
    sort_by_position,
    tail_position,
)


@dataclass
class Item:
    id: str
    position: float


def test_midpoint_between_neighbours():
    assert position_between(1.0, 2.0) == 1.5
    assert drop_position([1.0, 2.0], 1) == 1.5


def test_head_and_tail_positions():
    assert head_position(2.0) == 1.0
    assert tail_position(3.0) == 4.0
    assert drop_position([2.0, 3.0], 0) == 1.0
    assert drop_position([2.0, 3.0], 2) == 4.0
    assert drop_position([2.0, 3.0], 10) == 4.0


def test_head_position_moves_below_non_positive_first():
    # Halving zero would collide with the first item
    assert head_position(0.0) == -1.0
    assert head_position(-2.0) == -3.0


def test_drop_into_empty_sequence():
    assert drop_position([], 0) == 0.0
    assert drop_position([], 3) == 0.0


def test_next_position():
    assert next_position([]) == 0
    assert next_position([0.0, 1.0, 2.0]) == 3.0
    assert next_position([5.0, 0.5]) == 6.0


def test_sort_is_stable_for_ties():
    items = [Item("a", 1.0), Item("b", 0.0), Item("c", 1.0)]
    assert [item.id for item in sort_by_position(items)] == ["b", "a", "c"]


def test_gap_collapsed():
    assert not gap_collapsed([0.0, 0.5, 1.0], 1)
    assert gap_collapsed([0.0, POSITION_EPSILON / 10, 1.0], 1)
    assert gap_collapsed([0.0, 1.0 - POSITION_EPSILON / 10, 1.0], 1)


def test_renormalize_returns_changed_items_only():
    items = [Item("a", 0.0), Item("b", 0.25), Item("c", 7.0)]

    changed = renormalize(items)

    assert [item.position for item in items] == [0.0, 1.0, 2.0]
    assert [item.id for item in changed] == ["b", "c"]
    assert find_index(items, "c") == 2
    assert find_index(items, "missing") is None
