# tests/test_sort_keys.py

from __future__ import annotations

import pytest

from boardsync.board.sort_keys import SortKeyAllocator, allocate, is_collision


def test_midpoint_between_neighbours() -> None:
    assert SortKeyAllocator().allocate(10, 20) == 15
    assert SortKeyAllocator().allocate(-7, 8) == 0


@pytest.mark.parametrize(("a", "b"), [(0, 1), (5, 6), (10, 11), (-3, 100), (1, 10**15)])
def test_key_stays_within_bounds(a: int, b: int) -> None:
    key = SortKeyAllocator().allocate(a, b)

    assert a <= key <= b


def test_adjacent_keys_collapse_onto_a_neighbour() -> None:
    # integer resolution exhausted: keys are not renormalised
    key = SortKeyAllocator().allocate(5, 6)

    assert key == 5
    assert is_collision(key, 5, 6)
    assert not is_collision(15, 10, 20)


def test_time_keys_strictly_increase_even_with_a_frozen_clock() -> None:
    allocator = SortKeyAllocator(clock=lambda: 1_000)

    first = allocator.allocate(None, None)
    second = allocator.allocate(None, None)

    assert first == 1_000
    assert second > first


def test_module_level_allocate_time_keys_increase() -> None:
    first = allocate(None, None)
    second = allocate(None, None)

    assert second > first


def test_append_uses_now_as_upper_bound() -> None:
    allocator = SortKeyAllocator(clock=lambda: 1_000)

    assert allocator.allocate(20, None) == (20 + 1_000) // 2


def test_append_after_a_future_key_still_sorts_after_it() -> None:
    allocator = SortKeyAllocator(clock=lambda: 1_000)

    assert allocator.allocate(5_000, None) == 5_001


@pytest.mark.parametrize(("next_key", "expected"), [(20, 10), (1, 0), (0, -1), (-5, -6)])
def test_prepend_goes_below_next_key(next_key: int, expected: int) -> None:
    key = SortKeyAllocator().allocate(None, next_key)

    assert key == expected
    assert key < next_key
