from types import SimpleNamespace

from appointly.services.scheduling.conflict_checker import (
    find_conflicts,
    has_conflict,
    intervals_overlap,
    occupied_interval,
)
from conftest import MONDAY, at


def booked(start, end):
    return SimpleNamespace(start_time=at(MONDAY, start), end_time=at(MONDAY, end))


def test_touching_boundary_is_not_a_conflict():
    existing = [booked("10:00", "10:30")]
    assert not has_conflict(at(MONDAY, "10:30"), at(MONDAY, "11:00"), existing)
    assert not has_conflict(at(MONDAY, "09:30"), at(MONDAY, "10:00"), existing)


def test_partial_and_containing_overlaps():
    existing = [booked("10:00", "11:00")]
    assert has_conflict(at(MONDAY, "10:45"), at(MONDAY, "11:15"), existing)
    assert has_conflict(at(MONDAY, "09:45"), at(MONDAY, "10:15"), existing)
    assert has_conflict(at(MONDAY, "10:15"), at(MONDAY, "10:30"), existing)
    assert has_conflict(at(MONDAY, "09:00"), at(MONDAY, "12:00"), existing)


def test_intervals_overlap_is_symmetric():
    a = (at(MONDAY, "09:00"), at(MONDAY, "10:00"))
    b = (at(MONDAY, "09:59"), at(MONDAY, "11:00"))
    assert intervals_overlap(*a, *b) and intervals_overlap(*b, *a)


def test_occupied_interval_includes_buffers():
    start, end = occupied_interval(at(MONDAY, "10:00"), 45, buffer_before=10, buffer_after=5)
    assert start == at(MONDAY, "09:50")
    assert end == at(MONDAY, "10:50")


def test_find_conflicts_returns_only_overlapping_items():
    first, second, third = booked("09:00", "10:00"), booked("10:00", "11:00"), booked("12:00", "13:00")
    assert find_conflicts(at(MONDAY, "09:30"), at(MONDAY, "10:30"), [first, second, third]) == [first, second]
    assert find_conflicts(at(MONDAY, "11:00"), at(MONDAY, "12:00"), [first, second, third]) == []
