# appointly/services/scheduling/conflict_checker.py
"""Interval overlap checks on buffer-expanded appointment intervals"""
from datetime import datetime, timedelta
from typing import Iterable, List, Tuple


def intervals_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Half-open overlap: touching endpoints do not conflict"""
    return start1 < end2 and end1 > start2


def occupied_interval(
        requested_start: datetime,
        duration: int,
        buffer_before: int = 0,
        buffer_after: int = 0,
) -> Tuple[datetime, datetime]:
    """Time an appointment actually blocks, buffers included"""
    return (
        requested_start - timedelta(minutes=buffer_before),
        requested_start + timedelta(minutes=duration + buffer_after),
    )


def find_conflicts(candidate_start: datetime, candidate_end: datetime, existing: Iterable) -> List:
    """
    Items of `existing` whose [start_time, end_time) overlaps the candidate.

    `existing` must already be narrowed to one employee and to active
    statuses; both sides must already be buffer-expanded.
    """
    return [
        item for item in existing
        if intervals_overlap(candidate_start, candidate_end, item.start_time, item.end_time)
    ]


def has_conflict(candidate_start: datetime, candidate_end: datetime, existing: Iterable) -> bool:
    return any(
        intervals_overlap(candidate_start, candidate_end, item.start_time, item.end_time)
        for item in existing
    )
