# appointly/services/scheduling/slot_generator.py
"""Candidate slot enumeration inside working blocks"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from appointly.services.scheduling.conflict_checker import has_conflict, occupied_interval
from appointly.services.scheduling.schedule_resolver import WorkingBlock

# Generation granularity is fixed; display coarsening happens in coarsen_slots
SLOT_STEP_MINUTES = 15


@dataclass(frozen=True)
class AvailableEmployee:
    id: str
    name: Optional[str] = None


@dataclass
class TimeSlot:
    """Ephemeral availability result, recomputed on every query"""
    start_time: datetime
    end_time: datetime
    employee_id: Optional[str] = None
    employee_name: Optional[str] = None
    available: bool = True
    available_employee_count: Optional[int] = None
    available_employees: List[AvailableEmployee] = field(default_factory=list)


def generate_slots(
        working_blocks: Sequence[WorkingBlock],
        existing_appointments: Iterable,
        service_duration: int,
        buffer_before: int = 0,
        buffer_after: int = 0,
        step_minutes: int = SLOT_STEP_MINUTES,
        employee_id: Optional[str] = None,
        employee_name: Optional[str] = None,
) -> List[TimeSlot]:
    """
    Available slots for one employee.

    A candidate start fits a block when candidate + duration + both buffers
    ends at or before the block end. Blocks are walked independently, so no
    slot spans the lunch gap. The walk always advances by `step_minutes`.
    """
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")

    appointments = list(existing_appointments)
    total = timedelta(minutes=service_duration + buffer_before + buffer_after)
    step = timedelta(minutes=step_minutes)
    duration = timedelta(minutes=service_duration)

    slots = []
    for block in working_blocks:
        candidate = block.start
        while candidate + total <= block.end:
            occupied_start, occupied_end = occupied_interval(
                candidate, service_duration, buffer_before, buffer_after
            )
            if not has_conflict(occupied_start, occupied_end, appointments):
                slots.append(TimeSlot(
                    start_time=candidate,
                    end_time=candidate + duration,
                    employee_id=employee_id,
                    employee_name=employee_name,
                    available=True,
                ))
            candidate += step

    return slots


def coarsen_slots(slots: Iterable[TimeSlot], display_interval_minutes: int) -> List[TimeSlot]:
    """Keep slots starting on the display grid (e.g. every 30 minutes from midnight)"""
    if display_interval_minutes <= SLOT_STEP_MINUTES:
        return list(slots)

    return [
        slot for slot in slots
        if (slot.start_time.hour * 60 + slot.start_time.minute) % display_interval_minutes == 0
    ]
