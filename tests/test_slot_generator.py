from types import SimpleNamespace

import pytest

from appointly.services.scheduling.schedule_resolver import WorkingBlock
from appointly.services.scheduling.slot_generator import coarsen_slots, generate_slots
from conftest import MONDAY, at


def block(start, end):
    return WorkingBlock(at(MONDAY, start), at(MONDAY, end))


def starts(slots):
    return [s.start_time.strftime("%H:%M") for s in slots]


def test_total_length_with_buffer_must_fit_the_block():
    slots = generate_slots([block("09:00", "10:00")], [], service_duration=45, buffer_after=5)
    assert starts(slots) == ["09:00"]
    assert slots[0].end_time == at(MONDAY, "09:45")


def test_buffer_before_also_counts_towards_the_fit():
    slots = generate_slots([block("09:00", "10:00")], [], service_duration=30, buffer_before=20, buffer_after=10)
    assert starts(slots) == ["09:00"]


def test_fixed_fifteen_minute_step():
    slots = generate_slots([block("09:00", "10:00")], [], service_duration=30)
    assert starts(slots) == ["09:00", "09:15", "09:30"]


def test_no_slot_spans_the_lunch_gap():
    slots = generate_slots([block("09:00", "12:00"), block("13:00", "15:00")], [], service_duration=60)
    assert starts(slots) == [
        "09:00", "09:15", "09:30", "09:45", "10:00", "10:15", "10:30", "10:45", "11:00",
        "13:00", "13:15", "13:30", "13:45", "14:00",
    ]


def test_existing_appointments_remove_overlapping_candidates():
    existing = [SimpleNamespace(start_time=at(MONDAY, "10:00"), end_time=at(MONDAY, "11:00"))]
    slots = generate_slots([block("09:00", "12:00")], existing, service_duration=60)
    assert starts(slots) == ["09:00", "11:00"]


def test_candidate_buffers_are_checked_against_existing_appointments():
    existing = [SimpleNamespace(start_time=at(MONDAY, "10:00"), end_time=at(MONDAY, "10:30"))]
    slots = generate_slots([block("09:00", "11:30")], existing, service_duration=30, buffer_after=15)
    # 09:15 occupies [09:15, 10:00); 09:30 would run its buffer into 10:00
    assert starts(slots) == ["09:00", "09:15", "10:30", "10:45"]


def test_slots_carry_employee():
    slots = generate_slots([block("09:00", "09:30")], [], 30, employee_id="e-1", employee_name="Mara")
    assert (slots[0].employee_id, slots[0].employee_name, slots[0].available) == ("e-1", "Mara", True)


def test_invalid_step():
    with pytest.raises(ValueError):
        generate_slots([block("09:00", "10:00")], [], 30, step_minutes=0)


def test_coarsen_to_display_interval():
    slots = generate_slots([block("09:15", "11:00")], [], service_duration=15)
    assert starts(coarsen_slots(slots, 30)) == ["09:30", "10:00", "10:30"]
    assert starts(coarsen_slots(slots, 60)) == ["10:00"]


def test_coarsen_at_generation_step_is_a_no_op():
    slots = generate_slots([block("09:00", "10:00")], [], service_duration=15)
    assert coarsen_slots(slots, 15) == slots
    assert coarsen_slots(slots, 5) == slots
