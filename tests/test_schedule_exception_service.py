from datetime import date, timedelta
from uuid import uuid4

import pydantic
import pytest

from appointly.core.exceptions import ExceptionConflict, NotFoundError, ValidationError
from appointly.models import ScheduleException
from appointly.models.enums import ExceptionType
from appointly.schemas.schedule_exception import (
    AllEmployeesExceptionCreate,
    ScheduleExceptionCreate,
    ScheduleExceptionFilter,
    ScheduleExceptionRangeCreate,
    ScheduleExceptionUpdate,
)
from appointly.services.schedule_exception.schedule_exception_service import ScheduleExceptionService
from conftest import MONDAY, TUESDAY


@pytest.fixture
def staff(seed):
    business = seed.business()
    anna = seed.employee(business, "Anna")
    ben = seed.employee(business, "Ben")
    return business, anna, ben


def day_off(employee, day=MONDAY, **fields):
    fields.setdefault("type", ExceptionType.UNAVAILABLE)
    return ScheduleExceptionCreate(employee_id=employee.id, date=day, **fields)


def test_create_and_availability(db, staff):
    business, anna, _ = staff

    exception = ScheduleExceptionService.create(db, business.id, day_off(anna, reason="Dentist"))

    assert exception.type == "unavailable"
    assert ScheduleExceptionService.is_employee_available(db, anna.id, MONDAY) == (False, exception)
    assert ScheduleExceptionService.is_employee_available(db, anna.id, TUESDAY) == (True, None)


def test_second_exception_on_same_date_conflicts(db, staff):
    business, anna, _ = staff
    ScheduleExceptionService.create(db, business.id, day_off(anna))

    with pytest.raises(ExceptionConflict):
        ScheduleExceptionService.create(db, business.id, day_off(anna, type=ExceptionType.HOLIDAY))


def test_modified_hours_keeps_employee_available(db, staff):
    business, anna, _ = staff
    exception = ScheduleExceptionService.create(db, business.id, day_off(
        anna, type=ExceptionType.MODIFIED_HOURS, start_time="10:00", end_time="14:00"
    ))

    available, found = ScheduleExceptionService.is_employee_available(db, anna.id, MONDAY)
    assert available and found.id == exception.id
    assert (found.start_time, found.end_time) == ("10:00", "14:00")


def test_modified_hours_need_valid_times():
    with pytest.raises(pydantic.ValidationError):
        ScheduleExceptionCreate(employee_id=uuid4(),
                                date=MONDAY, type="modified_hours", start_time="14:00", end_time="10:00")


@pytest.mark.parametrize("clock", ["99:99", "25:00", "09:60"])
def test_modified_hours_reject_out_of_range_clock_times(clock):
    with pytest.raises(pydantic.ValidationError):
        ScheduleExceptionCreate(employee_id=uuid4(), date=MONDAY, type="modified_hours",
                                start_time="08:00", end_time=clock)
    with pytest.raises(pydantic.ValidationError):
        ScheduleExceptionUpdate(start_time=clock)


def test_modified_hours_may_end_at_midnight():
    exception = ScheduleExceptionCreate(employee_id=uuid4(), date=MONDAY, type="modified_hours",
                                        start_time="18:00", end_time="24:00")
    assert exception.end_time == "24:00"


def test_time_fields_ignored_for_non_modified_types(db, staff):
    business, anna, _ = staff
    exception = ScheduleExceptionService.create(db, business.id, day_off(anna, start_time="10:00", end_time="11:00"))
    assert exception.start_time is None and exception.end_time is None


def test_employee_must_belong_to_business(db, seed, staff):
    _, anna, _ = staff
    with pytest.raises(NotFoundError):
        ScheduleExceptionService.create(db, seed.business(name="Other").id, day_off(anna))


def test_range_is_all_or_nothing(db, staff):
    business, anna, _ = staff
    ScheduleExceptionService.create(db, business.id, day_off(anna, day=MONDAY + timedelta(days=2)))

    with pytest.raises(ExceptionConflict) as exc_info:
        ScheduleExceptionService.create_range(db, business.id, ScheduleExceptionRangeCreate(
            employee_id=anna.id, date_from=MONDAY, date_to=MONDAY + timedelta(days=4), reason="Vacation"
        ))

    assert "2030-06-05" in exc_info.value.message
    assert db.query(ScheduleException).count() == 1


def test_range_creates_one_per_day(db, staff):
    business, anna, _ = staff
    created = ScheduleExceptionService.create_range(db, business.id, ScheduleExceptionRangeCreate(
        employee_id=anna.id, date_from=MONDAY, date_to=MONDAY + timedelta(days=4), reason="Vacation"
    ))
    assert [e.date for e in created] == [MONDAY + timedelta(days=i) for i in range(5)]
    assert {e.type for e in created} == {"unavailable"}


def test_all_employees_skips_existing(db, staff):
    business, anna, ben = staff
    ScheduleExceptionService.create(db, business.id, day_off(anna))

    result = ScheduleExceptionService.create_for_all_employees(db, business.id, AllEmployeesExceptionCreate(
        date=MONDAY, date_range_end=TUESDAY, reason="Whit Monday"
    ))

    assert (result.created, result.skipped) == (3, 1)
    assert result.employees == ["Anna", "Ben"]
    stored = db.query(ScheduleException).filter(ScheduleException.reason == "Whit Monday").all()
    assert {e.type for e in stored} == {"holiday"}


def test_all_employees_without_staff(db, seed):
    with pytest.raises(NotFoundError):
        ScheduleExceptionService.create_for_all_employees(db, seed.business().id, AllEmployeesExceptionCreate(
            date=MONDAY, reason="Closed"
        ))


def test_update_and_date_clash(db, staff):
    business, anna, _ = staff
    monday = ScheduleExceptionService.create(db, business.id, day_off(anna))
    tuesday = ScheduleExceptionService.create(db, business.id, day_off(anna, day=TUESDAY))

    with pytest.raises(ExceptionConflict):
        ScheduleExceptionService.update(db, business.id, tuesday.id, ScheduleExceptionUpdate(date=MONDAY))

    updated = ScheduleExceptionService.update(db, business.id, monday.id, ScheduleExceptionUpdate(
        type=ExceptionType.MODIFIED_HOURS, start_time="12:00", end_time="16:00"
    ))
    assert (updated.type, updated.start_time, updated.end_time) == ("modified_hours", "12:00", "16:00")

    with pytest.raises(ValidationError):
        ScheduleExceptionService.update(db, business.id, monday.id, ScheduleExceptionUpdate(end_time="11:00"))


@pytest.mark.parametrize("field", ["date", "type"])
def test_update_rejects_null_date_or_type(db, staff, field):
    business, anna, _ = staff
    exception = ScheduleExceptionService.create(db, business.id, day_off(anna))

    with pytest.raises(pydantic.ValidationError):
        ScheduleExceptionUpdate.model_validate({field: None})

    # omitted fields are left alone
    updated = ScheduleExceptionService.update(db, business.id, exception.id, ScheduleExceptionUpdate(reason=None))
    assert (updated.date, updated.type, updated.reason) == (MONDAY, "unavailable", None)


def test_past_exceptions_cannot_be_deleted(db, staff):
    business, anna, _ = staff
    exception = ScheduleExceptionService.create(db, business.id, day_off(anna))

    with pytest.raises(ValidationError):
        ScheduleExceptionService.delete(db, business.id, exception.id, today=MONDAY + timedelta(days=1))

    ScheduleExceptionService.delete(db, business.id, exception.id, today=MONDAY)
    with pytest.raises(NotFoundError):
        ScheduleExceptionService.get_by_id(db, business.id, exception.id)


def test_list_filters(db, staff):
    business, anna, ben = staff
    ScheduleExceptionService.create(db, business.id, day_off(anna))
    ScheduleExceptionService.create(db, business.id, day_off(ben, type=ExceptionType.HOLIDAY, reason="Holiday"))
    ScheduleExceptionService.create(db, business.id, day_off(ben, day=date(2030, 7, 1)))

    assert len(ScheduleExceptionService.list(db, business.id)) == 3
    assert len(ScheduleExceptionService.list(db, business.id, ScheduleExceptionFilter(month="2030-06"))) == 2
    assert len(ScheduleExceptionService.list(db, business.id, ScheduleExceptionFilter(employee_id=ben.id))) == 2
    holidays = ScheduleExceptionService.get_holidays(db, business.id, 2030)
    assert [h.employee_id for h in holidays] == [ben.id]
    assert len(ScheduleExceptionService.get_by_employee_and_date_range(db, ben.id, MONDAY, TUESDAY)) == 1


@pytest.mark.parametrize("month", ["2030-13", "2030-00", "2030-6"])
def test_month_filter_must_be_a_calendar_month(month):
    with pytest.raises(pydantic.ValidationError):
        ScheduleExceptionFilter(month=month)


def test_consolidated_groups_by_date_and_reason(db, staff):
    business, anna, ben = staff
    ScheduleExceptionService.create_for_all_employees(db, business.id, AllEmployeesExceptionCreate(
        date=MONDAY, reason="Whit Monday"
    ))
    ScheduleExceptionService.create(db, business.id, day_off(anna, day=TUESDAY, reason="Dentist"))

    groups = ScheduleExceptionService.get_consolidated(db, business.id)

    assert [(g.date, g.reason) for g in groups] == [(MONDAY, "Whit Monday"), (TUESDAY, "Dentist")]
    assert sorted(groups[0].employee_names) == ["Anna", "Ben"]
    assert len(groups[0].exceptions) == 2
