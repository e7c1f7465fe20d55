# ============================================================================
# appointly/services/schedule_exception/schedule_exception_service.py
# Per-employee, per-date overrides consulted before regular working hours
# ============================================================================
import calendar
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from appointly.core.exceptions import ConfigurationError, ExceptionConflict, NotFoundError, ValidationError
from appointly.models.employee import Employee
from appointly.models.enums import BLOCKING_EXCEPTION_TYPES, ExceptionType
from appointly.models.schedule_exception import ScheduleException
from appointly.services.scheduling.schedule_resolver import parse_hhmm
from appointly.schemas.schedule_exception import (
    AllEmployeesExceptionCreate,
    BulkExceptionResult,
    ConsolidatedExceptionGroup,
    ScheduleExceptionCreate,
    ScheduleExceptionFilter,
    ScheduleExceptionRangeCreate,
    ScheduleExceptionResponse,
    ScheduleExceptionUpdate,
)

logger = logging.getLogger(__name__)


def _date_range(start: date, end: date) -> List[date]:
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def _valid_hours(start: Optional[str], end: Optional[str]) -> bool:
    try:
        return parse_hhmm(start) < parse_hhmm(end)
    except ConfigurationError:
        return False


class ScheduleExceptionService:
    """Handles schedule exception operations"""

    @staticmethod
    def _employee_in_business(db: Session, business_id: UUID, employee_id: UUID) -> Employee:
        employee = db.query(Employee).filter(
            Employee.id == employee_id,
            Employee.business_id == business_id
        ).first()
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    @staticmethod
    def _commit_or_conflict(db: Session, message: str):
        # uq_schedule_exception_employee_date catches writers racing past the pre-check
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Schedule exception insert rejected by unique constraint: {e.orig}")
            raise ExceptionConflict(message)

    @staticmethod
    def create(db: Session, business_id: UUID, data: ScheduleExceptionCreate) -> ScheduleException:
        """Create one exception; fails if the employee already has one on that date"""
        ScheduleExceptionService._employee_in_business(db, business_id, data.employee_id)

        existing = db.query(ScheduleException.id).filter(
            ScheduleException.employee_id == data.employee_id,
            ScheduleException.date == data.date
        ).first()
        if existing:
            raise ExceptionConflict(f"An exception already exists for {data.date.isoformat()}")

        is_modified = data.type == ExceptionType.MODIFIED_HOURS
        exception = ScheduleException(
            id=uuid4(),
            employee_id=data.employee_id,
            date=data.date,
            type=data.type.value,
            reason=data.reason,
            start_time=data.start_time if is_modified else None,
            end_time=data.end_time if is_modified else None,
        )
        db.add(exception)
        ScheduleExceptionService._commit_or_conflict(
            db, f"An exception already exists for {data.date.isoformat()}"
        )
        db.refresh(exception)

        logger.info(f"Created {exception.type} exception for employee {data.employee_id} on {data.date}")
        return exception

    @staticmethod
    def create_range(
            db: Session,
            business_id: UUID,
            data: ScheduleExceptionRangeCreate
    ) -> List[ScheduleException]:
        """Mark an employee unavailable for every date in the range, all or nothing"""
        ScheduleExceptionService._employee_in_business(db, business_id, data.employee_id)
        dates = _date_range(data.date_from, data.date_to)

        existing = db.query(ScheduleException.date).filter(
            ScheduleException.employee_id == data.employee_id,
            ScheduleException.date.in_(dates)
        ).order_by(ScheduleException.date.asc()).all()
        if existing:
            existing_dates = ", ".join(row.date.isoformat() for row in existing)
            raise ExceptionConflict(f"Exceptions already exist for: {existing_dates}")

        exceptions = [
            ScheduleException(
                id=uuid4(),
                employee_id=data.employee_id,
                date=day,
                type=ExceptionType.UNAVAILABLE.value,
                reason=data.reason,
            )
            for day in dates
        ]
        db.add_all(exceptions)
        ScheduleExceptionService._commit_or_conflict(db, "Exceptions already exist in this range")

        logger.info(f"Created {len(exceptions)} unavailable exceptions for employee {data.employee_id}")
        return exceptions

    @staticmethod
    def create_for_all_employees(
            db: Session,
            business_id: UUID,
            data: AllEmployeesExceptionCreate
    ) -> BulkExceptionResult:
        """Create the exception for every active employee, skipping dates already taken"""
        dates = _date_range(data.date, data.date_range_end or data.date)

        employees = db.query(Employee).filter(
            Employee.business_id == business_id,
            Employee.is_active == True,
            Employee.can_perform_services == True
        ).order_by(Employee.name.asc()).all()
        if not employees:
            raise NotFoundError("No active employees found")

        if data.employee_ids:
            wanted = set(data.employee_ids)
            employees = [e for e in employees if e.id in wanted]

        existing_keys = {
            (row.employee_id, row.date)
            for row in db.query(ScheduleException.employee_id, ScheduleException.date).filter(
                ScheduleException.employee_id.in_([e.id for e in employees]),
                ScheduleException.date.in_(dates)
            ).all()
        }

        to_create = []
        skipped = 0
        for employee in employees:
            for day in dates:
                if (employee.id, day) in existing_keys:
                    skipped += 1
                    continue
                to_create.append(ScheduleException(
                    id=uuid4(),
                    employee_id=employee.id,
                    date=day,
                    type=data.type,
                    reason=data.reason,
                ))

        if to_create:
            db.add_all(to_create)
            ScheduleExceptionService._commit_or_conflict(db, "Exceptions changed concurrently, retry")

        logger.info(
            f"Business {business_id}: created {len(to_create)} {data.type} exceptions, skipped {skipped}"
        )
        return BulkExceptionResult(
            created=len(to_create),
            skipped=skipped,
            employees=[e.name for e in employees],
        )

    @staticmethod
    def get_by_id(db: Session, business_id: UUID, exception_id: UUID) -> ScheduleException:
        exception = db.query(ScheduleException).join(ScheduleException.employee).filter(
            ScheduleException.id == exception_id,
            Employee.business_id == business_id
        ).first()
        if not exception:
            raise NotFoundError(f"Schedule exception {exception_id} not found")
        return exception

    @staticmethod
    def update(
            db: Session,
            business_id: UUID,
            exception_id: UUID,
            data: ScheduleExceptionUpdate
    ) -> ScheduleException:
        exception = ScheduleExceptionService.get_by_id(db, business_id, exception_id)
        changes = data.model_dump(exclude_unset=True)

        new_date = changes.get("date", exception.date)
        if new_date != exception.date:
            clash = db.query(ScheduleException.id).filter(
                ScheduleException.employee_id == exception.employee_id,
                ScheduleException.date == new_date,
                ScheduleException.id != exception.id
            ).first()
            if clash:
                raise ExceptionConflict(f"An exception already exists for {new_date.isoformat()}")

        for field, value in changes.items():
            if isinstance(value, ExceptionType):
                value = value.value
            setattr(exception, field, value)

        if exception.type != ExceptionType.MODIFIED_HOURS.value:
            exception.start_time = None
            exception.end_time = None
        elif not _valid_hours(exception.start_time, exception.end_time):
            db.rollback()
            raise ValidationError("modified_hours requires start_time before end_time")

        ScheduleExceptionService._commit_or_conflict(
            db, f"An exception already exists for {new_date.isoformat()}"
        )
        db.refresh(exception)
        return exception

    @staticmethod
    def delete(db: Session, business_id: UUID, exception_id: UUID, today: Optional[date] = None) -> None:
        """Delete an exception; past exceptions are kept for reporting"""
        exception = ScheduleExceptionService.get_by_id(db, business_id, exception_id)
        today = today or date.today()

        if exception.date < today:
            raise ValidationError("Past exceptions cannot be deleted")

        db.delete(exception)
        db.commit()

    @staticmethod
    def list(
            db: Session,
            business_id: UUID,
            filters: Optional[ScheduleExceptionFilter] = None
    ) -> List[ScheduleException]:
        filters = filters or ScheduleExceptionFilter()
        query = db.query(ScheduleException).join(ScheduleException.employee).filter(
            Employee.business_id == business_id
        )

        if filters.employee_id:
            query = query.filter(ScheduleException.employee_id == filters.employee_id)
        if filters.types:
            query = query.filter(ScheduleException.type.in_([t.value for t in filters.types]))

        if filters.month:
            year, month = (int(part) for part in filters.month.split("-"))
            last_day = calendar.monthrange(year, month)[1]
            query = query.filter(
                ScheduleException.date >= date(year, month, 1),
                ScheduleException.date <= date(year, month, last_day)
            )
        else:
            if filters.date_from:
                query = query.filter(ScheduleException.date >= filters.date_from)
            if filters.date_to:
                query = query.filter(ScheduleException.date <= filters.date_to)

        return query.order_by(ScheduleException.date.asc()).all()

    @staticmethod
    def get_by_employee_and_date_range(
            db: Session,
            employee_id: UUID,
            date_from: date,
            date_to: date
    ) -> List[ScheduleException]:
        return db.query(ScheduleException).filter(
            ScheduleException.employee_id == employee_id,
            ScheduleException.date >= date_from,
            ScheduleException.date <= date_to
        ).order_by(ScheduleException.date.asc()).all()

    @staticmethod
    def is_employee_available(
            db: Session,
            employee_id: UUID,
            day: date
    ) -> Tuple[bool, Optional[ScheduleException]]:
        """
        (available, exception) for the date.

        unavailable and holiday block the whole day; modified_hours leaves the
        employee available with different hours.
        """
        exception = db.query(ScheduleException).filter(
            ScheduleException.employee_id == employee_id,
            ScheduleException.date == day
        ).first()

        if not exception:
            return True, None

        if exception.type in BLOCKING_EXCEPTION_TYPES:
            return False, exception

        return True, exception

    @staticmethod
    def get_holidays(db: Session, business_id: UUID, year: int) -> List[ScheduleException]:
        return ScheduleExceptionService.list(db, business_id, ScheduleExceptionFilter(
            types=[ExceptionType.HOLIDAY],
            date_from=date(year, 1, 1),
            date_to=date(year, 12, 31),
        ))

    @staticmethod
    def get_consolidated(
            db: Session,
            business_id: UUID,
            filters: Optional[ScheduleExceptionFilter] = None
    ) -> List[ConsolidatedExceptionGroup]:
        """Group exceptions by (date, reason) so a team-wide closure shows once"""
        groups: Dict[Tuple[date, str], ConsolidatedExceptionGroup] = {}

        for exception in ScheduleExceptionService.list(db, business_id, filters):
            key = (exception.date, exception.reason or "")
            group = groups.get(key)
            if group is None:
                group = ConsolidatedExceptionGroup(
                    date=exception.date,
                    reason=exception.reason,
                    type=exception.type,
                )
                groups[key] = group

            group.employee_ids.append(exception.employee_id)
            if exception.employee:
                group.employee_names.append(exception.employee.name)
            group.exceptions.append(ScheduleExceptionResponse.model_validate(exception))

        return sorted(groups.values(), key=lambda g: g.date)
