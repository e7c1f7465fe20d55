# ============================================================================
# appointly/services/availability/availability_service.py
# Bookable slots per service/date, merged across the team
# ============================================================================
"""
Availability is recomputed on every query and never stored.

The read path takes no locks: a slot shown here can be gone by the time it is
booked, and the write path in AppointmentService re-checks before inserting.
"""
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from appointly.core.exceptions import ValidationError
from appointly.models.employee import Employee
from appointly.schemas.availability import (
    DayAvailabilityResponse,
    EmployeeWorkingBlocksResponse,
    WorkingBlockResponse,
)
from appointly.services.appointment.appointment_service import AppointmentService
from appointly.services.business.business_service import BusinessService
from appointly.services.catalog.service_catalog import ServiceCatalog
from appointly.services.employee.employee_service import EmployeeService
from appointly.services.schedule_exception.schedule_exception_service import ScheduleExceptionService
from appointly.services.scheduling.conflict_checker import has_conflict, occupied_interval
from appointly.services.scheduling.distribution import (
    EmployeeDistributionStrategy,
    FairDistributionStrategy,
)
from appointly.services.scheduling.schedule_resolver import WorkingBlock, resolve_working_blocks
from appointly.services.scheduling.slot_generator import (
    AvailableEmployee,
    TimeSlot,
    coarsen_slots,
    generate_slots,
)
from appointly.utils.timezone import localize, to_local

logger = logging.getLogger(__name__)

MAX_DATE_RANGE_DAYS = 62


def _days(start: date, end: date) -> List[date]:
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


class AvailabilityService:
    """Computes available time slots from working hours, exceptions and bookings"""

    @staticmethod
    def _resolve_blocks(
            db: Session,
            business_hours: Optional[Dict],
            employee: Employee,
            day: date
    ) -> List[WorkingBlock]:
        available, exception = ScheduleExceptionService.is_employee_available(db, employee.id, day)
        if not available:
            logger.debug(f"Employee {employee.id} blocked on {day} by {exception.type} exception")
            return []
        return resolve_working_blocks(day, business_hours, employee.working_hours, exception)

    @staticmethod
    def _candidate_employees(
            db: Session,
            business_id: UUID,
            service_id: UUID,
            employee_id: Optional[UUID]
    ) -> List[Employee]:
        if employee_id:
            return [EmployeeService.get_employee(db, business_id, employee_id)]
        return EmployeeService.list_for_service(db, business_id, service_id)

    @staticmethod
    def get_available_slots(
            db: Session,
            business_id: UUID,
            service_id: UUID,
            day: date,
            employee_id: Optional[UUID] = None,
            strategy: Optional[EmployeeDistributionStrategy] = None,
            display_interval_minutes: Optional[int] = None
    ) -> List[TimeSlot]:
        """
        One merged slot per start time, each listing every eligible employee.

        The slot's employee_id/employee_name is the default nominated by the
        distribution strategy (fewest active appointments on the date wins).
        """
        service = ServiceCatalog.get_service(db, business_id, service_id)
        business = BusinessService.get_business(db, business_id)
        employees = AvailabilityService._candidate_employees(db, business_id, service_id, employee_id)

        if not service.is_active:
            logger.info(f"Service {service_id} is inactive, no slots offered")
            return []

        per_start: Dict[datetime, List[TimeSlot]] = {}
        for employee in employees:
            if not employee.is_active or not employee.can_perform_services:
                continue

            blocks = AvailabilityService._resolve_blocks(db, business.business_hours, employee, day)
            if not blocks:
                continue

            # buffers can reach into the neighbouring days
            window = (
                min(block.start for block in blocks) - timedelta(minutes=service.buffer_before or 0),
                max(block.end for block in blocks) + timedelta(minutes=service.buffer_after or 0),
            )
            booked = AppointmentService.list_active(db, business_id, employee.id, window)
            for slot in generate_slots(
                    blocks,
                    booked,
                    service.duration,
                    service.buffer_before or 0,
                    service.buffer_after or 0,
                    employee_id=str(employee.id),
                    employee_name=employee.name,
            ):
                per_start.setdefault(slot.start_time, []).append(slot)

        if not per_start:
            return []

        strategy = strategy or FairDistributionStrategy()
        counts = AppointmentService.count_active_by_employee(
            db, business_id, [employee.id for employee in employees], day
        )

        merged = []
        for start_time in sorted(per_start):
            slots = per_start[start_time]
            candidates = [AvailableEmployee(id=s.employee_id, name=s.employee_name) for s in slots]
            chosen = strategy.choose(candidates, counts)
            merged.append(TimeSlot(
                start_time=start_time,
                end_time=slots[0].end_time,
                employee_id=chosen.id if chosen else None,
                employee_name=chosen.name if chosen else None,
                available=True,
                available_employee_count=len(candidates),
                available_employees=candidates,
            ))

        if display_interval_minutes:
            merged = coarsen_slots(merged, display_interval_minutes)

        return merged

    @staticmethod
    def suggest_employee(
            db: Session,
            business_id: UUID,
            service_id: UUID,
            requested_start: datetime,
            strategy: Optional[EmployeeDistributionStrategy] = None
    ) -> Optional[AvailableEmployee]:
        """Default employee of the merged slot starting at `requested_start`, if any"""
        slots = AvailabilityService.get_available_slots(
            db, business_id, service_id, requested_start.date(), strategy=strategy
        )
        for slot in slots:
            if slot.start_time == requested_start and slot.employee_id:
                return AvailableEmployee(id=slot.employee_id, name=slot.employee_name)
        return None

    @staticmethod
    def get_available_dates(
            db: Session,
            business_id: UUID,
            service_id: UUID,
            start_date: date,
            end_date: date,
            employee_id: Optional[UUID] = None
    ) -> List[DayAvailabilityResponse]:
        """Which dates in [start_date, end_date] have at least one slot (date picker)"""
        AvailabilityService._check_range(start_date, end_date)

        # Shared distribution object; the nominee is irrelevant here
        strategy = FairDistributionStrategy()
        days = []
        current = start_date
        while current <= end_date:
            slots = AvailabilityService.get_available_slots(
                db, business_id, service_id, current, employee_id=employee_id, strategy=strategy
            )
            days.append(DayAvailabilityResponse(date=current, has_availability=bool(slots)))
            current += timedelta(days=1)

        return days

    @staticmethod
    def is_slot_available(
            db: Session,
            business_id: UUID,
            employee_id: UUID,
            service_id: UUID,
            start_time: datetime
    ) -> bool:
        """
        Same fit rule as slot generation: the requested start lies in a block
        and start + duration + both buffers ends by the block end. Unlike the
        slot list, the start does not have to sit on the 15 minute grid.
        """
        business = BusinessService.get_business(db, business_id)
        service = ServiceCatalog.get_service(db, business_id, service_id)
        employee = EmployeeService.get_employee(db, business_id, employee_id)

        if not (service.is_active and employee.is_active and employee.can_perform_services):
            return False

        requested_start = to_local(start_time, business.timezone)
        buffer_before = service.buffer_before or 0
        buffer_after = service.buffer_after or 0
        total = timedelta(minutes=service.total_duration)

        blocks = AvailabilityService._resolve_blocks(db, business.business_hours, employee, requested_start.date())
        if not any(block.contains(requested_start, requested_start + total) for block in blocks):
            return False

        occupied_start, occupied_end = occupied_interval(
            requested_start, service.duration, buffer_before, buffer_after
        )
        booked = AppointmentService.list_active(
            db, business_id, employee.id, (occupied_start, occupied_end)
        )
        return not has_conflict(occupied_start, occupied_end, booked)

    @staticmethod
    def _check_range(start_date: date, end_date: date):
        if end_date < start_date:
            raise ValidationError("end_date must be on or after start_date")
        if (end_date - start_date).days >= MAX_DATE_RANGE_DAYS:
            raise ValidationError(f"Date range cannot exceed {MAX_DATE_RANGE_DAYS} days")

    @staticmethod
    def get_working_blocks(
            db: Session,
            business_id: UUID,
            employee_id: UUID,
            start_date: date,
            end_date: Optional[date] = None
    ) -> List[EmployeeWorkingBlocksResponse]:
        """Resolved hours of one employee for each date (single day when end_date is omitted)"""
        end_date = end_date or start_date
        AvailabilityService._check_range(start_date, end_date)

        business = BusinessService.get_business(db, business_id)
        employee = EmployeeService.get_employee(db, business_id, employee_id)
        return [
            AvailabilityService._working_blocks_response(db, business, employee, day)
            for day in _days(start_date, end_date)
        ]

    @staticmethod
    def get_team_working_blocks(
            db: Session,
            business_id: UUID,
            start_date: date,
            end_date: date
    ) -> List[EmployeeWorkingBlocksResponse]:
        """Resolved hours of every active employee for each date (team week view)"""
        AvailabilityService._check_range(start_date, end_date)

        business = BusinessService.get_business(db, business_id)
        employees = EmployeeService.list_active(db, business_id)

        return [
            AvailabilityService._working_blocks_response(db, business, employee, day)
            for employee in employees
            for day in _days(start_date, end_date)
        ]

    @staticmethod
    def _working_blocks_response(db: Session, business, employee: Employee, day: date) -> EmployeeWorkingBlocksResponse:
        blocks = AvailabilityService._resolve_blocks(db, business.business_hours, employee, day)
        return EmployeeWorkingBlocksResponse(
            employee_id=str(employee.id),
            employee_name=employee.name,
            date=day,
            blocks=[
                WorkingBlockResponse(
                    start=localize(block.start, business.timezone),
                    end=localize(block.end, business.timezone),
                )
                for block in blocks
            ],
        )
