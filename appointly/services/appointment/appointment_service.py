# ============================================================================
# appointly/services/appointment/appointment_service.py
# Booking write path and appointment reads - no FastAPI dependencies
# ============================================================================
"""
Appointment creation re-validates conflicts at commit time.

Every write that can make an appointment occupy time runs the same sequence:
compute the buffer-expanded interval, take the booking lock for the
employee/day, lock the employee row, re-run the conflict check against live
data, then insert/update and commit. Without the PostgreSQL exclusion
constraint (see alembic) this is best-effort against writers outside the lock.
"""
from contextlib import nullcontext
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union
from uuid import UUID, uuid4
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from appointly.core.exceptions import NotFoundError, SchedulingConflict, ValidationError
from appointly.models.appointment import Appointment
from appointly.models.enums import ACTIVE_STATUSES, AppointmentStatus
from appointly.schemas.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    BookingCreate,
    SimpleBookingCreate,
)
from appointly.services.appointment.booking_lock import BookingLock, get_booking_lock
from appointly.services.business.business_service import BusinessService
from appointly.services.catalog.service_catalog import ServiceCatalog
from appointly.services.customer.customer_service import CustomerService
from appointly.services.employee.employee_service import EmployeeService
from appointly.services.scheduling import conflict_checker
from appointly.utils.timezone import localize, to_local

logger = logging.getLogger(__name__)

DayOrRange = Union[date, Tuple[datetime, datetime]]


def _window(day_or_range: DayOrRange) -> Tuple[datetime, datetime]:
    if isinstance(day_or_range, tuple):
        return day_or_range
    start = datetime.combine(day_or_range, time.min)
    return start, start + timedelta(days=1)


def _status_value(status) -> Optional[str]:
    if isinstance(status, AppointmentStatus):
        return status.value
    return status


class AppointmentService:
    """Service layer for appointment-related business logic."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def list_active(
            db: Session,
            business_id: UUID,
            employee_id: UUID,
            day_or_range: DayOrRange,
            exclude_appointment_id: Optional[UUID] = None
    ) -> List[Appointment]:
        """Pending/confirmed appointments of one employee overlapping the day or range"""
        window_start, window_end = _window(day_or_range)

        query = db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.employee_id == employee_id,
            Appointment.status.in_(ACTIVE_STATUSES),
            Appointment.start_time < window_end,
            Appointment.end_time > window_start
        )
        if exclude_appointment_id:
            query = query.filter(Appointment.id != exclude_appointment_id)

        return query.order_by(Appointment.start_time.asc()).all()

    @staticmethod
    def count_active_by_employee(
            db: Session,
            business_id: UUID,
            employee_ids: Iterable[UUID],
            day: date
    ) -> Dict[str, int]:
        """Active appointment count on `day` per employee id (as str)"""
        employee_ids = list(employee_ids)
        if not employee_ids:
            return {}

        window_start, window_end = _window(day)
        rows = db.query(Appointment.employee_id, func.count(Appointment.id)).filter(
            Appointment.business_id == business_id,
            Appointment.employee_id.in_(employee_ids),
            Appointment.status.in_(ACTIVE_STATUSES),
            Appointment.start_time < window_end,
            Appointment.end_time > window_start
        ).group_by(Appointment.employee_id).all()

        counts = {str(employee_id): 0 for employee_id in employee_ids}
        counts.update({str(employee_id): count for employee_id, count in rows})
        return counts

    @staticmethod
    def find_conflicts(
            db: Session,
            business_id: UUID,
            employee_id: UUID,
            occupied_start: datetime,
            occupied_end: datetime,
            exclude_appointment_id: Optional[UUID] = None
    ) -> List[Appointment]:
        candidates = AppointmentService.list_active(
            db, business_id, employee_id, (occupied_start, occupied_end), exclude_appointment_id
        )
        return conflict_checker.find_conflicts(occupied_start, occupied_end, candidates)

    @staticmethod
    def get_by_id(db: Session, business_id: UUID, appointment_id: UUID) -> Appointment:
        appointment = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.business_id == business_id
        ).first()
        if not appointment:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    @staticmethod
    def list_appointments(
            db: Session,
            business_id: UUID,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            status: Optional[List[str]] = None,
            employee_id: Optional[UUID] = None,
            customer_id: Optional[UUID] = None,
            service_id: Optional[UUID] = None,
            skip: int = 0,
            limit: int = 50
    ) -> Dict[str, Any]:
        """Get paginated list of appointments with filters."""
        business = BusinessService.get_business(db, business_id)
        query = db.query(Appointment).filter(Appointment.business_id == business_id)

        if start_date:
            query = query.filter(Appointment.start_time >= datetime.combine(start_date, time.min))
        if end_date:
            query = query.filter(Appointment.start_time < datetime.combine(end_date + timedelta(days=1), time.min))
        if status:
            query = query.filter(Appointment.status.in_(status))
        if employee_id:
            query = query.filter(Appointment.employee_id == employee_id)
        if customer_id:
            query = query.filter(Appointment.customer_id == customer_id)
        if service_id:
            query = query.filter(Appointment.service_id == service_id)

        query = query.order_by(Appointment.start_time.asc())
        total = query.count()
        appointments = query.offset(skip).limit(limit).all()

        return {
            "business_id": str(business_id),
            "total_appointments": total,
            "page": {
                "skip": skip,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit if total > 0 else 0
            },
            "filters": {
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "status": status,
                "employee_id": str(employee_id) if employee_id else None,
                "customer_id": str(customer_id) if customer_id else None,
                "service_id": str(service_id) if service_id else None
            },
            "appointments": [
                AppointmentService.serialize(appt, business.timezone) for appt in appointments
            ]
        }

    @staticmethod
    def serialize(appointment: Appointment, tz_name: Optional[str]) -> AppointmentResponse:
        """Stored naive local times as aware datetimes in the business timezone"""
        response = AppointmentResponse.model_validate(appointment)
        return response.model_copy(update={
            "start_time": localize(response.start_time, tz_name),
            "end_time": localize(response.end_time, tz_name),
        })

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    @staticmethod
    async def _commit_new_appointment(
            db: Session,
            business_id: UUID,
            employee_id: UUID,
            service_id: UUID,
            occupied_start: datetime,
            occupied_end: datetime,
            status: str,
            notes: Optional[str],
            resolve_customer_id: Callable[[], UUID],
            lock: Optional[BookingLock] = None
    ) -> Appointment:
        lock = lock or get_booking_lock()

        async with lock.hold(employee_id, occupied_start.date()):
            EmployeeService.lock_for_booking(db, employee_id)

            conflicts = AppointmentService.find_conflicts(
                db, business_id, employee_id, occupied_start, occupied_end
            )
            if conflicts:
                db.rollback()
                logger.warning(
                    f"Booking rejected for employee {employee_id} "
                    f"[{occupied_start.isoformat()}, {occupied_end.isoformat()}): "
                    f"overlaps {[str(c.id) for c in conflicts]}"
                )
                raise SchedulingConflict(conflicting_ids=[c.id for c in conflicts])

            appointment = Appointment(
                id=uuid4(),
                business_id=business_id,
                customer_id=resolve_customer_id(),
                employee_id=employee_id,
                service_id=service_id,
                start_time=occupied_start,
                end_time=occupied_end,
                status=status,
                notes=notes,
            )
            db.add(appointment)

            try:
                db.commit()
            except IntegrityError as e:
                # Exclusion constraint on PostgreSQL: a writer outside this lock won
                db.rollback()
                logger.warning(f"Booking rejected by database constraint: {e.orig}")
                raise SchedulingConflict()

            db.refresh(appointment)

        logger.info(
            f"Created {status} appointment {appointment.id} for employee {employee_id} "
            f"at {occupied_start.isoformat()}"
        )
        return appointment

    @staticmethod
    async def create(
            db: Session,
            business_id: UUID,
            data: AppointmentCreate,
            lock: Optional[BookingLock] = None
    ) -> Appointment:
        """Manual booking by staff (default status confirmed)"""
        business = BusinessService.get_business(db, business_id)
        service = ServiceCatalog.get_service(db, business_id, data.service_id)
        if not service.is_active:
            raise ValidationError(f"Service {service.name} is not bookable")
        EmployeeService.get_employee(db, business_id, data.employee_id)

        requested_start = to_local(data.start_time, business.timezone)
        occupied_start, occupied_end = conflict_checker.occupied_interval(
            requested_start, service.duration, service.buffer_before, service.buffer_after
        )

        def resolve_customer_id() -> UUID:
            if data.customer_id:
                return CustomerService.get_customer(db, business_id, data.customer_id).id
            return CustomerService.get_or_create(db, business_id, data.customer_data).id

        return await AppointmentService._commit_new_appointment(
            db,
            business_id=business_id,
            employee_id=data.employee_id,
            service_id=service.id,
            occupied_start=occupied_start,
            occupied_end=occupied_end,
            status=data.status,
            notes=data.notes,
            resolve_customer_id=resolve_customer_id,
            lock=lock,
        )

    @staticmethod
    async def create_simple(
            db: Session,
            data: SimpleBookingCreate,
            lock: Optional[BookingLock] = None
    ) -> Appointment:
        """Customer booking where the caller already resolved duration and buffers"""
        EmployeeService.get_employee(db, data.business_id, data.employee_id)
        ServiceCatalog.get_service(db, data.business_id, data.service_id)
        customer = CustomerService.get_customer(db, data.business_id, data.customer_id)

        hours, minutes = (int(part) for part in data.start_time.split(":"))
        if not (0 <= hours < 24 and 0 <= minutes < 60):
            raise ValidationError(f"Invalid start time {data.start_time}")

        requested_start = datetime.combine(data.date, time(hours, minutes))
        occupied_start, occupied_end = conflict_checker.occupied_interval(
            requested_start, data.duration, data.buffer_before, data.buffer_after
        )

        return await AppointmentService._commit_new_appointment(
            db,
            business_id=data.business_id,
            employee_id=data.employee_id,
            service_id=data.service_id,
            occupied_start=occupied_start,
            occupied_end=occupied_end,
            status=data.status,
            notes=data.notes,
            resolve_customer_id=lambda: customer.id,
            lock=lock,
        )

    @staticmethod
    async def create_booking(
            db: Session,
            business_id: UUID,
            data: BookingCreate,
            lock: Optional[BookingLock] = None,
            strategy=None
    ) -> Appointment:
        """
        Customer self-booking. Status follows the business auto-accept flag;
        without an employee the suggested default employee of the slot is used.
        """
        from appointly.services.availability.availability_service import AvailabilityService

        business = BusinessService.get_business(db, business_id)
        requested_start = to_local(data.start_time, business.timezone)
        status = (
            AppointmentStatus.CONFIRMED.value
            if business.accept_appointments_automatically
            else AppointmentStatus.PENDING.value
        )

        employee_id = data.employee_id
        if employee_id is None:
            suggested = AvailabilityService.suggest_employee(
                db, business_id, data.service_id, requested_start, strategy=strategy
            )
            if suggested is None:
                raise SchedulingConflict("No employee is available at this time")
            employee_id = UUID(suggested.id)

        return await AppointmentService.create(
            db,
            business_id,
            AppointmentCreate(
                service_id=data.service_id,
                employee_id=employee_id,
                start_time=requested_start,
                customer_data=data.customer,
                notes=data.notes,
                status=status,
            ),
            lock=lock,
        )

    @staticmethod
    async def update(
            db: Session,
            business_id: UUID,
            appointment_id: UUID,
            data: AppointmentUpdate,
            lock: Optional[BookingLock] = None,
            cancellation_reason: Optional[str] = None
    ) -> Appointment:
        """
        Apply field changes. Moving the appointment (new start or employee) or
        re-activating it re-runs the conflict check, excluding itself.
        """
        appointment = AppointmentService.get_by_id(db, business_id, appointment_id)
        changes = data.model_dump(exclude_unset=True)

        new_employee_id = changes.get("employee_id") or appointment.employee_id
        if new_employee_id != appointment.employee_id:
            EmployeeService.get_employee(db, business_id, new_employee_id)

        occupied_start, occupied_end = appointment.start_time, appointment.end_time
        if changes.get("start_time") is not None:
            business = BusinessService.get_business(db, business_id)
            service = appointment.service
            requested_start = to_local(changes["start_time"], business.timezone)
            occupied_start, occupied_end = conflict_checker.occupied_interval(
                requested_start, service.duration, service.buffer_before, service.buffer_after
            )

        old_status = appointment.status
        new_status = _status_value(changes.get("status")) or old_status

        moved = (
            new_employee_id != appointment.employee_id
            or (occupied_start, occupied_end) != (appointment.start_time, appointment.end_time)
        )
        reactivated = old_status not in ACTIVE_STATUSES and new_status in ACTIVE_STATUSES
        needs_check = new_status in ACTIVE_STATUSES and (moved or reactivated)

        lock = lock or get_booking_lock()
        guard = lock.hold(new_employee_id, occupied_start.date()) if needs_check else nullcontext()

        async with guard:
            if needs_check:
                EmployeeService.lock_for_booking(db, new_employee_id)
                conflicts = AppointmentService.find_conflicts(
                    db, business_id, new_employee_id, occupied_start, occupied_end,
                    exclude_appointment_id=appointment.id
                )
                if conflicts:
                    db.rollback()
                    logger.warning(
                        f"Update of appointment {appointment.id} rejected: "
                        f"overlaps {[str(c.id) for c in conflicts]}"
                    )
                    raise SchedulingConflict(
                        "This change would overlap another appointment",
                        conflicting_ids=[c.id for c in conflicts]
                    )

            appointment.employee_id = new_employee_id
            appointment.start_time = occupied_start
            appointment.end_time = occupied_end
            appointment.status = new_status
            if "notes" in changes:
                appointment.notes = changes["notes"]

            if new_status == AppointmentStatus.CANCELLED.value and old_status != new_status:
                appointment.cancelled_at = datetime.now(timezone.utc)
                appointment.cancellation_reason = cancellation_reason

            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                logger.warning(f"Update of appointment {appointment.id} rejected by database constraint: {e.orig}")
                raise SchedulingConflict("This change would overlap another appointment")

            db.refresh(appointment)

        if old_status != new_status:
            logger.info(f"Appointment {appointment.id}: {old_status} -> {new_status}")
        return appointment

    @staticmethod
    async def confirm(db: Session, business_id: UUID, appointment_id: UUID, lock=None) -> Appointment:
        return await AppointmentService.update(
            db, business_id, appointment_id, AppointmentUpdate(status=AppointmentStatus.CONFIRMED), lock=lock
        )

    @staticmethod
    async def cancel(
            db: Session,
            business_id: UUID,
            appointment_id: UUID,
            reason: Optional[str] = None,
            lock=None
    ) -> Appointment:
        return await AppointmentService.update(
            db, business_id, appointment_id, AppointmentUpdate(status=AppointmentStatus.CANCELLED),
            lock=lock, cancellation_reason=reason
        )

    @staticmethod
    async def complete(db: Session, business_id: UUID, appointment_id: UUID, lock=None) -> Appointment:
        return await AppointmentService.update(
            db, business_id, appointment_id, AppointmentUpdate(status=AppointmentStatus.COMPLETED), lock=lock
        )

    @staticmethod
    async def mark_no_show(db: Session, business_id: UUID, appointment_id: UUID, lock=None) -> Appointment:
        return await AppointmentService.update(
            db, business_id, appointment_id, AppointmentUpdate(status=AppointmentStatus.NO_SHOW), lock=lock
        )
