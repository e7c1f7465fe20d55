# appointly/services/employee/employee_service.py
"""Employee lookups: who can be booked, and their working-hours override"""
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from appointly.core.exceptions import NotFoundError
from appointly.models.employee import Employee
from appointly.models.service import Service


class EmployeeService:
    """Handles employee queries"""

    @staticmethod
    def get_employee(db: Session, business_id: UUID, employee_id: UUID) -> Employee:
        employee = db.query(Employee).filter(
            Employee.id == employee_id,
            Employee.business_id == business_id
        ).first()
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    @staticmethod
    def get_working_hours(db: Session, business_id: UUID, employee_id: UUID) -> Optional[Dict]:
        """The employee's override, or None when business hours apply"""
        return EmployeeService.get_employee(db, business_id, employee_id).working_hours

    @staticmethod
    def list_active(db: Session, business_id: UUID) -> List[Employee]:
        """Active employees that can take bookings, ordered by name"""
        return db.query(Employee).filter(
            Employee.business_id == business_id,
            Employee.is_active == True,
            Employee.can_perform_services == True
        ).order_by(Employee.name.asc()).all()

    @staticmethod
    def list_for_service(db: Session, business_id: UUID, service_id: UUID) -> List[Employee]:
        """Active employees linked to the service"""
        return db.query(Employee).join(Employee.services).filter(
            Employee.business_id == business_id,
            Service.id == service_id,
            Employee.is_active == True,
            Employee.can_perform_services == True
        ).order_by(Employee.name.asc()).all()

    @staticmethod
    def lock_for_booking(db: Session, employee_id: UUID) -> Optional[Employee]:
        """
        Row lock on the employee for the rest of the transaction.

        Serializes concurrent writers for the same employee on PostgreSQL;
        SQLite ignores FOR UPDATE.
        """
        return db.query(Employee).filter(Employee.id == employee_id).with_for_update().first()
