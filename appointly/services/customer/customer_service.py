# appointly/services/customer/customer_service.py
"""Customer resolution for bookings"""
from uuid import UUID, uuid4
from sqlalchemy.orm import Session
import logging

from appointly.core.exceptions import NotFoundError
from appointly.models.customer import Customer
from appointly.schemas.appointment import CustomerData

logger = logging.getLogger(__name__)


class CustomerService:
    """Handles customer lookup and creation"""

    @staticmethod
    def get_customer(db: Session, business_id: UUID, customer_id: UUID) -> Customer:
        customer = db.query(Customer).filter(
            Customer.id == customer_id,
            Customer.business_id == business_id
        ).first()
        if not customer:
            raise NotFoundError(f"Customer {customer_id} not found")
        return customer

    @staticmethod
    def get_or_create(db: Session, business_id: UUID, data: CustomerData) -> Customer:
        """
        Find a customer of this business by email, then by phone; create one
        otherwise. The new row is flushed, not committed, so it joins the
        caller's transaction.
        """
        query = db.query(Customer).filter(Customer.business_id == business_id)

        customer = None
        if data.email:
            customer = query.filter(Customer.email == data.email.lower()).first()
        if not customer and data.phone:
            customer = query.filter(Customer.phone == data.phone).first()

        if customer:
            return customer

        customer = Customer(
            id=uuid4(),
            business_id=business_id,
            name=data.name,
            email=data.email.lower() if data.email else None,
            phone=data.phone,
        )
        db.add(customer)
        db.flush()
        logger.info(f"Created customer {customer.id} for business {business_id}")
        return customer
