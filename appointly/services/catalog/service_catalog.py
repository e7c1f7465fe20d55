# appointly/services/catalog/service_catalog.py
"""Bookable service lookups"""
from uuid import UUID
from sqlalchemy.orm import Session

from appointly.core.exceptions import NotFoundError
from appointly.models.service import Service


class ServiceCatalog:
    """Read access to a business's services"""

    @staticmethod
    def get_service(db: Session, business_id: UUID, service_id: UUID) -> Service:
        """Service of this business, active or not; NotFoundError otherwise"""
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.business_id == business_id
        ).first()
        if not service:
            raise NotFoundError(f"Service {service_id} not found")
        return service
