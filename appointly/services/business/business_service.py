# appointly/services/business/business_service.py
"""Service for business lookups used by availability and booking"""
from typing import Dict
from uuid import UUID
from sqlalchemy.orm import Session
import logging

from appointly.core.exceptions import NotFoundError
from appointly.models.business import Business

logger = logging.getLogger(__name__)


class BusinessService:
    """Handles business-related operations"""

    @staticmethod
    def get_business(db: Session, business_id: UUID) -> Business:
        """Get business by id or raise NotFoundError"""
        business = db.query(Business).filter(Business.id == business_id).first()
        if not business:
            raise NotFoundError(f"Business {business_id} not found")
        return business

    @staticmethod
    def get_business_hours(db: Session, business_id: UUID) -> Dict:
        """Weekday name -> stored day schedule; missing weekdays are closed"""
        business = BusinessService.get_business(db, business_id)
        return business.business_hours or {}
