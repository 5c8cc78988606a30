import logging
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from property_service.app.models.properties.properties import Property
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)

# Property lookups are shared by the application, lease (and maintenance/payment)
# components. A failing lookup must abort the caller before it writes anything.


def property_lookup_unavailable(exc: Exception):
    logger.error("Property lookup failed: %s", exc)
    return error_response(
        message="Property service unavailable",
        status_code=AppStatusCode.SERVICE_UNAVAILABLE,
        http_status=status.HTTP_503_SERVICE_UNAVAILABLE
    )


def get_property_by_id(db: Session, property_id: UUID) -> Optional[Property]:
    try:
        return db.query(Property).filter(Property.id == property_id).first()
    except SQLAlchemyError as e:
        db.rollback()
        return property_lookup_unavailable(e)


def get_property_or_404(db: Session, property_id: UUID) -> Property:
    prop = get_property_by_id(db, property_id)
    if not prop:
        return error_response(
            message="Property not found",
            status_code=AppStatusCode.NOT_FOUND,
            http_status=status.HTTP_404_NOT_FOUND
        )
    return prop


def get_properties_by_owner(db: Session, owner_id: str) -> List[Property]:
    try:
        return (
            db.query(Property)
            .filter(Property.owner_id == owner_id)
            .order_by(Property.created_at.desc())
            .all()
        )
    except SQLAlchemyError as e:
        db.rollback()
        return property_lookup_unavailable(e)


def is_owner_or_manager(prop, user_id: str) -> bool:
    return user_id is not None and user_id in (prop.owner_id, prop.manager_id)


def set_property_availability(db: Session, property_id: UUID, is_available: bool) -> Optional[bool]:
    """Flip ``is_available`` without committing; returns the previous value.

    Returns None when the property no longer exists.
    """
    prop = get_property_by_id(db, property_id)
    if not prop:
        logger.warning(
            "Property %s missing while setting availability to %s", property_id, is_available)
        return None

    previous = prop.is_available
    prop.is_available = is_available
    return previous
