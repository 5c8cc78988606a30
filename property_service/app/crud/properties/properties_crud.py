import logging
from typing import List
from uuid import UUID

from fastapi import status
from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.schemas import UserToken
from shared.helpers import property_helper
from shared.helpers.json_response_helper import error_response, reject_null_fields
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole

from ...core.permissions import forbidden
from ...enum.tenancy_enum import ApplicationStatus
from ...models.leasing_tenants.leases import Lease
from ...models.leasing_tenants.rental_applications import RentalApplication
from ...models.properties.properties import Property
from ...schemas.properties.properties_schemas import (
    AssignManagerRequest, PropertyCreate, PropertyListResponse, PropertyOut, PropertyRequest, PropertyUpdate
)

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")
NULLABLE_UPDATE_FIELDS = ("manager_id", "amenities", "images")


def to_out(prop: Property) -> PropertyOut:
    return PropertyOut.model_validate({
        "id": prop.id,
        "title": prop.title,
        "description": prop.description,
        "address": {field: getattr(prop, field) for field in ADDRESS_FIELDS},
        "property_type": prop.property_type,
        "bedrooms": prop.bedrooms,
        "bathrooms": prop.bathrooms,
        "square_feet": prop.square_feet,
        "rent_amount": prop.rent_amount,
        "security_deposit": prop.security_deposit,
        "available_date": prop.available_date,
        "amenities": prop.amenities or [],
        "images": prop.images or [],
        "owner_id": prop.owner_id,
        "manager_id": prop.manager_id,
        "is_available": prop.is_available,
        "created_at": prop.created_at,
        "updated_at": prop.updated_at,
    })


# ----------------------------------------------------
# Filters
# ----------------------------------------------------
def build_filters(params: PropertyRequest):
    filters = []

    if params.min_rent is not None:
        filters.append(Property.rent_amount >= params.min_rent)
    if params.max_rent is not None:
        filters.append(Property.rent_amount <= params.max_rent)
    if params.property_type:
        filters.append(Property.property_type == params.property_type)
    if params.bedrooms is not None:
        filters.append(Property.bedrooms == params.bedrooms)
    if params.city:
        filters.append(Property.city.ilike(f"%{params.city}%"))
    if params.state:
        filters.append(Property.state.ilike(f"%{params.state}%"))
    if params.is_available is not None:
        filters.append(Property.is_available == params.is_available)

    if params.search:
        filters.append(search_clause(params.search))

    return filters


def search_clause(query: str):
    like = f"%{query}%"
    return or_(
        Property.title.ilike(like),
        Property.description.ilike(like),
        Property.street.ilike(like),
        Property.city.ilike(like),
        Property.state.ilike(like),
        Property.zip_code.ilike(like),
    )


def get_list(db: Session, params: PropertyRequest) -> PropertyListResponse:
    q = (
        db.query(Property)
        .filter(*build_filters(params))
        .order_by(Property.created_at.desc())
    )

    total = q.count()
    rows = q.offset(params.skip or 0).limit(params.limit or 10).all()

    return PropertyListResponse(
        properties=[to_out(row) for row in rows],
        total=total,
        skip=params.skip or 0,
        limit=params.limit or 10,
    )


def search(db: Session, query: str) -> List[PropertyOut]:
    if not query:
        return error_response(
            message="Search query is required",
            status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR,
            http_status=status.HTTP_422_UNPROCESSABLE_ENTITY
        )

    rows = (
        db.query(Property)
        .filter(search_clause(query))
        .order_by(Property.created_at.desc())
        .all()
    )
    return [to_out(row) for row in rows]


def get_by_id(db: Session, property_id: UUID) -> PropertyOut:
    return to_out(property_helper.get_property_or_404(db, property_id))


def get_by_owner(db: Session, owner_id: str, current_user: UserToken) -> List[PropertyOut]:
    # managers may browse any owner's portfolio, owners only their own
    if current_user.user_id != owner_id and current_user.role != UserRole.MANAGER:
        return forbidden("Not authorized to access these properties")

    return [to_out(row) for row in property_helper.get_properties_by_owner(db, owner_id)]


# ----------------------------------------------------
# Create / update / delete
# ----------------------------------------------------
def create(db: Session, payload: PropertyCreate, current_user: UserToken) -> PropertyOut:
    data = payload.model_dump(exclude={"address", "images"})
    data.update(payload.address.model_dump())
    data["images"] = [img.model_dump() for img in payload.images or []]
    data["amenities"] = payload.amenities or []

    obj = Property(
        **data,
        owner_id=current_user.user_id,
        is_available=True,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)

    logger.info("Property %s created by owner %s", obj.id, current_user.user_id)
    return to_out(obj)


def update(db: Session, property_id: UUID, payload: PropertyUpdate, current_user: UserToken) -> PropertyOut:
    obj = property_helper.get_property_or_404(db, property_id)

    if not property_helper.is_owner_or_manager(obj, current_user.user_id):
        return forbidden("Not authorized to update this property")

    data = payload.model_dump(exclude_unset=True, exclude={"address", "owner_id"})
    reject_null_fields(data, nullable=NULLABLE_UPDATE_FIELDS)

    # Only owner can change managerId
    if "manager_id" in data and obj.owner_id != current_user.user_id:
        data.pop("manager_id")

    if payload.address is not None:
        address = payload.address.model_dump(exclude_unset=True)
        data.update(reject_null_fields(address, prefix="address."))

    if "images" in data:
        data["images"] = [img.model_dump() for img in payload.images or []]

    if "is_available" in data and data["is_available"] != obj.is_available:
        logger.warning(
            "Property %s availability overridden to %s by %s",
            obj.id, data["is_available"], current_user.user_id)

    for k, v in data.items():
        setattr(obj, k, v)

    db.commit()
    db.refresh(obj)
    return to_out(obj)


def assign_manager(db: Session, payload: AssignManagerRequest, current_user: UserToken) -> PropertyOut:
    obj = property_helper.get_property_or_404(db, payload.property_id)

    if obj.owner_id != current_user.user_id:
        return forbidden("Only the property owner can assign managers")

    obj.manager_id = payload.manager_id
    db.commit()
    db.refresh(obj)
    return to_out(obj)


def integrity_blockers(db: Session, property_id: UUID) -> List[str]:
    blockers = []

    active_lease = (
        db.query(Lease.id)
        .filter(Lease.property_id == property_id, Lease.is_active == True)
        .first()
    )
    if active_lease:
        blockers.append("an active lease")

    leased_application_ids = select(Lease.application_id).where(
        Lease.application_id.isnot(None))

    # approved applications only block until a lease has been created from them
    open_applications = (
        db.query(RentalApplication.id)
        .filter(
            RentalApplication.property_id == property_id,
            or_(
                RentalApplication.status == ApplicationStatus.pending,
                and_(
                    RentalApplication.status == ApplicationStatus.approved,
                    RentalApplication.id.notin_(leased_application_ids),
                ),
            ),
        )
        .count()
    )
    if open_applications:
        blockers.append(f"{open_applications} pending or approved application(s)")

    return blockers


def delete(db: Session, property_id: UUID, current_user: UserToken):
    obj = property_helper.get_property_or_404(db, property_id)

    if obj.owner_id != current_user.user_id:
        return forbidden("Only the property owner can delete this property")

    if settings.STRICT_INTEGRITY:
        blockers = integrity_blockers(db, obj.id)
        if blockers:
            return error_response(
                message=f"Property is still referenced by {' and '.join(blockers)}",
                status_code=AppStatusCode.DUPLICATE_ADD_ERROR,
                http_status=status.HTTP_409_CONFLICT
            )

    db.delete(obj)
    db.commit()

    logger.info("Property %s deleted by owner %s", property_id, current_user.user_id)
    return {"message": "Property deleted successfully", "data": {"id": str(property_id)}}
