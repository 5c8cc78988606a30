from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.core.database import get_property_db as get_db
from shared.core.schemas import MessageResponse, UserToken

from ...core.permissions import Operation, require_capability
from ...crud.properties import properties_crud as crud
from ...schemas.properties.properties_schemas import (
    AssignManagerRequest, PropertyCreate, PropertyListResponse, PropertyOut, PropertyRequest, PropertyUpdate
)

router = APIRouter(
    prefix="/api/properties",
    tags=["properties"],
)


@router.get("/", response_model=PropertyListResponse)
def get_properties(
    params: PropertyRequest = Depends(),
    db: Session = Depends(get_db)
):
    return crud.get_list(db, params)


@router.get("/search", response_model=List[PropertyOut])
def search_properties(
    query: str = Query(""),
    db: Session = Depends(get_db)
):
    return crud.search(db, query.strip())


@router.get("/owner/{owner_id}", response_model=List[PropertyOut])
def get_owner_properties(
    owner_id: str,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.property_list_by_owner))
):
    return crud.get_by_owner(db, owner_id, current_user)


@router.post("/assign-manager", response_model=PropertyOut)
def assign_manager(
    payload: AssignManagerRequest,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.property_assign_manager))
):
    return crud.assign_manager(db, payload, current_user)


@router.post("/", response_model=PropertyOut)
def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.property_create))
):
    return crud.create(db, payload, current_user)


@router.get("/{property_id}", response_model=PropertyOut)
def get_property(
    property_id: UUID,
    db: Session = Depends(get_db)
):
    return crud.get_by_id(db, property_id)


@router.put("/{property_id}", response_model=PropertyOut)
def update_property(
    property_id: UUID,
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.property_update))
):
    return crud.update(db, property_id, payload, current_user)


@router.delete("/{property_id}", response_model=MessageResponse)
def delete_property(
    property_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.property_delete))
):
    return crud.delete(db, property_id, current_user)
