# showings/routers/properties_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from showings.auth import get_current_user
from showings.db import get_session
from showings.deps import require_role
from showings.models import Property
from showings.schemas import PropertyCreate, PropertyPublic

router = APIRouter(
    prefix="/properties",
    tags=["properties"],
)


@router.get("", response_model=List[PropertyPublic])
def list_properties(
    city: Optional[str] = None,
    postal_code: Optional[str] = None,
    session: Session = Depends(get_session),
):
    stmt = select(Property)
    if city is not None:
        stmt = stmt.where(Property.city == city)
    if postal_code is not None:
        stmt = stmt.where(Property.postal_code == postal_code)
    return session.exec(stmt.order_by(Property.id)).all()


@router.get("/{property_id}", response_model=PropertyPublic)
def get_property(
    property_id: int,
    session: Session = Depends(get_session),
):
    prop = session.get(Property, property_id)
    if prop is None:
        raise HTTPException(status_code=404, detail="Property not found")
    return prop


@router.post("", response_model=PropertyPublic, status_code=201)
def create_property(
    prop: PropertyCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    db_prop = Property(**prop.model_dump())
    session.add(db_prop)
    session.commit()
    session.refresh(db_prop)
    return db_prop
