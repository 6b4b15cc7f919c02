# showings/routers/availability_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlmodel import Session, select

from showings.auth import get_current_user
from showings.core import Weekday
from showings.db import get_session
from showings.deps import require_role
from showings.models import VisitAvailability
from showings.schemas import AvailabilityRuleCreate, AvailabilityRulePublic, AvailabilityRuleUpdate

router = APIRouter(
    prefix="/availability-rules",
    tags=["availability"],
)


@router.get("", response_model=List[AvailabilityRulePublic])
def list_rules(
    weekday: Optional[Weekday] = None,
    active: Optional[bool] = None,
    session: Session = Depends(get_session),
):
    stmt = select(VisitAvailability)
    if weekday is not None:
        stmt = stmt.where(VisitAvailability.weekday == weekday)
    if active is not None:
        stmt = stmt.where(VisitAvailability.active == active)
    stmt = stmt.order_by(VisitAvailability.weekday, VisitAvailability.opens_at)
    return session.exec(stmt).all()


@router.post("", response_model=AvailabilityRulePublic, status_code=201)
def create_rule(
    rule: AvailabilityRuleCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    db_rule = VisitAvailability(**rule.model_dump())
    session.add(db_rule)
    session.commit()
    session.refresh(db_rule)
    return db_rule


@router.patch("/{rule_id}", response_model=AvailabilityRulePublic)
def update_rule(
    rule_id: int,
    changes: AvailabilityRuleUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    db_rule = session.get(VisitAvailability, rule_id)
    if db_rule is None:
        raise HTTPException(status_code=404, detail="Availability rule not found")

    for key, value in changes.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(db_rule, key, value)

    if db_rule.opens_at > db_rule.closes_at:
        session.rollback()
        raise HTTPException(status_code=422, detail="opens_at cannot be later than closes_at")

    session.add(db_rule)
    session.commit()
    session.refresh(db_rule)
    return db_rule


@router.delete("/{rule_id}", status_code=204)
def delete_rule(
    rule_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    db_rule = session.get(VisitAvailability, rule_id)
    if db_rule is None:
        raise HTTPException(status_code=404, detail="Availability rule not found")

    session.delete(db_rule)
    session.commit()
    return Response(status_code=204)
