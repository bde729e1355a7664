"""Milestone endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ekko.db import get_db
from ekko.models.milestone import Milestone
from ekko.models.user import User
from ekko.schemas.milestone import MilestoneCreate, MilestoneRead, MilestoneReorder, MilestoneUpdate
from ekko.security import get_current_user
from ekko.services import milestones as milestone_service

router = APIRouter(tags=["milestones"])


@router.post(
    "/work-orders/{work_order_id}/milestones",
    response_model=MilestoneRead,
    status_code=status.HTTP_201_CREATED,
)
def add_milestone(
    work_order_id: int,
    payload: MilestoneCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Milestone:
    return milestone_service.add_milestone(db, work_order_id, payload, user)


@router.put("/work-orders/{work_order_id}/milestones/order", response_model=list[MilestoneRead])
def reorder_milestones(
    work_order_id: int,
    payload: MilestoneReorder,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> list[Milestone]:
    return milestone_service.reorder_milestones(db, work_order_id, payload.milestone_ids, user)


@router.patch("/milestones/{milestone_id}", response_model=MilestoneRead)
def update_milestone(
    milestone_id: int,
    payload: MilestoneUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Milestone:
    return milestone_service.update_milestone(db, milestone_id, payload, user)
