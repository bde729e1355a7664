"""Application review endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ekko.db import get_db
from ekko.models.project import Application
from ekko.models.user import User
from ekko.models.work_order import WorkOrder
from ekko.schemas.project import ApplicationRead
from ekko.schemas.work_order import WorkOrderRead
from ekko.security import get_current_user
from ekko.services import projects as project_service

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post(
    "/{application_id}/accept",
    response_model=WorkOrderRead,
    status_code=status.HTTP_201_CREATED,
)
def accept_application(
    application_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> WorkOrder:
    return project_service.accept_application(db, application_id, user)


@router.post("/{application_id}/decline", response_model=ApplicationRead)
def decline_application(
    application_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Application:
    return project_service.decline_application(db, application_id, user)
