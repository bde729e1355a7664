"""Project (gig) endpoints, including direct requests."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ekko.db import get_db
from ekko.models.project import Application, Project
from ekko.models.user import User
from ekko.models.work_order import WorkOrder
from ekko.schemas.project import ApplicationCreate, ApplicationRead, ProjectCreate, ProjectRead
from ekko.schemas.work_order import WorkOrderRead
from ekko.security import get_current_user
from ekko.services import projects as project_service

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Project:
    return project_service.create_project(db, payload, user)


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Project:
    return project_service.get_project(db, project_id)


@router.post(
    "/{project_id}/applications",
    response_model=ApplicationRead,
    status_code=status.HTTP_201_CREATED,
)
def apply_to_project(
    project_id: int,
    payload: ApplicationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Application:
    return project_service.apply_to_project(db, project_id, payload, user)


@router.post(
    "/{project_id}/direct-request/accept",
    response_model=WorkOrderRead,
    status_code=status.HTTP_201_CREATED,
)
def accept_direct_request(
    project_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> WorkOrder:
    return project_service.accept_direct_request(db, project_id, user)


@router.post("/{project_id}/direct-request/decline", response_model=ProjectRead)
def decline_direct_request(
    project_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Project:
    return project_service.decline_direct_request(db, project_id, user)
