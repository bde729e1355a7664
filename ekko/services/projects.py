"""Gig intake: direct requests and applications, the two ways a work order is born."""
import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ekko.models.notification import NotificationType
from ekko.models.project import (
    OPEN_APPLICATION_STATES,
    Application,
    ApplicationStatus,
    Project,
    ProjectStatus,
)
from ekko.models.user import User
from ekko.models.work_order import WorkOrder
from ekko.schemas.project import ApplicationCreate, ProjectCreate
from ekko.services import notifications, work_orders
from ekko.services.access import unit_of_work
from ekko.utils.audit import actor_from_user, log_audit
from ekko.utils.errors import conflict, forbidden, not_found, unprocessable
from ekko.utils.money import to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def _get_project_for_update(db: Session, project_id: int) -> Project:
    stmt = (
        select(Project)
        .where(Project.id == project_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    project = db.scalars(stmt).first()
    if project is None:
        raise not_found("PROJECT_NOT_FOUND", "Project not found.")
    return project


def _get_application_for_update(db: Session, application_id: int) -> Application:
    application = db.get(Application, application_id)
    if application is None:
        raise not_found("APPLICATION_NOT_FOUND", "Application not found.")
    _get_project_for_update(db, application.project_id)
    return application


def _ensure_open(project: Project) -> None:
    if project.status != ProjectStatus.OPEN:
        raise conflict(
            "PROJECT_NOT_OPEN",
            "This project is no longer open.",
            details={"status": project.status.value},
        )


def _require_direct_target(project: Project, user: User) -> None:
    if not project.is_direct or project.target_creative_id != user.id:
        raise forbidden("NOT_DIRECT_TARGET", "This is not a direct request for you.")


def create_project(db: Session, payload: ProjectCreate, user: User) -> Project:
    """Post a gig; naming a target creative makes it a direct request."""

    if payload.target_creative_id is not None:
        if payload.target_creative_id == user.id:
            raise unprocessable("SAME_PARTY", "You cannot send a direct request to yourself.")
        target = db.get(User, payload.target_creative_id)
        if target is None or not target.is_active:
            raise not_found("USER_NOT_FOUND", "Target creative not found.")

    with unit_of_work(db):
        project = Project(
            client_id=user.id,
            title=payload.title,
            description=payload.description,
            budget_type=payload.budget_type,
            budget_min=payload.budget_min,
            budget_max=payload.budget_max,
            deadline=payload.deadline,
            is_direct=payload.target_creative_id is not None,
            target_creative_id=payload.target_creative_id,
            status=ProjectStatus.OPEN,
        )
        db.add(project)
        db.flush()
        log_audit(
            db,
            actor=actor_from_user(user),
            action="PROJECT_CREATED",
            entity="Project",
            entity_id=project.id,
            data={"is_direct": project.is_direct, "budget_type": project.budget_type.value},
        )
    return project


def get_project(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if project is None:
        raise not_found("PROJECT_NOT_FOUND", "Project not found.")
    return project


def apply_to_project(db: Session, project_id: int, payload: ApplicationCreate, user: User) -> Application:
    """Creative bids on a public, open project once."""

    with unit_of_work(db):
        project = _get_project_for_update(db, project_id)
        if project.is_direct:
            raise conflict("PROJECT_IS_DIRECT", "Direct requests do not take applications.")
        _ensure_open(project)
        if project.client_id == user.id:
            raise unprocessable("SAME_PARTY", "You cannot apply to your own project.")
        existing = db.scalars(
            select(Application.id).where(
                Application.project_id == project.id, Application.creative_id == user.id
            )
        ).first()
        if existing is not None:
            raise conflict("ALREADY_APPLIED", "You have already applied to this project.")

        application = Application(
            project_id=project.id,
            creative_id=user.id,
            proposed_rate=payload.proposed_rate,
            cover_letter=payload.cover_letter,
            status=ApplicationStatus.PENDING,
        )
        db.add(application)
        db.flush()
        log_audit(
            db,
            actor=actor_from_user(user),
            action="APPLICATION_SUBMITTED",
            entity="Application",
            entity_id=application.id,
            data={"project_id": project.id},
        )
    return application


def accept_direct_request(db: Session, project_id: int, user: User) -> WorkOrder:
    """Target creative accepts; the project is assigned and a work order with escrow is created."""

    actor = actor_from_user(user)
    with unit_of_work(db):
        project = _get_project_for_update(db, project_id)
        _require_direct_target(project, user)
        _ensure_open(project)

        agreed_rate = project.budget_min or project.budget_max or ZERO
        escrow_total = project.budget_max or project.budget_min or ZERO
        project.status = ProjectStatus.ASSIGNED
        work_order = work_orders.create_work_order(
            db,
            project_id=project.id,
            client_id=project.client_id,
            creative_id=user.id,
            agreed_rate=to_decimal(agreed_rate),
            agreed_budget_type=project.budget_type,
            escrow_total=to_decimal(escrow_total),
            deadline=project.deadline,
            actor=actor,
        )
        log_audit(
            db,
            actor=actor,
            action="DIRECT_REQUEST_ACCEPTED",
            entity="Project",
            entity_id=project.id,
            data={"work_order_id": work_order.id},
        )

    logger.info("Direct request accepted", extra={"project_id": project.id, "work_order_id": work_order.id})
    notifications.dispatch(
        db,
        [
            notifications.LifecycleEvent(
                NotificationType.WORK_ORDER_UPDATE, user.id, project.client_id, work_order.id
            )
        ],
    )
    return work_order


def decline_direct_request(db: Session, project_id: int, user: User) -> Project:
    with unit_of_work(db):
        project = _get_project_for_update(db, project_id)
        _require_direct_target(project, user)
        _ensure_open(project)
        project.status = ProjectStatus.CANCELLED
        log_audit(
            db,
            actor=actor_from_user(user),
            action="DIRECT_REQUEST_DECLINED",
            entity="Project",
            entity_id=project.id,
            data={},
        )
    return project


def accept_application(db: Session, application_id: int, user: User) -> WorkOrder:
    """Client picks a bid; every other open bid on the project is declined."""

    actor = actor_from_user(user)
    with unit_of_work(db):
        application = _get_application_for_update(db, application_id)
        project = application.project
        if project.client_id != user.id:
            raise forbidden("NOT_PROJECT_OWNER", "Not your project.")
        _ensure_open(project)
        if application.status not in OPEN_APPLICATION_STATES:
            raise conflict(
                "APPLICATION_ALREADY_PROCESSED",
                "This application has already been processed.",
                details={"status": application.status.value},
            )

        agreed_rate = to_decimal(application.proposed_rate or project.budget_min or ZERO)
        escrow_total = to_decimal(project.budget_max or project.budget_min or agreed_rate)

        application.status = ApplicationStatus.ACCEPTED
        db.execute(
            update(Application)
            .where(
                Application.project_id == project.id,
                Application.id != application.id,
                Application.status.in_(OPEN_APPLICATION_STATES),
            )
            .values(status=ApplicationStatus.DECLINED)
            .execution_options(synchronize_session="fetch")
        )
        project.status = ProjectStatus.ASSIGNED
        work_order = work_orders.create_work_order(
            db,
            project_id=project.id,
            client_id=project.client_id,
            creative_id=application.creative_id,
            agreed_rate=agreed_rate,
            agreed_budget_type=project.budget_type,
            escrow_total=escrow_total,
            deadline=project.deadline,
            actor=actor,
        )
        log_audit(
            db,
            actor=actor,
            action="APPLICATION_ACCEPTED",
            entity="Application",
            entity_id=application.id,
            data={"project_id": project.id, "work_order_id": work_order.id},
        )

    logger.info(
        "Application accepted",
        extra={"application_id": application.id, "work_order_id": work_order.id},
    )
    notifications.dispatch(
        db,
        [
            notifications.LifecycleEvent(
                NotificationType.WORK_ORDER_UPDATE, user.id, application.creative_id, work_order.id
            )
        ],
    )
    return work_order


def decline_application(db: Session, application_id: int, user: User) -> Application:
    with unit_of_work(db):
        application = _get_application_for_update(db, application_id)
        if application.project.client_id != user.id:
            raise forbidden("NOT_PROJECT_OWNER", "Not your project.")
        if application.status not in OPEN_APPLICATION_STATES:
            raise conflict(
                "APPLICATION_ALREADY_PROCESSED",
                "This application has already been processed.",
                details={"status": application.status.value},
            )
        application.status = ApplicationStatus.DECLINED
        log_audit(
            db,
            actor=actor_from_user(user),
            action="APPLICATION_DECLINED",
            entity="Application",
            entity_id=application.id,
            data={"project_id": application.project_id},
        )
    return application


__all__ = [
    "accept_application",
    "accept_direct_request",
    "apply_to_project",
    "create_project",
    "decline_application",
    "decline_direct_request",
    "get_project",
]
