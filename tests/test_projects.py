from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from ekko.models.escrow import EscrowStatus
from ekko.models.notification import Notification, NotificationType
from ekko.models.project import ApplicationStatus, BudgetType, ProjectStatus
from ekko.models.work_order import WorkOrderStatus
from ekko.schemas.project import ApplicationCreate, ProjectCreate
from ekko.services import projects as project_service


def _direct_request(db_session, client_user, creative_user, **overrides):
    payload = ProjectCreate(
        title="Album cover",
        budget_min=Decimal("300"),
        budget_max=Decimal("450"),
        target_creative_id=creative_user.id,
        **overrides,
    )
    return project_service.create_project(db_session, payload, client_user)


def _public_project(db_session, client_user, **overrides):
    payload = ProjectCreate(title="Logo refresh", budget_min=Decimal("200"), budget_max=Decimal("600"), **overrides)
    return project_service.create_project(db_session, payload, client_user)


def test_accept_direct_request_creates_work_order(db_session, parties):
    client_user, creative_user = parties
    project = _direct_request(db_session, client_user, creative_user)
    assert project.is_direct

    work_order = project_service.accept_direct_request(db_session, project.id, creative_user)

    assert work_order.status == WorkOrderStatus.PENDING
    assert work_order.client_id == client_user.id
    assert work_order.creative_id == creative_user.id
    assert work_order.agreed_rate == Decimal("300.00")
    assert work_order.escrow.total_amount == Decimal("450.00")
    assert work_order.escrow.status == EscrowStatus.PENDING
    assert project.status == ProjectStatus.ASSIGNED

    notified = db_session.scalars(
        select(Notification.user_id).where(
            Notification.entity_id == work_order.id,
            Notification.type == NotificationType.WORK_ORDER_UPDATE,
        )
    ).all()
    assert notified == [client_user.id]


def test_direct_request_only_for_its_target(db_session, parties, make_user):
    client_user, creative_user = parties
    project = _direct_request(db_session, client_user, creative_user)

    with pytest.raises(HTTPException) as exc:
        project_service.accept_direct_request(db_session, project.id, make_user("other"))
    assert exc.value.status_code == 403
    assert exc.value.detail["error"]["code"] == "NOT_DIRECT_TARGET"


def test_declined_direct_request_cannot_be_accepted(db_session, parties):
    client_user, creative_user = parties
    project = _direct_request(db_session, client_user, creative_user)

    project = project_service.decline_direct_request(db_session, project.id, creative_user)
    assert project.status == ProjectStatus.CANCELLED

    with pytest.raises(HTTPException) as exc:
        project_service.accept_direct_request(db_session, project.id, creative_user)
    assert exc.value.status_code == 409
    assert exc.value.detail["error"]["code"] == "PROJECT_NOT_OPEN"


def test_cannot_direct_request_yourself(db_session, parties):
    client_user, _ = parties
    with pytest.raises(HTTPException) as exc:
        _direct_request(db_session, client_user, client_user)
    assert exc.value.detail["error"]["code"] == "SAME_PARTY"


def test_accept_application_declines_the_rest(db_session, parties, make_user):
    client_user, creative_user = parties
    rival = make_user("rival")
    project = _public_project(db_session, client_user, budget_type=BudgetType.MILESTONE)

    chosen = project_service.apply_to_project(
        db_session, project.id, ApplicationCreate(proposed_rate=Decimal("350")), creative_user
    )
    other = project_service.apply_to_project(db_session, project.id, ApplicationCreate(), rival)

    work_order = project_service.accept_application(db_session, chosen.id, client_user)

    assert work_order.creative_id == creative_user.id
    assert work_order.agreed_rate == Decimal("350.00")
    assert work_order.agreed_budget_type == BudgetType.MILESTONE
    assert work_order.escrow.total_amount == Decimal("600.00")
    db_session.refresh(other)
    db_session.refresh(chosen)
    assert chosen.status == ApplicationStatus.ACCEPTED
    assert other.status == ApplicationStatus.DECLINED
    assert project.status == ProjectStatus.ASSIGNED

    with pytest.raises(HTTPException) as exc:
        project_service.decline_application(db_session, other.id, client_user)
    assert exc.value.status_code == 409
    assert exc.value.detail["error"]["code"] in {"PROJECT_NOT_OPEN", "APPLICATION_ALREADY_PROCESSED"}


def test_apply_once_per_project(db_session, parties):
    client_user, creative_user = parties
    project = _public_project(db_session, client_user)
    project_service.apply_to_project(db_session, project.id, ApplicationCreate(), creative_user)

    with pytest.raises(HTTPException) as exc:
        project_service.apply_to_project(db_session, project.id, ApplicationCreate(), creative_user)
    assert exc.value.status_code == 409
    assert exc.value.detail["error"]["code"] == "ALREADY_APPLIED"


def test_direct_requests_take_no_applications(db_session, parties, make_user):
    client_user, creative_user = parties
    project = _direct_request(db_session, client_user, creative_user)

    with pytest.raises(HTTPException) as exc:
        project_service.apply_to_project(db_session, project.id, ApplicationCreate(), make_user("other"))
    assert exc.value.detail["error"]["code"] == "PROJECT_IS_DIRECT"


def test_only_owner_reviews_applications(db_session, parties, make_user):
    client_user, creative_user = parties
    project = _public_project(db_session, client_user)
    application = project_service.apply_to_project(db_session, project.id, ApplicationCreate(), creative_user)

    with pytest.raises(HTTPException) as exc:
        project_service.accept_application(db_session, application.id, make_user("intruder"))
    assert exc.value.status_code == 403
    assert exc.value.detail["error"]["code"] == "NOT_PROJECT_OWNER"

    declined = project_service.decline_application(db_session, application.id, client_user)
    assert declined.status == ApplicationStatus.DECLINED
    with pytest.raises(HTTPException) as exc:
        project_service.accept_application(db_session, application.id, client_user)
    assert exc.value.detail["error"]["code"] == "APPLICATION_ALREADY_PROCESSED"


def test_budget_range_is_validated():
    with pytest.raises(ValueError):
        ProjectCreate(title="Bad", budget_min=Decimal("10"), budget_max=Decimal("5"))
