from decimal import Decimal

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy import update

from ekko.config import get_settings
from ekko.models.delivery import Delivery, DeliveryStatus
from ekko.models.escrow import EscrowStatus
from ekko.models.milestone import MilestoneStatus
from ekko.models.project import BudgetType
from ekko.models.work_order import WorkOrderStatus
from ekko.schemas.delivery import DeliveryCreate
from ekko.schemas.milestone import MilestoneCreate
from ekko.services import deliveries as delivery_service
from ekko.services import milestones as milestone_service
from ekko.services.completion import all_milestones_approved, any_approval


@pytest.fixture
def milestone_order(db_session, parties, started_work_order):
    """A started MILESTONE work order with two 200.00 milestones and escrow of 400.00."""

    client_user, _ = parties
    work_order = started_work_order(
        escrow_total="400.00", agreed_rate="400.00", budget_type=BudgetType.MILESTONE
    )
    first = milestone_service.add_milestone(
        db_session, work_order.id, MilestoneCreate(title="Part 1", amount=Decimal("200")), client_user
    )
    second = milestone_service.add_milestone(
        db_session, work_order.id, MilestoneCreate(title="Part 2", amount=Decimal("200")), client_user
    )
    return work_order, first, second


def _submit(db_session, work_order, user, milestone=None, message="here you go"):
    payload = DeliveryCreate(message=message, milestone_id=milestone.id if milestone else None)
    return delivery_service.submit_delivery(db_session, work_order.id, payload, user)


def test_submit_moves_milestone_and_order_to_delivered(db_session, parties, milestone_order):
    _, creative_user = parties
    work_order, first, second = milestone_order

    delivery = _submit(db_session, work_order, creative_user, first)

    assert delivery.milestone_id == first.id
    assert first.status == MilestoneStatus.DELIVERED
    assert second.status == MilestoneStatus.PENDING
    assert work_order.status == WorkOrderStatus.DELIVERED


def test_approving_one_of_two_milestones_keeps_order_open(db_session, parties, milestone_order):
    client_user, creative_user = parties
    work_order, first, second = milestone_order
    delivery = _submit(db_session, work_order, creative_user, first)

    delivery, work_order = delivery_service.approve_delivery(
        db_session, delivery.id, client_user, completion_policy=all_milestones_approved
    )

    assert delivery.status == DeliveryStatus.APPROVED
    assert delivery.reviewed_at is not None
    assert first.status == MilestoneStatus.APPROVED
    assert work_order.status == WorkOrderStatus.IN_PROGRESS
    assert work_order.escrow.status == EscrowStatus.FUNDED

    final = _submit(db_session, work_order, creative_user, second)
    final, work_order = delivery_service.approve_delivery(
        db_session, final.id, client_user, completion_policy=all_milestones_approved
    )
    assert second.status == MilestoneStatus.APPROVED
    assert work_order.status == WorkOrderStatus.COMPLETED
    assert work_order.escrow.status == EscrowStatus.RELEASED
    assert work_order.escrow.released_amount == Decimal("400.00")


def test_any_approval_policy_completes_immediately(db_session, parties, milestone_order):
    client_user, creative_user = parties
    work_order, first, _ = milestone_order
    delivery = _submit(db_session, work_order, creative_user, first)

    _, work_order = delivery_service.approve_delivery(
        db_session, delivery.id, client_user, completion_policy=any_approval
    )

    assert work_order.status == WorkOrderStatus.COMPLETED
    assert work_order.escrow.status == EscrowStatus.RELEASED


def test_per_milestone_release(db_session, parties, milestone_order, monkeypatch):
    monkeypatch.setattr(get_settings(), "ESCROW_RELEASE_PER_MILESTONE", True)
    client_user, creative_user = parties
    work_order, first, second = milestone_order

    delivery = _submit(db_session, work_order, creative_user, first)
    _, work_order = delivery_service.approve_delivery(db_session, delivery.id, client_user)
    assert work_order.escrow.status == EscrowStatus.PARTIALLY_RELEASED
    assert work_order.escrow.released_amount == Decimal("200.00")

    delivery = _submit(db_session, work_order, creative_user, second)
    _, work_order = delivery_service.approve_delivery(db_session, delivery.id, client_user)
    assert work_order.status == WorkOrderStatus.COMPLETED
    assert work_order.escrow.status == EscrowStatus.RELEASED
    assert work_order.escrow.released_amount == Decimal("400.00")


def test_revision_moves_milestone_to_in_revision(db_session, parties, milestone_order):
    client_user, creative_user = parties
    work_order, first, _ = milestone_order
    delivery = _submit(db_session, work_order, creative_user, first)

    delivery = delivery_service.request_revision(db_session, delivery.id, "  tighten kerning  ", client_user)

    assert delivery.revision_note == "tighten kerning"
    assert first.status == MilestoneStatus.IN_REVISION
    assert work_order.status == WorkOrderStatus.IN_REVISION

    _submit(db_session, work_order, creative_user, first)
    assert first.status == MilestoneStatus.DELIVERED


@pytest.mark.parametrize("note", ["", "   ", None])
def test_revision_requires_a_note(db_session, parties, started_work_order, note):
    client_user, creative_user = parties
    work_order = started_work_order()
    delivery = _submit(db_session, work_order, creative_user)

    with pytest.raises(HTTPException) as exc:
        delivery_service.request_revision(db_session, delivery.id, note, client_user)

    assert exc.value.status_code == 422
    assert exc.value.detail["error"]["code"] == "REVISION_NOTE_REQUIRED"
    db_session.refresh(delivery)
    assert delivery.status == DeliveryStatus.PENDING_REVIEW


def test_review_happens_once(db_session, parties, started_work_order):
    client_user, creative_user = parties
    work_order = started_work_order()
    delivery = _submit(db_session, work_order, creative_user)
    delivery_service.request_revision(db_session, delivery.id, "again", client_user)

    with pytest.raises(HTTPException) as exc:
        delivery_service.approve_delivery(db_session, delivery.id, client_user)
    assert exc.value.status_code == 409
    assert exc.value.detail["error"]["code"] == "DELIVERY_ALREADY_REVIEWED"

    with pytest.raises(HTTPException) as exc:
        delivery_service.request_revision(db_session, delivery.id, "and again", client_user)
    assert exc.value.detail["error"]["code"] == "DELIVERY_ALREADY_REVIEWED"


def test_roles_are_enforced(db_session, parties, started_work_order):
    client_user, creative_user = parties
    work_order = started_work_order()

    with pytest.raises(HTTPException) as exc:
        _submit(db_session, work_order, client_user)
    assert exc.value.detail["error"]["code"] == "CREATIVE_ONLY"

    delivery = _submit(db_session, work_order, creative_user)
    with pytest.raises(HTTPException) as exc:
        delivery_service.approve_delivery(db_session, delivery.id, creative_user)
    assert exc.value.detail["error"]["code"] == "CLIENT_ONLY"

    with pytest.raises(HTTPException) as exc:
        delivery_service.request_revision(db_session, delivery.id, "self review", creative_user)
    assert exc.value.detail["error"]["code"] == "CLIENT_ONLY"


def test_submit_requires_work_in_progress(db_session, parties, make_work_order):
    _, creative_user = parties
    work_order = make_work_order()

    with pytest.raises(HTTPException) as exc:
        _submit(db_session, work_order, creative_user)
    assert exc.value.status_code == 409
    assert exc.value.detail["error"]["code"] == "INVALID_WORK_ORDER_STATUS"


def test_submit_against_foreign_milestone_is_rejected(db_session, parties, started_work_order, milestone_order):
    client_user, creative_user = parties
    _, foreign, _ = milestone_order
    work_order = started_work_order()

    with pytest.raises(HTTPException) as exc:
        _submit(db_session, work_order, creative_user, foreign)
    assert exc.value.status_code == 404
    assert exc.value.detail["error"]["code"] == "MILESTONE_NOT_FOUND"


def test_submit_against_approved_milestone_is_rejected(db_session, parties, milestone_order):
    client_user, creative_user = parties
    work_order, first, _ = milestone_order
    delivery = _submit(db_session, work_order, creative_user, first)
    delivery_service.approve_delivery(db_session, delivery.id, client_user, completion_policy=all_milestones_approved)

    with pytest.raises(HTTPException) as exc:
        _submit(db_session, work_order, creative_user, first)
    assert exc.value.detail["error"]["code"] == "MILESTONE_ALREADY_APPROVED"


def test_delivery_payload_validation():
    with pytest.raises(ValidationError):
        DeliveryCreate(message="")
    with pytest.raises(ValidationError):
        DeliveryCreate(message="x" * (get_settings().DELIVERY_MESSAGE_MAX + 1))
    with pytest.raises(ValidationError):
        DeliveryCreate(message="ok", attachments=["not a url"])
    assert DeliveryCreate(message="ok", attachments=["https://cdn.example.com/a.png"]).attachments


def test_review_reads_delivery_state_under_the_order_lock(db_session, parties, started_work_order):
    client_user, creative_user = parties
    work_order = started_work_order()
    delivery = _submit(db_session, work_order, creative_user)
    assert delivery.status == DeliveryStatus.PENDING_REVIEW

    # A competing review commits while this session still holds the old row.
    table = Delivery.__table__
    db_session.execute(
        update(table).where(table.c.id == delivery.id).values(status=DeliveryStatus.REVISION_REQUESTED)
    )

    with pytest.raises(HTTPException) as exc:
        delivery_service.approve_delivery(db_session, delivery.id, client_user)
    assert exc.value.status_code == 409
    assert exc.value.detail["error"]["code"] == "DELIVERY_ALREADY_REVIEWED"


def test_missing_delivery_is_not_found(db_session, parties):
    client_user, _ = parties
    with pytest.raises(HTTPException) as exc:
        delivery_service.approve_delivery(db_session, 987654, client_user)
    assert exc.value.status_code == 404
    assert exc.value.detail["error"]["code"] == "DELIVERY_NOT_FOUND"


def test_revision_checks_access_before_the_note(db_session, parties, started_work_order, make_user):
    _, creative_user = parties
    work_order = started_work_order()
    delivery = _submit(db_session, work_order, creative_user)

    with pytest.raises(HTTPException) as exc:
        delivery_service.request_revision(db_session, 987654, "", creative_user)
    assert exc.value.status_code == 404
    assert exc.value.detail["error"]["code"] == "DELIVERY_NOT_FOUND"

    with pytest.raises(HTTPException) as exc:
        delivery_service.request_revision(db_session, delivery.id, "", make_user("stranger"))
    assert exc.value.status_code == 403
    assert exc.value.detail["error"]["code"] == "NOT_A_PARTICIPANT"

    with pytest.raises(HTTPException) as exc:
        delivery_service.request_revision(db_session, delivery.id, "   ", creative_user)
    assert exc.value.status_code == 403
    assert exc.value.detail["error"]["code"] == "CLIENT_ONLY"
