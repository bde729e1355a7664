from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from ekko.models.audit import AuditLog
from ekko.models.escrow import Escrow, EscrowStatus
from ekko.models.notification import Notification, NotificationType
from ekko.services import escrow as escrow_service


def _escrow(total="500", funded="0", released="0", refunded="0", status=EscrowStatus.PENDING) -> Escrow:
    return Escrow(
        work_order_id=1,
        total_amount=Decimal(total),
        funded_amount=Decimal(funded),
        released_amount=Decimal(released),
        refunded_amount=Decimal(refunded),
        status=status,
    )


@pytest.mark.parametrize(
    "kwargs",
    [
        {"funded": "600", "status": EscrowStatus.FUNDED},
        {"funded": "500", "released": "501", "status": EscrowStatus.PARTIALLY_RELEASED},
        {"funded": "500", "released": "300", "refunded": "300", "status": EscrowStatus.REFUNDED},
        {"funded": "100", "status": EscrowStatus.PENDING},
        {"funded": "500", "released": "200", "status": EscrowStatus.RELEASED},
    ],
)
def test_check_ledger_rejects_inconsistent_states(kwargs):
    with pytest.raises(HTTPException) as exc:
        escrow_service.check_ledger(_escrow(**kwargs))
    assert exc.value.status_code == 409
    assert exc.value.detail["error"]["code"] == "ESCROW_INVARIANT_VIOLATION"


def test_check_ledger_accepts_consistent_states():
    escrow_service.check_ledger(_escrow())
    escrow_service.check_ledger(_escrow(funded="500", status=EscrowStatus.FUNDED))
    escrow_service.check_ledger(_escrow(funded="500", released="200", status=EscrowStatus.PARTIALLY_RELEASED))
    escrow_service.check_ledger(_escrow(funded="500", released="500", status=EscrowStatus.RELEASED))
    escrow_service.check_ledger(
        _escrow(funded="500", released="200", refunded="300", status=EscrowStatus.REFUNDED)
    )
    escrow_service.check_ledger(_escrow(total="0", funded="0", status=EscrowStatus.FUNDED))


def test_fund_escrow_commits_full_total(db_session, parties, make_work_order):
    client_user, creative_user = parties
    work_order = make_work_order(escrow_total="500.00")

    escrow = escrow_service.fund_escrow(db_session, work_order.id, client_user)

    assert escrow.status == EscrowStatus.FUNDED
    assert escrow.funded_amount == Decimal("500.00")
    assert escrow.funded_at is not None
    audit = db_session.scalars(
        select(AuditLog).where(AuditLog.action == "ESCROW_FUNDED", AuditLog.entity_id == escrow.id)
    ).first()
    assert audit is not None
    notes = db_session.scalars(select(Notification).where(Notification.entity_id == work_order.id)).all()
    assert [(n.user_id, n.type) for n in notes] == [(creative_user.id, NotificationType.ESCROW_UPDATE)]


def test_fund_escrow_twice_is_rejected(db_session, parties, make_work_order):
    client_user, _ = parties
    work_order = make_work_order()
    escrow_service.fund_escrow(db_session, work_order.id, client_user)

    with pytest.raises(HTTPException) as exc:
        escrow_service.fund_escrow(db_session, work_order.id, client_user)
    assert exc.value.status_code == 409
    assert exc.value.detail["error"]["code"] == "ESCROW_ALREADY_FUNDED"


def test_only_client_can_fund(db_session, parties, make_work_order, make_user):
    _, creative_user = parties
    work_order = make_work_order()

    with pytest.raises(HTTPException) as exc:
        escrow_service.fund_escrow(db_session, work_order.id, creative_user)
    assert exc.value.status_code == 403
    assert exc.value.detail["error"]["code"] == "CLIENT_ONLY"

    with pytest.raises(HTTPException) as exc:
        escrow_service.fund_escrow(db_session, work_order.id, make_user("stranger"))
    assert exc.value.status_code == 403
    assert exc.value.detail["error"]["code"] == "NOT_A_PARTICIPANT"

    db_session.refresh(work_order.escrow)
    assert work_order.escrow.status == EscrowStatus.PENDING


def test_partial_then_full_release(db_session, parties, make_work_order):
    client_user, _ = parties
    work_order = make_work_order(escrow_total="300.00")
    escrow = escrow_service.fund_escrow(db_session, work_order.id, client_user)

    released = escrow_service.release(db_session, escrow, actor="test", amount=Decimal("100"))
    assert released == Decimal("100.00")
    assert escrow.status == EscrowStatus.PARTIALLY_RELEASED

    released = escrow_service.release(db_session, escrow, actor="test")
    assert released == Decimal("200.00")
    assert escrow.status == EscrowStatus.RELEASED
    assert escrow.released_amount == escrow.funded_amount
    assert escrow.released_at is not None


def test_release_is_capped_at_unreleased_funds(db_session, parties, make_work_order):
    client_user, _ = parties
    work_order = make_work_order(escrow_total="100.00")
    escrow = escrow_service.fund_escrow(db_session, work_order.id, client_user)

    released = escrow_service.release(db_session, escrow, actor="test", amount=Decimal("250"))

    assert released == Decimal("100.00")
    assert escrow.status == EscrowStatus.RELEASED


def test_refund_returns_unreleased_remainder(db_session, parties, make_work_order):
    client_user, _ = parties
    work_order = make_work_order(escrow_total="300.00")
    escrow = escrow_service.fund_escrow(db_session, work_order.id, client_user)
    escrow_service.release(db_session, escrow, actor="test", amount=Decimal("120"))

    refunded = escrow_service.refund(db_session, escrow, actor="test")

    assert refunded == Decimal("180.00")
    assert escrow.status == EscrowStatus.REFUNDED
    assert escrow.released_amount + escrow.refunded_amount == escrow.funded_amount


def test_pending_escrow_cannot_be_released_or_refunded(db_session, make_work_order):
    work_order = make_work_order()
    escrow = work_order.escrow

    with pytest.raises(HTTPException) as exc:
        escrow_service.release(db_session, escrow, actor="test")
    assert exc.value.detail["error"]["code"] == "ESCROW_NOT_RELEASABLE"

    with pytest.raises(HTTPException) as exc:
        escrow_service.refund(db_session, escrow, actor="test")
    assert exc.value.detail["error"]["code"] == "ESCROW_NOT_REFUNDABLE"
