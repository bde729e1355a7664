"""Delivery submission and review endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ekko.db import get_db
from ekko.models.delivery import Delivery
from ekko.models.user import User
from ekko.schemas.delivery import DeliveryCreate, DeliveryRead, RevisionRequest
from ekko.schemas.escrow import EscrowRead
from ekko.schemas.work_order import DeliveryReviewRead, WorkOrderRead
from ekko.security import get_current_user
from ekko.services import deliveries as delivery_service
from ekko.services.completion import CompletionPolicy, get_completion_policy

router = APIRouter(tags=["deliveries"])


@router.post(
    "/work-orders/{work_order_id}/deliveries",
    response_model=DeliveryRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_delivery(
    work_order_id: int,
    payload: DeliveryCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Delivery:
    return delivery_service.submit_delivery(db, work_order_id, payload, user)


@router.post("/deliveries/{delivery_id}/approve", response_model=DeliveryReviewRead)
def approve_delivery(
    delivery_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    completion_policy: CompletionPolicy = Depends(get_completion_policy),
) -> DeliveryReviewRead:
    delivery, work_order = delivery_service.approve_delivery(
        db, delivery_id, user, completion_policy=completion_policy
    )
    escrow = work_order.escrow
    return DeliveryReviewRead(
        delivery=DeliveryRead.model_validate(delivery),
        work_order=WorkOrderRead.model_validate(work_order),
        escrow=EscrowRead.model_validate(escrow) if escrow is not None else None,
    )


@router.post("/deliveries/{delivery_id}/request-revision", response_model=DeliveryRead)
def request_revision(
    delivery_id: int,
    payload: RevisionRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Delivery:
    return delivery_service.request_revision(db, delivery_id, payload.revision_note, user)
