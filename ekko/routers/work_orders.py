"""Work order endpoints."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ekko.config import get_settings
from ekko.db import get_db
from ekko.models.escrow import Escrow
from ekko.models.user import User
from ekko.models.work_order import WorkOrder, WorkOrderStatus
from ekko.schemas.escrow import EscrowRead
from ekko.schemas.work_order import WorkOrderDetail, WorkOrderPage, WorkOrderRead, WorkOrderSummary
from ekko.security import get_current_user
from ekko.services import escrow as escrow_service
from ekko.services import work_orders as work_order_service

router = APIRouter(prefix="/work-orders", tags=["work-orders"])


@router.get("", response_model=WorkOrderPage)
def list_my_work_orders(
    status_filter: WorkOrderStatus | None = Query(default=None, alias="status"),
    cursor: int | None = Query(default=None, ge=1),
    limit: int | None = Query(default=None, ge=1, le=50),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> WorkOrderPage:
    items, next_cursor = work_order_service.list_my_work_orders(
        db,
        user,
        status=status_filter,
        cursor=cursor,
        limit=limit or get_settings().WORK_ORDERS_PAGE_SIZE,
    )
    return WorkOrderPage(
        items=[WorkOrderSummary.model_validate(item) for item in items],
        next_cursor=next_cursor,
    )


@router.get("/{work_order_id}", response_model=WorkOrderDetail)
def get_work_order(
    work_order_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> WorkOrder:
    return work_order_service.get_work_order(db, work_order_id, user)


@router.post("/{work_order_id}/start", response_model=WorkOrderRead)
def start_work_order(
    work_order_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> WorkOrder:
    return work_order_service.start(db, work_order_id, user)


@router.post("/{work_order_id}/cancel", response_model=WorkOrderRead)
def cancel_work_order(
    work_order_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> WorkOrder:
    return work_order_service.cancel(db, work_order_id, user)


@router.post("/{work_order_id}/escrow/fund", response_model=EscrowRead, status_code=status.HTTP_200_OK)
def fund_escrow(
    work_order_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Escrow:
    return escrow_service.fund_escrow(db, work_order_id, user)
