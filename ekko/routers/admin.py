"""Back-office escalation endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ekko.db import get_db
from ekko.models.api_key import ApiKey, ApiScope
from ekko.models.work_order import WorkOrder
from ekko.schemas.work_order import WorkOrderRead
from ekko.security import require_scope
from ekko.services import work_orders as work_order_service
from ekko.utils.audit import actor_from_api_key

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/work-orders/{work_order_id}/dispute", response_model=WorkOrderRead)
def dispute_work_order(
    work_order_id: int,
    db: Session = Depends(get_db),
    api_key: ApiKey = Depends(require_scope({ApiScope.admin, ApiScope.support})),
) -> WorkOrder:
    """Freeze a work order pending out-of-band resolution."""

    actor = actor_from_api_key(api_key, fallback="apikey:unknown")
    return work_order_service.dispute(db, work_order_id, actor=actor, actor_user_id=api_key.user_id)
