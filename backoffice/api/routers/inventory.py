# backoffice/api/routers/inventory.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps import CurrentUser, require_admin
from backoffice.core.config import get_settings
from backoffice.core.tx import tx_commit
from backoffice.db.session import get_session
from backoffice.schemas.inventory import (
    AdjustRequest,
    AdjustResponse,
    MovementListResponse,
)
from backoffice.services.inventory_adjust import Adjustment, InventoryAdjuster, list_movements

router = APIRouter(prefix="/api/admin/inventory", tags=["admin-inventory"])


def get_inventory_adjuster() -> InventoryAdjuster:
    return InventoryAdjuster()


@router.post("/adjust", response_model=AdjustResponse)
async def adjust_inventory(
    body: AdjustRequest,
    admin: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    adjuster: InventoryAdjuster = Depends(get_inventory_adjuster),
):
    """
    批量调整变体库存：整批一个事务，按请求顺序执行；
    任意一条失败整批回滚，错误体 details[].path 指出失败的下标。
    """
    adjustments = [
        Adjustment(
            variant_id=a.variant_id,
            delta=a.adjustment,
            reference_type=a.reference_type,
            reference_id=a.reference_id,
            notes=a.notes,
        )
        for a in body.adjustments
    ]
    async with tx_commit(session):
        outcomes = await adjuster.apply(session, adjustments, actor_id=admin.id)

    return {"success": True, "results": [o.to_dict() for o in outcomes]}


@router.get("/movements", response_model=MovementListResponse)
async def get_inventory_movements(
    variant_id: Optional[UUID] = Query(None),
    product_id: Optional[UUID] = Query(None),
    limit: int = Query(50, ge=1),
    _admin: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    capped = min(limit, get_settings().MOVEMENTS_MAX_LIMIT)
    rows = await list_movements(
        session,
        variant_id=variant_id,
        product_id=product_id,
        limit=capped,
    )
    return {"data": rows}
