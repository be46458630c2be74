# backoffice/api/routers/orders.py
from __future__ import annotations

import logging
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps import CurrentUser, require_admin
from backoffice.core.audit import best_effort, write_admin_log
from backoffice.core.tx import tx_commit
from backoffice.db.session import get_session
from backoffice.schemas.orders import (
    BulkActionRequest,
    BulkActionResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderOut,
    OrderUpdate,
    OrderUpdateResponse,
)
from backoffice.services.order_bulk_actions import BulkOrderActionProcessor
from backoffice.services.order_service import OrderService

logger = logging.getLogger("backoffice.orders")

router = APIRouter(prefix="/api/admin/orders", tags=["admin-orders"])


def get_order_service() -> OrderService:
    return OrderService()


def get_bulk_processor() -> BulkOrderActionProcessor:
    return BulkOrderActionProcessor()


def _client_ip(request: Request) -> Optional[str]:
    fwd = request.headers.get("x-forwarded-for")
    if fwd:
        return fwd.split(",")[0].strip() or None
    return request.headers.get("x-real-ip") or (request.client.host if request.client else None)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    sort_by: str = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    _admin: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    svc: OrderService = Depends(get_order_service),
):
    result = await svc.list_orders(
        session,
        page=page,
        limit=limit,
        status=status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return {
        "orders": result.orders,
        "pagination": {
            "page": result.page,
            "limit": result.limit,
            "total": result.total,
            "total_pages": result.total_pages,
        },
    }


@router.post("/bulk", response_model=BulkActionResponse, response_model_exclude_unset=True)
async def bulk_order_action(
    body: BulkActionRequest,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    processor: BulkOrderActionProcessor = Depends(get_bulk_processor),
):
    async with tx_commit(session):
        result = await processor.run(
            session,
            action=body.action,
            order_ids=body.order_ids,
            data=body.data,
        )

    if body.action != "export":
        async with best_effort("admin_log:bulk_orders", session):
            await write_admin_log(
                session,
                admin_id=admin.id,
                action=f"bulk_{body.action}",
                resource_type="order",
                details={
                    "order_ids": [str(i) for i in body.order_ids],
                    "count": result.count,
                    **result.extra,
                },
                ip_address=_client_ip(request),
                user_agent=request.headers.get("user-agent"),
            )

    return result.to_dict()


@router.get("/{order_id}", response_model=OrderDetailResponse)
async def get_order(
    order_id: UUID,
    _admin: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    svc: OrderService = Depends(get_order_service),
):
    order = await svc.get_order(session, order_id)
    return {"order": order}


@router.put("/{order_id}", response_model=OrderUpdateResponse)
async def update_order(
    order_id: UUID,
    body: OrderUpdate,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    svc: OrderService = Depends(get_order_service),
):
    """
    改单：主档字段同一事务提交；
    物流 upsert 与审计日志在提交后 best-effort 执行，失败只记日志。
    """
    changes = body.model_dump(mode="json", exclude_none=True)

    async with tx_commit(session):
        outcome = await svc.update_order(session, order_id, changes)
    # 先序列化：后续 best-effort 失败回滚会让 ORM 实例过期
    order_out = OrderOut.model_validate(outcome.order)

    async with best_effort("shipment_upsert", session):
        await svc.sync_shipment(session, order_id, outcome.changes)

    async with best_effort("admin_log:update_order", session):
        await write_admin_log(
            session,
            admin_id=admin.id,
            action="update_order",
            resource_type="order",
            resource_id=order_id,
            details={
                "previous_values": outcome.previous,
                "updated_values": outcome.changes,
                "updated_fields": sorted(outcome.changes),
            },
            ip_address=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )

    return {
        "success": True,
        "message": "Order updated successfully",
        "order": order_out,
    }
