# backoffice/services/order_service.py
from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backoffice.api.errors import FetchError, NotFound, UpdateError, ValidationFailed
from backoffice.models._common import utc_now
from backoffice.models.enums import FulfillmentStatus, ShipmentStatus
from backoffice.models.order import Order
from backoffice.models.shipment import Shipment

logger = logging.getLogger("backoffice.orders")

SORTABLE_COLUMNS = {
    "created_at": Order.created_at,
    "updated_at": Order.updated_at,
    "total_amount": Order.total_amount,
    "order_number": Order.order_number,
    "status": Order.status,
}

ORDER_FIELDS = ("status", "payment_status", "fulfillment_status", "notes")
SHIPMENT_FIELDS = ("tracking_number", "carrier")


@dataclass(frozen=True)
class OrderPage:
    orders: List[Order]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass(frozen=True)
class OrderUpdateOutcome:
    order: Order
    previous: Dict[str, Any]
    changes: Dict[str, Any]


class OrderService:
    """后台订单：列表 / 详情 / 改单（不持有状态，session 由调用方注入）。"""

    def __init__(self, *, clock: Callable[[], datetime] = utc_now):
        self._clock = clock

    async def list_orders(
        self,
        session: AsyncSession,
        *,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> OrderPage:
        conds = []
        if status and status != "all":
            conds.append(Order.status == status)
        if search:
            pattern = f"%{search.strip().lower()}%"
            conds.append(
                or_(
                    func.lower(Order.order_number).like(pattern),
                    func.lower(Order.email).like(pattern),
                )
            )

        column = SORTABLE_COLUMNS.get(sort_by)
        if column is None:
            raise ValidationFailed(
                f"Unsupported sort field: {sort_by}",
                details=[
                    {
                        "type": "validation",
                        "path": "sort_by",
                        "reason": "expected one of " + ", ".join(SORTABLE_COLUMNS),
                    }
                ],
            )
        ordering = column.asc() if sort_order == "asc" else column.desc()

        stmt = (
            select(Order)
            .where(*conds)
            .options(selectinload(Order.customer))
            .order_by(ordering, Order.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Order).where(*conds)

        try:
            orders = list((await session.execute(stmt)).scalars().all())
            total = int((await session.execute(count_stmt)).scalar_one())
        except SQLAlchemyError as e:
            logger.exception("order list query failed")
            raise FetchError("Failed to fetch orders") from e

        return OrderPage(orders=orders, page=page, limit=limit, total=total)

    async def get_order(self, session: AsyncSession, order_id: uuid.UUID) -> Order:
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .options(
                selectinload(Order.customer),
                selectinload(Order.items),
                selectinload(Order.shipment),
            )
        )
        try:
            order = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception("order fetch failed: %s", order_id)
            raise FetchError("Failed to fetch order") from e
        if order is None:
            raise NotFound("Order not found")
        return order

    async def update_order(
        self,
        session: AsyncSession,
        order_id: uuid.UUID,
        changes: Dict[str, Any],
    ) -> OrderUpdateOutcome:
        """
        改订单主档字段（status / payment_status / fulfillment_status / notes）。
        物流字段不在这里落库，由 sync_shipment 在主事务提交后 best-effort 处理。
        """
        if not changes:
            raise ValidationFailed("No valid fields provided for update")

        try:
            order = (
                await session.execute(select(Order).where(Order.id == order_id))
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception("order fetch failed: %s", order_id)
            raise FetchError("Failed to fetch order") from e
        if order is None:
            raise NotFound("Order not found")

        previous = {
            "id": str(order.id),
            "status": order.status,
            "fulfillment_status": order.fulfillment_status,
        }

        for name in ORDER_FIELDS:
            if name in changes:
                setattr(order, name, changes[name])
        order.updated_at = self._clock()

        try:
            await session.flush()
        except SQLAlchemyError as e:
            logger.exception("order update failed: %s", order_id)
            raise UpdateError("Failed to update order") from e

        logger.info("order %s updated: fields=%s", order_id, sorted(changes))
        return OrderUpdateOutcome(order=order, previous=previous, changes=dict(changes))

    async def sync_shipment(
        self,
        session: AsyncSession,
        order_id: uuid.UUID,
        changes: Dict[str, Any],
    ) -> Optional[Shipment]:
        """
        按 order_id upsert 物流记录；仅当改单带了 tracking_number / carrier 时生效。
        fulfillment_status 变为 fulfilled → in_transit 并记发货时间，否则 pending。
        """
        if not any(changes.get(k) for k in SHIPMENT_FIELDS):
            return None

        now = self._clock()
        shipped = changes.get("fulfillment_status") == FulfillmentStatus.FULFILLED.value

        shipment = (
            await session.execute(select(Shipment).where(Shipment.order_id == order_id))
        ).scalar_one_or_none()
        if shipment is None:
            shipment = Shipment(order_id=order_id)
            session.add(shipment)

        for name in SHIPMENT_FIELDS:
            if changes.get(name):
                setattr(shipment, name, changes[name])
        shipment.status = (ShipmentStatus.IN_TRANSIT if shipped else ShipmentStatus.PENDING).value
        shipment.shipped_at = now if shipped else None
        shipment.updated_at = now

        await session.commit()
        return shipment
