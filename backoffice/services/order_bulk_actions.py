# backoffice/services/order_bulk_actions.py
"""
订单批量操作（后台勾选多单后一次提交）：

- update_status：单条 UPDATE ... WHERE id IN (...)，返回实际命中行数
- export：读订单 + 客户资料 + 订单行，拍平成 CSV 友好的行；不生成文件
- delete：单条硬删除，订单行 / 物流记录由外键级联；无软删、无撤销

每个动作只有一条写语句；事务边界由上层 tx_commit 控制。
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backoffice.api.errors import FetchError, UpdateError, ValidationFailed
from backoffice.models._common import utc_now
from backoffice.models.enums import OrderStatus
from backoffice.models.order import Order

logger = logging.getLogger("backoffice.orders")


@dataclass
class BulkActionResult:
    message: Optional[str] = None
    count: Optional[int] = None
    rows: Optional[List[Dict[str, Any]]] = None
    filename: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": True}
        if self.message is not None:
            out["message"] = self.message
        if self.count is not None:
            out["count"] = self.count
        if self.rows is not None:
            out["data"] = self.rows
        if self.filename is not None:
            out["filename"] = self.filename
        return out


def _money(v: Optional[Decimal]) -> Decimal:
    return v if v is not None else Decimal("0")


def export_row(order: Order) -> Dict[str, Any]:
    """单笔订单 → 扁平导出行（调用方需已预加载 customer / items）。"""
    customer = order.customer
    return {
        "order_number": order.order_number,
        "customer_name": (customer.full_name if customer and customer.full_name else "Guest"),
        "customer_email": order.email,
        "status": order.status,
        "payment_status": order.payment_status,
        "fulfillment_status": order.fulfillment_status,
        "subtotal": _money(order.subtotal),
        "tax_amount": _money(order.tax_amount),
        "shipping_amount": _money(order.shipping_amount),
        "discount_amount": _money(order.discount_amount),
        "total_amount": _money(order.total_amount),
        "currency": order.currency,
        "item_count": len(order.items or []),
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "notes": order.notes,
    }


def export_filename(now: datetime) -> str:
    return f"orders_export_{now.date().isoformat()}.csv"


class BulkOrderActionProcessor:
    def __init__(self, *, clock: Callable[[], datetime] = utc_now):
        self._clock = clock

    async def run(
        self,
        session: AsyncSession,
        *,
        action: str,
        order_ids: Sequence[uuid.UUID],
        data: Optional[Mapping[str, Any]] = None,
    ) -> BulkActionResult:
        if not order_ids:
            raise ValidationFailed(
                "No orders selected",
                details=[{"type": "validation", "path": "orderIds", "reason": "empty"}],
            )

        # 去重但保持顺序，避免 IN 列表里重复 id
        ids = list(dict.fromkeys(order_ids))

        if action == "update_status":
            return await self._update_status(session, ids, data or {})
        if action == "export":
            return await self._export(session, ids)
        if action == "delete":
            return await self._delete(session, ids)

        raise ValidationFailed(
            "Invalid action",
            details=[{"type": "validation", "path": "action", "reason": str(action)}],
        )

    async def _update_status(
        self,
        session: AsyncSession,
        ids: List[uuid.UUID],
        data: Mapping[str, Any],
    ) -> BulkActionResult:
        status = data.get("status")
        if not status:
            raise ValidationFailed(
                "Status is required for update_status action",
                details=[{"type": "validation", "path": "data.status", "reason": "missing"}],
            )
        try:
            status = OrderStatus(str(status)).value
        except ValueError:
            raise ValidationFailed(
                f"Invalid order status: {status}",
                details=[
                    {
                        "type": "validation",
                        "path": "data.status",
                        "reason": "expected one of " + ", ".join(s.value for s in OrderStatus),
                    }
                ],
            )

        try:
            result = await session.execute(
                update(Order)
                .where(Order.id.in_(ids))
                .values(status=status, updated_at=self._clock())
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.exception("bulk status update failed: %d ids", len(ids))
            raise UpdateError("Failed to update order statuses") from e

        count = int(result.rowcount or 0)
        logger.info("bulk update_status: status=%s requested=%d matched=%d", status, len(ids), count)
        return BulkActionResult(
            message=f"Updated {count} orders to {status}",
            count=count,
            extra={"status": status},
        )

    async def _export(self, session: AsyncSession, ids: List[uuid.UUID]) -> BulkActionResult:
        stmt = (
            select(Order)
            .where(Order.id.in_(ids))
            .options(selectinload(Order.customer), selectinload(Order.items))
            .order_by(Order.created_at.desc())
        )
        try:
            orders = list((await session.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            logger.exception("bulk export read failed: %d ids", len(ids))
            raise FetchError("Failed to fetch orders for export") from e

        rows = [export_row(o) for o in orders]
        logger.info("bulk export: requested=%d exported=%d", len(ids), len(rows))
        return BulkActionResult(
            count=len(rows),
            rows=rows,
            filename=export_filename(self._clock()),
        )

    async def _delete(self, session: AsyncSession, ids: List[uuid.UUID]) -> BulkActionResult:
        try:
            result = await session.execute(
                delete(Order)
                .where(Order.id.in_(ids))
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.exception("bulk delete failed: %d ids", len(ids))
            raise UpdateError("Failed to delete orders") from e

        count = int(result.rowcount or 0)
        logger.warning("bulk delete: requested=%d deleted=%d", len(ids), count)
        return BulkActionResult(message=f"Deleted {count} orders", count=count)
