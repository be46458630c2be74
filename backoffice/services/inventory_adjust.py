# backoffice/services/inventory_adjust.py
"""
库存调整（后台批量调账）：

- 一次请求 = 一个事务：任意一条失败，整批回滚（不会出现余额已改、流水未写）
- 严格按请求顺序逐条执行，不合并、不重排
- 每条：先写锁定该行并读出余额 → 计算 max(当前 + delta, 0) → 条件 UPDATE → 追加流水
- 扣减超过余额时截断为 0（clamped=True），不拒绝；超过列上限 → ValidationFailed
- 变体不存在 → NotFound，整批回滚
- 不管理事务（事务边界由上层 tx_commit 控制）

加锁方式：UPDATE ... SET updated_at RETURNING quantity。
PG 上拿到行锁；SQLite 上拿到库级写锁（SELECT ... FOR UPDATE 在 SQLite 上不生效，
且 pysqlite 不会为 SELECT 开事务）。并发批次因此在读余额之前就已串行，
before / clamped 都是加锁后的真实值。
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.errors import FetchError, NotFound, UpdateError, ValidationFailed
from backoffice.models._common import utc_now
from backoffice.models.enums import MovementReferenceType
from backoffice.models.inventory_movement import InventoryMovement
from backoffice.models.product import QUANTITY_MAX, ProductVariant

logger = logging.getLogger("backoffice.inventory")


@dataclass(frozen=True)
class Adjustment:
    variant_id: uuid.UUID
    delta: int
    reference_type: MovementReferenceType = MovementReferenceType.ADJUSTMENT
    reference_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class AdjustmentOutcome:
    variant_id: uuid.UUID
    before: int
    delta: int
    after: int
    clamped: bool
    movement_id: uuid.UUID

    def to_dict(self) -> dict:
        return {
            "variant_id": self.variant_id,
            "before": self.before,
            "delta": self.delta,
            "after": self.after,
            "clamped": self.clamped,
            "movement_id": self.movement_id,
        }


def clamp_quantity(current: int, delta: int) -> int:
    return max(int(current) + int(delta), 0)


def _path(index: int) -> str:
    return f"adjustments[{index}]"


class InventoryAdjuster:
    """无状态 service；session 由调用方注入。"""

    def __init__(self, *, clock: Callable[[], datetime] = utc_now):
        self._clock = clock

    async def apply(
        self,
        session: AsyncSession,
        adjustments: Sequence[Adjustment],
        *,
        actor_id: uuid.UUID,
    ) -> List[AdjustmentOutcome]:
        outcomes: List[AdjustmentOutcome] = []
        for index, adj in enumerate(adjustments):
            outcomes.append(await self._apply_one(session, index, adj, actor_id=actor_id))

        logger.info(
            "inventory batch applied: actor=%s count=%d clamped=%d",
            actor_id,
            len(outcomes),
            sum(1 for o in outcomes if o.clamped),
        )
        return outcomes

    async def _lock_quantity(
        self, session: AsyncSession, index: int, adj: Adjustment, now: datetime
    ) -> int:
        try:
            current = (
                await session.execute(
                    update(ProductVariant)
                    .where(ProductVariant.id == adj.variant_id)
                    .values(updated_at=now)
                    .returning(ProductVariant.quantity)
                    .execution_options(synchronize_session=False)
                )
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception("variant read failed: %s variant=%s", _path(index), adj.variant_id)
            raise FetchError(
                "Failed to fetch variant",
                details=[{"type": "store", "path": _path(index), "reason": "read failed"}],
            ) from e

        if current is None:
            raise NotFound(
                "Variant not found",
                details=[
                    {
                        "type": "not_found",
                        "path": _path(index),
                        "reason": f"variant {adj.variant_id} does not exist",
                    }
                ],
            )
        return int(current)

    async def _apply_one(
        self,
        session: AsyncSession,
        index: int,
        adj: Adjustment,
        *,
        actor_id: uuid.UUID,
    ) -> AdjustmentOutcome:
        now = self._clock()

        # ---------- 写锁定并读取当前库存 ----------
        before = await self._lock_quantity(session, index, adj, now)
        delta = int(adj.delta)
        if before + delta > QUANTITY_MAX:
            raise ValidationFailed(
                "Adjusted quantity exceeds the maximum stock level",
                details=[
                    {
                        "type": "validation",
                        "path": _path(index),
                        "reason": f"{before} + {delta} > {QUANTITY_MAX}",
                    }
                ],
            )
        expected_after = clamp_quantity(before, delta)

        # ---------- 条件 UPDATE：截断在语句内完成，返回真实落库值 ----------
        raw = ProductVariant.quantity + delta
        try:
            after = (
                await session.execute(
                    update(ProductVariant)
                    .where(ProductVariant.id == adj.variant_id)
                    .values(
                        quantity=case((raw < 0, 0), else_=raw),
                        updated_at=now,
                    )
                    .returning(ProductVariant.quantity)
                    .execution_options(synchronize_session=False)
                )
            ).scalar_one()

            # ---------- 追加流水（记录 delta 本身，不是余额） ----------
            movement = InventoryMovement(
                id=uuid.uuid4(),
                variant_id=adj.variant_id,
                type=adj.reference_type.value,
                quantity=delta,
                reference_type=adj.reference_type.value,
                reference_id=adj.reference_id,
                notes=adj.notes,
                created_by=actor_id,
                created_at=now,
            )
            session.add(movement)
            await session.flush()
        except SQLAlchemyError as e:
            logger.exception("variant write failed: %s variant=%s", _path(index), adj.variant_id)
            raise UpdateError(
                "Failed to update variant quantity",
                details=[{"type": "store", "path": _path(index), "reason": "write failed"}],
            ) from e

        if int(after) != expected_after:
            # 已持有写锁，不应出现
            logger.warning(
                "variant %s: expected %d after adjustment, store returned %d",
                adj.variant_id,
                expected_after,
                after,
            )

        return AdjustmentOutcome(
            variant_id=adj.variant_id,
            before=before,
            delta=delta,
            after=int(after),
            clamped=before + delta < 0,
            movement_id=movement.id,
        )


async def list_movements(
    session: AsyncSession,
    *,
    variant_id: Optional[uuid.UUID] = None,
    product_id: Optional[uuid.UUID] = None,
    limit: int = 50,
) -> List[InventoryMovement]:
    """
    流水查询（新 → 旧）：
    - variant_id 优先于 product_id
    - product_id 下没有任何变体 → 空列表
    """
    stmt = select(InventoryMovement).order_by(
        InventoryMovement.created_at.desc(), InventoryMovement.id.desc()
    )
    if variant_id is not None:
        stmt = stmt.where(InventoryMovement.variant_id == variant_id)
    elif product_id is not None:
        variant_ids = select(ProductVariant.id).where(ProductVariant.product_id == product_id)
        stmt = stmt.where(InventoryMovement.variant_id.in_(variant_ids))
    stmt = stmt.limit(int(limit))

    try:
        return list((await session.execute(stmt)).scalars().all())
    except SQLAlchemyError as e:
        logger.exception("movement query failed")
        raise FetchError("Failed to fetch movements") from e


__all__ = [
    "Adjustment",
    "AdjustmentOutcome",
    "InventoryAdjuster",
    "clamp_quantity",
    "list_movements",
]
