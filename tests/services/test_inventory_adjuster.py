# tests/services/test_inventory_adjuster.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.errors import FetchError, NotFound, UpdateError, ValidationFailed
from backoffice.core.tx import tx_commit
from backoffice.models.enums import MovementReferenceType
from backoffice.models.inventory_movement import InventoryMovement
from backoffice.models.product import QUANTITY_MAX
from backoffice.services.inventory_adjust import (
    Adjustment,
    InventoryAdjuster,
    clamp_quantity,
    list_movements,
)
from tests.factories import make_product, make_variant, movement_count, variant_quantity
from tests.helpers.store_faults import FaultySession, locks_variant, writes_quantity

UTC = timezone.utc


class TickingClock:
    """每次调用前进 1 秒，保证流水时间严格递增。"""

    def __init__(self, start: datetime):
        self._now = start

    def __call__(self) -> datetime:
        self._now = self._now + timedelta(seconds=1)
        return self._now


@pytest.mark.parametrize(
    "current, delta, expected",
    [(10, 5, 15), (10, -10, 0), (3, -7, 0), (0, 0, 0), (0, 4, 4)],
)
def test_clamp_quantity(current, delta, expected):
    assert clamp_quantity(current, delta) == expected


@pytest.mark.asyncio
async def test_apply_runs_in_order_and_writes_one_movement_each(session: AsyncSession):
    v = await make_variant(session, quantity=2)
    await session.commit()

    actor = uuid.uuid4()
    adjuster = InventoryAdjuster(clock=TickingClock(datetime(2024, 5, 1, tzinfo=UTC)))
    async with tx_commit(session):
        outcomes = await adjuster.apply(
            session,
            [
                Adjustment(variant_id=v.id, delta=-5),
                Adjustment(variant_id=v.id, delta=3, reference_type=MovementReferenceType.RETURN),
                Adjustment(variant_id=v.id, delta=-1),
            ],
            actor_id=actor,
        )

    assert [(o.before, o.after, o.clamped) for o in outcomes] == [
        (2, 0, True),
        (0, 3, False),
        (3, 2, False),
    ]
    assert await variant_quantity(session, v.id) == 2

    rows = (
        await session.execute(
            select(InventoryMovement.quantity, InventoryMovement.type, InventoryMovement.created_by)
            .order_by(InventoryMovement.created_at)
        )
    ).all()
    assert [(r.quantity, r.type) for r in rows] == [(-5, "adjustment"), (3, "return"), (-1, "adjustment")]
    assert {r.created_by for r in rows} == {actor}


@pytest.mark.asyncio
async def test_apply_failure_rolls_back_earlier_items(session: AsyncSession):
    a = await make_variant(session, quantity=10)
    b = await make_variant(session, quantity=10)
    await session.commit()

    with pytest.raises(NotFound) as ei:
        async with tx_commit(session):
            await InventoryAdjuster().apply(
                session,
                [
                    Adjustment(variant_id=a.id, delta=-4),
                    Adjustment(variant_id=b.id, delta=6),
                    Adjustment(variant_id=uuid.uuid4(), delta=1),
                ],
                actor_id=uuid.uuid4(),
            )

    assert ei.value.status_code == 404
    assert ei.value.details[0]["path"] == "adjustments[2]"
    assert await variant_quantity(session, a.id) == 10
    assert await variant_quantity(session, b.id) == 10
    assert await movement_count(session) == 0


@pytest.mark.asyncio
async def test_list_movements_filters(session: AsyncSession):
    product = await make_product(session)
    a = await make_variant(session, product, name="S / Red")
    b = await make_variant(session, product, name="M / Red")
    stray = await make_variant(session)
    await session.commit()

    adjuster = InventoryAdjuster(clock=TickingClock(datetime(2024, 5, 1, tzinfo=UTC)))
    async with tx_commit(session):
        await adjuster.apply(
            session,
            [
                Adjustment(variant_id=a.id, delta=1),
                Adjustment(variant_id=b.id, delta=2),
                Adjustment(variant_id=stray.id, delta=3),
            ],
            actor_id=uuid.uuid4(),
        )

    by_product = await list_movements(session, product_id=product.id)
    assert [m.quantity for m in by_product] == [2, 1]

    by_variant = await list_movements(session, variant_id=stray.id, product_id=product.id)
    assert [m.quantity for m in by_variant] == [3]

    limited = await list_movements(session, limit=1)
    assert [m.quantity for m in limited] == [3]

    empty_product = await make_product(session, name="Ghost Tee")
    assert await list_movements(session, product_id=empty_product.id) == []


@pytest.mark.asyncio
async def test_lock_read_failure_is_fetch_error_and_rolls_back(session: AsyncSession):
    a = await make_variant(session, quantity=4)
    b = await make_variant(session, quantity=4)
    await session.commit()

    faulty = FaultySession(session, locks_variant, nth=2)
    with pytest.raises(FetchError) as ei:
        async with tx_commit(faulty):
            await InventoryAdjuster().apply(
                faulty,
                [Adjustment(variant_id=a.id, delta=1), Adjustment(variant_id=b.id, delta=1)],
                actor_id=uuid.uuid4(),
            )

    assert ei.value.status_code == 500
    assert ei.value.details[0]["path"] == "adjustments[1]"
    assert await variant_quantity(session, a.id) == 4
    assert await movement_count(session) == 0


@pytest.mark.asyncio
async def test_write_failure_is_update_error_and_rolls_back(session: AsyncSession):
    a = await make_variant(session, quantity=4)
    b = await make_variant(session, quantity=4)
    await session.commit()

    faulty = FaultySession(session, writes_quantity, nth=2)
    with pytest.raises(UpdateError) as ei:
        async with tx_commit(faulty):
            await InventoryAdjuster().apply(
                faulty,
                [Adjustment(variant_id=a.id, delta=-1), Adjustment(variant_id=b.id, delta=-1)],
                actor_id=uuid.uuid4(),
            )

    assert ei.value.kind == "update_error"
    assert ei.value.details[0]["path"] == "adjustments[1]"
    assert await variant_quantity(session, a.id) == 4
    assert await variant_quantity(session, b.id) == 4
    assert await movement_count(session) == 0


@pytest.mark.asyncio
async def test_result_above_column_maximum_is_rejected(session: AsyncSession):
    v = await make_variant(session, quantity=QUANTITY_MAX)
    await session.commit()

    with pytest.raises(ValidationFailed) as ei:
        async with tx_commit(session):
            await InventoryAdjuster().apply(
                session, [Adjustment(variant_id=v.id, delta=1)], actor_id=uuid.uuid4()
            )

    assert ei.value.details[0]["path"] == "adjustments[0]"
    assert await variant_quantity(session, v.id) == QUANTITY_MAX
    assert await movement_count(session) == 0
