# tests/api/test_orders_api.py
from __future__ import annotations

import uuid
from decimal import Decimal

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.admin_log import AdminLog
from backoffice.models.shipment import Shipment
from tests.factories import admin_log_actions, make_order, make_profile, order_status, shipment_row

URL = "/api/admin/orders"


# ---------- 列表 ----------


@pytest.mark.asyncio
async def test_list_orders_paginates_newest_first(
    client: httpx.AsyncClient, session: AsyncSession, admin_headers
):
    oldest = await make_order(session, minutes_ago=30)
    middle = await make_order(session, minutes_ago=20)
    newest = await make_order(session, minutes_ago=10)
    await session.commit()

    r = await client.get(URL, params={"limit": 2}, headers=admin_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert [o["id"] for o in body["orders"]] == [str(newest.id), str(middle.id)]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

    r = await client.get(URL, params={"limit": 2, "page": 2}, headers=admin_headers)
    assert [o["id"] for o in r.json()["orders"]] == [str(oldest.id)]


@pytest.mark.asyncio
async def test_list_orders_filters_by_status_and_search(
    client: httpx.AsyncClient, session: AsyncSession, admin_headers
):
    buyer = await make_profile(session, full_name="Dora", email="Dora@Shop.test")
    mine = await make_order(session, customer=buyer, status="processing", order_number="ORD-DORA-1")
    await make_order(session, status="processing")
    await make_order(session, status="cancelled", email="dora.other@shop.test")
    await session.commit()

    r = await client.get(
        URL, params={"status": "processing", "search": "DORA"}, headers=admin_headers
    )
    assert r.status_code == 200, r.text
    orders = r.json()["orders"]
    assert [o["id"] for o in orders] == [str(mine.id)]
    assert orders[0]["customer"]["full_name"] == "Dora"

    r = await client.get(URL, params={"status": "all", "search": "dora"}, headers=admin_headers)
    assert r.json()["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_list_orders_sorts_by_total(
    client: httpx.AsyncClient, session: AsyncSession, admin_headers
):
    cheap = await make_order(session, total=Decimal("15.00"))
    pricey = await make_order(session, total=Decimal("150.00"))
    await session.commit()

    r = await client.get(
        URL, params={"sort_by": "total_amount", "sort_order": "asc"}, headers=admin_headers
    )
    assert r.status_code == 200, r.text
    assert [o["id"] for o in r.json()["orders"]] == [str(cheap.id), str(pricey.id)]


@pytest.mark.asyncio
async def test_list_orders_rejects_unknown_sort_field(client: httpx.AsyncClient, admin_headers):
    r = await client.get(URL, params={"sort_by": "email; drop table"}, headers=admin_headers)
    assert r.status_code == 400, r.text
    assert r.json()["details"][0]["path"] == "sort_by"


# ---------- 详情 ----------


@pytest.mark.asyncio
async def test_get_order_includes_customer_items_and_shipment(
    client: httpx.AsyncClient, session: AsyncSession, admin_headers
):
    buyer = await make_profile(session, full_name="Eli", email="eli@shop.test")
    o = await make_order(session, customer=buyer, items=2)
    session.add(Shipment(order_id=o.id, tracking_number="1Z999", carrier="UPS"))
    await session.commit()

    r = await client.get(f"{URL}/{o.id}", headers=admin_headers)
    assert r.status_code == 200, r.text
    order = r.json()["order"]
    assert order["order_number"] == o.order_number
    assert order["customer"]["email"] == "eli@shop.test"
    assert len(order["items"]) == 2
    assert Decimal(order["items"][0]["price"]) == Decimal("24.50")
    assert order["shipment"]["tracking_number"] == "1Z999"
    assert order["shipment"]["status"] == "pending"


@pytest.mark.asyncio
async def test_get_order_not_found(client: httpx.AsyncClient, admin_headers):
    r = await client.get(f"{URL}/{uuid.uuid4()}", headers=admin_headers)
    assert r.status_code == 404, r.text
    assert r.json()["error"] == "Order not found"


# ---------- 改单 ----------


@pytest.mark.asyncio
async def test_update_order_writes_fields_and_logs(
    client: httpx.AsyncClient, session: AsyncSession, admin_headers
):
    o = await make_order(session)
    await session.commit()

    r = await client.put(
        f"{URL}/{o.id}",
        json={"status": "processing", "payment_status": "paid", "notes": "called customer"},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Order updated successfully"
    assert body["order"]["status"] == "processing"
    assert body["order"]["payment_status"] == "paid"
    assert body["order"]["notes"] == "called customer"

    assert await order_status(session, o.id) == "processing"
    assert await shipment_row(session, o.id) is None
    assert await admin_log_actions(session) == ["update_order"]

    details = (await session.execute(select(AdminLog.details))).scalar_one()
    assert details["updated_fields"] == ["notes", "payment_status", "status"]
    assert details["updated_values"] == {
        "status": "processing",
        "payment_status": "paid",
        "notes": "called customer",
    }
    assert details["previous_values"]["status"] == "pending"


@pytest.mark.asyncio
async def test_update_order_fulfilled_with_tracking_ships(
    client: httpx.AsyncClient, session: AsyncSession, admin_headers
):
    o = await make_order(session)
    await session.commit()

    r = await client.put(
        f"{URL}/{o.id}",
        json={"fulfillment_status": "fulfilled", "tracking_number": "1ZABC", "carrier": "UPS"},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text

    row = await shipment_row(session, o.id)
    assert row is not None
    assert (row.tracking_number, row.carrier, row.status) == ("1ZABC", "UPS", "in_transit")
    assert row.shipped_at is not None


@pytest.mark.asyncio
async def test_update_order_tracking_only_keeps_shipment_pending(
    client: httpx.AsyncClient, session: AsyncSession, admin_headers
):
    o = await make_order(session)
    session.add(Shipment(order_id=o.id, carrier="DHL"))
    await session.commit()

    r = await client.put(f"{URL}/{o.id}", json={"tracking_number": "JD0001"}, headers=admin_headers)
    assert r.status_code == 200, r.text

    row = await shipment_row(session, o.id)
    assert (row.tracking_number, row.carrier, row.status) == ("JD0001", "DHL", "pending")
    assert row.shipped_at is None


@pytest.mark.asyncio
async def test_update_order_empty_body(
    client: httpx.AsyncClient, session: AsyncSession, admin_headers
):
    o = await make_order(session)
    await session.commit()

    r = await client.put(f"{URL}/{o.id}", json={}, headers=admin_headers)
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "No valid fields provided for update"
    assert await admin_log_actions(session) == []


@pytest.mark.asyncio
async def test_update_order_not_found(client: httpx.AsyncClient, session: AsyncSession, admin_headers):
    r = await client.put(f"{URL}/{uuid.uuid4()}", json={"status": "shipped"}, headers=admin_headers)
    assert r.status_code == 404, r.text
    assert await admin_log_actions(session) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"status": "teleported"},
        {"fulfillment_status": "done"},
        {"total_amount": "0.01"},
        {"carrier": "x" * 51},
    ],
)
async def test_update_order_rejects_invalid_payload(
    client: httpx.AsyncClient, session: AsyncSession, admin_headers, payload
):
    o = await make_order(session)
    await session.commit()

    r = await client.put(f"{URL}/{o.id}", json=payload, headers=admin_headers)
    assert r.status_code == 400, r.text
    assert r.json()["error_code"] == "validation_error"
    assert await order_status(session, o.id) == "pending"
