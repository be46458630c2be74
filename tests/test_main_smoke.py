# tests/test_main_smoke.py
import pytest

from backoffice.main import app, create_app


def test_admin_routes_registered():
    paths = {getattr(r, "path", None) for r in app.routes}
    assert {
        "/healthz",
        "/api/admin/inventory/adjust",
        "/api/admin/inventory/movements",
        "/api/admin/orders",
        "/api/admin/orders/bulk",
        "/api/admin/orders/{order_id}",
    } <= paths


@pytest.mark.asyncio
async def test_openapi_schema_is_served(client):
    r = await client.get("/openapi.json")
    assert r.status_code == 200
    schema = r.json()
    assert "/api/admin/orders/bulk" in schema["paths"]
    assert "post" in schema["paths"]["/api/admin/inventory/adjust"]


def test_create_app_builds_independent_instances():
    assert create_app() is not app
