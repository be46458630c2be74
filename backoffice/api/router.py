from __future__ import annotations

from fastapi import APIRouter

from backoffice.api.routers import health, inventory, orders

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(inventory.router)
api_router.include_router(orders.router)
