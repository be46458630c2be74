# backoffice/models/__init__.py
"""
统一导出 ORM 模型。
"""

from backoffice.models.admin_log import AdminLog
from backoffice.models.inventory_movement import InventoryMovement
from backoffice.models.order import Order
from backoffice.models.order_item import OrderItem
from backoffice.models.product import Product, ProductVariant
from backoffice.models.profile import Profile
from backoffice.models.shipment import Shipment

__all__ = [
    "AdminLog",
    "InventoryMovement",
    "Order",
    "OrderItem",
    "Product",
    "ProductVariant",
    "Profile",
    "Shipment",
]
