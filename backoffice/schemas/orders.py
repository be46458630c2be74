# backoffice/schemas/orders.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.models.enums import FulfillmentStatus, OrderStatus, PaymentStatus


class _Base(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        populate_by_name=True,
    )


# ========= 批量操作 =========
BulkAction = Literal["update_status", "export", "delete"]


class BulkActionRequest(_Base):
    """
    orderIds 允许为空数组（由 service 返回 400 "No orders selected"），
    以便与其它校验错误区分提示。
    """

    action: BulkAction
    order_ids: List[UUID] = Field(alias="orderIds")
    data: Optional[Dict[str, Any]] = None


class OrderExportRow(_Base):
    order_number: str
    customer_name: str
    customer_email: str
    status: str
    payment_status: str
    fulfillment_status: str
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str
    item_count: int
    created_at: datetime
    updated_at: datetime
    notes: Optional[str] = None


class BulkActionResponse(_Base):
    success: bool = True
    message: Optional[str] = None
    count: Optional[int] = None
    data: Optional[List[OrderExportRow]] = None
    filename: Optional[str] = None


# ========= 单笔订单 =========
class OrderUpdate(_Base):
    """后台改单：所有字段可选，但至少要有一个。"""

    model_config = _Base.model_config | {"extra": "forbid"}

    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    fulfillment_status: Optional[FulfillmentStatus] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    tracking_number: Optional[str] = Field(default=None, max_length=100)
    carrier: Optional[str] = Field(default=None, max_length=50)


class CustomerOut(_Base):
    id: UUID
    full_name: Optional[str] = None
    email: Optional[str] = None


class OrderItemOut(_Base):
    id: UUID
    product_id: Optional[UUID] = None
    variant_id: Optional[UUID] = None
    product_name: str
    variant_name: Optional[str] = None
    price: Decimal
    quantity: int
    subtotal: Decimal


class ShipmentOut(_Base):
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    status: str
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


class OrderOut(_Base):
    id: UUID
    order_number: str
    user_id: Optional[UUID] = None
    email: str
    phone: Optional[str] = None
    status: str
    payment_status: str
    fulfillment_status: str
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OrderDetailOut(OrderOut):
    customer: Optional[CustomerOut] = None
    items: List[OrderItemOut] = Field(default_factory=list)
    shipment: Optional[ShipmentOut] = None


class OrderDetailResponse(_Base):
    order: OrderDetailOut


class OrderUpdateResponse(_Base):
    success: bool = True
    message: str
    order: OrderOut


class Pagination(_Base):
    page: int
    limit: int
    total: int
    total_pages: int


class OrderListItem(OrderOut):
    customer: Optional[CustomerOut] = None


class OrderListResponse(_Base):
    orders: List[OrderListItem]
    pagination: Pagination
