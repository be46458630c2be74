# backoffice/models/order.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.db.base import Base
from backoffice.models._common import utc_now
from backoffice.models.enums import FulfillmentStatus, OrderStatus, PaymentStatus

if TYPE_CHECKING:
    from backoffice.models.order_item import OrderItem
    from backoffice.models.profile import Profile
    from backoffice.models.shipment import Shipment


class Order(Base):
    """
    订单主档
    - 三个状态字段（status / payment_status / fulfillment_status）均为普通字符串列，
      取值见 models.enums，由后台接口直接改写
    - user_id 可空（游客下单）；用户删除时置空
    - 删除订单时 order_items / shipments 由外键级联删除
    """

    __tablename__ = "orders"
    __table_args__ = (
        sa.Index("ix_orders_status", "status"),
        sa.Index("ix_orders_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    order_number: Mapped[str] = mapped_column(sa.Text, nullable=False, unique=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        sa.Uuid, sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    email: Mapped[str] = mapped_column(sa.Text, nullable=False)
    phone: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    status: Mapped[str] = mapped_column(
        sa.String(16), nullable=False, default=OrderStatus.PENDING.value
    )
    payment_status: Mapped[str] = mapped_column(
        sa.String(32), nullable=False, default=PaymentStatus.PENDING.value
    )
    fulfillment_status: Mapped[str] = mapped_column(
        sa.String(32), nullable=False, default=FulfillmentStatus.UNFULFILLED.value
    )

    # 金额（保持精度/默认值）
    subtotal: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False, default=0)
    shipping_amount: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False, default=0)
    discount_amount: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False, default=0)
    total_amount: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(sa.String(8), nullable=False, default="USD")

    notes: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    customer: Mapped[Optional["Profile"]] = relationship("Profile", lazy="raise")
    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )
    shipment: Mapped[Optional["Shipment"]] = relationship(
        "Shipment",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Order {self.order_number} status={self.status}>"
