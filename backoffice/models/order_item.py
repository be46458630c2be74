# backoffice/models/order_item.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.db.base import Base
from backoffice.models._common import utc_now

if TYPE_CHECKING:
    from backoffice.models.order import Order
    from backoffice.models.product import ProductVariant


class OrderItem(Base):
    """
    订单行快照：
    - product_name / variant_name 下单时冻结，商品改名不影响历史订单
    - price 为单价，subtotal 为行合计
    """

    __tablename__ = "order_items"
    __table_args__ = (sa.Index("ix_order_items_order_id", "order_id"),)

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        sa.Uuid, sa.ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )
    variant_id: Mapped[uuid.UUID | None] = mapped_column(
        sa.Uuid, sa.ForeignKey("product_variants.id", ondelete="SET NULL"), nullable=True
    )
    product_name: Mapped[str] = mapped_column(sa.Text, nullable=False)
    variant_name: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )

    order: Mapped["Order"] = relationship("Order", back_populates="items")
    variant: Mapped[Optional["ProductVariant"]] = relationship("ProductVariant", lazy="raise")

    def __repr__(self) -> str:
        return f"<OrderItem order={self.order_id} {self.product_name!r} x{self.quantity}>"
