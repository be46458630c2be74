# backoffice/models/product.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.db.base import Base
from backoffice.models._common import utc_now


# product_variants.quantity 为 32 位 INTEGER
QUANTITY_MAX = 2**31 - 1


class Product(Base):
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(sa.Text, nullable=False)
    slug: Mapped[str] = mapped_column(sa.Text, nullable=False, unique=True)
    sku: Mapped[str | None] = mapped_column(sa.Text, nullable=True, unique=True)
    price: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(sa.String(16), nullable=False, default="draft")

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    variants: Mapped[List["ProductVariant"]] = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ProductVariant(Base):
    """
    可售 SKU（尺码 / 颜色组合），自带库存数量。
    quantity 只由库存调整服务修改，且始终 >= 0。
    """

    __tablename__ = "product_variants"
    __table_args__ = (
        sa.CheckConstraint("quantity >= 0", name="ck_product_variants_quantity_non_negative"),
        sa.Index("ix_product_variants_product_id", "product_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(sa.Text, nullable=False)
    sku: Mapped[str | None] = mapped_column(sa.Text, nullable=True, unique=True)
    price: Mapped[Decimal | None] = mapped_column(sa.Numeric(10, 2), nullable=True)
    quantity: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    # option1 = 尺码，option2 = 颜色
    option1: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    option2: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    product: Mapped[Product] = relationship("Product", back_populates="variants")

    def __repr__(self) -> str:
        return f"<ProductVariant id={self.id} sku={self.sku!r} qty={self.quantity}>"
