# backoffice/models/shipment.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.db.base import Base
from backoffice.models._common import utc_now
from backoffice.models.enums import ShipmentStatus

if TYPE_CHECKING:
    from backoffice.models.order import Order


class Shipment(Base):
    """一单一条物流记录（order_id 唯一，后台改单号时 upsert）。"""

    __tablename__ = "shipments"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        sa.ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    tracking_number: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    carrier: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    status: Mapped[str] = mapped_column(
        sa.String(16), nullable=False, default=ShipmentStatus.PENDING.value
    )
    shipped_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    order: Mapped["Order"] = relationship("Order", back_populates="shipment")
