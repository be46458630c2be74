# backoffice/models/profile.py
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.db.base import Base
from backoffice.models._common import utc_now
from backoffice.models.enums import ProfileRole


class Profile(Base):
    """
    用户资料（对应托管认证服务中的用户，id 与 token sub 一致）。
    role 只有 customer / admin 两种，后台接口只认 admin。
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True)
    role: Mapped[str] = mapped_column(
        sa.String(16), nullable=False, default=ProfileRole.CUSTOMER.value
    )
    full_name: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    email: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    def __repr__(self) -> str:
        return f"<Profile id={self.id} role={self.role!r}>"
