# backoffice/models/admin_log.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.db.base import Base
from backoffice.models._common import JSONType, utc_now


class AdminLog(Base):
    """后台操作审计（只增不改；写入失败不影响业务主流程）。"""

    __tablename__ = "admin_logs"
    __table_args__ = (sa.Index("ix_admin_logs_resource", "resource_type", "resource_id"),)

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    admin_id: Mapped[uuid.UUID | None] = mapped_column(sa.Uuid, nullable=True)
    action: Mapped[str] = mapped_column(sa.Text, nullable=False)
    resource_type: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    resource_id: Mapped[uuid.UUID | None] = mapped_column(sa.Uuid, nullable=True)
    details: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    ip_address: Mapped[str | None] = mapped_column(sa.String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )
