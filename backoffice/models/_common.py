# backoffice/models/_common.py
from __future__ import annotations

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# PG 用 JSONB，其余后端退化为 JSON
JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
