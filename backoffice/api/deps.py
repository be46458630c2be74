# backoffice/api/deps.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.errors import FetchError, Forbidden, Unauthorized
from backoffice.core.security import decode_access_token
from backoffice.db.session import get_session
from backoffice.models.enums import ProfileRole
from backoffice.models.profile import Profile

logger = logging.getLogger("backoffice.auth")

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: uuid.UUID
    role: Optional[str]
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN.value


# ---------------------------
# 当前用户依赖（严格版）
# ---------------------------


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> CurrentUser:
    """
    - 必须带 Authorization: Bearer <token>
    - token 无效 / 过期 / sub 非 uuid → 401
    - profile 不存在：视为已登录但无角色（后台接口会得到 403）
    """
    token = (credentials.credentials if credentials else "").strip()
    if not token:
        raise Unauthorized("Unauthorized")

    claims = decode_access_token(token)
    if not claims:
        raise Unauthorized("Unauthorized")

    try:
        user_id = uuid.UUID(str(claims.get("sub")))
    except ValueError:
        raise Unauthorized("Unauthorized")

    try:
        profile = (
            await session.execute(select(Profile).where(Profile.id == user_id))
        ).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.exception("profile lookup failed for user=%s", user_id)
        raise FetchError("Failed to fetch profile") from e

    return CurrentUser(
        id=user_id,
        role=profile.role if profile else None,
        email=claims.get("email") or (profile.email if profile else None),
    )


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise Forbidden("Forbidden - Admin access required")
    return user


__all__ = (
    "CurrentUser",
    "get_current_user",
    "get_session",
    "require_admin",
)
