# backoffice/core/security.py
"""
Token 校验（托管认证服务签发的 access token）：

- 仅接受 HS256，禁止 alg=none
- sub = 用户 uuid；可选 audience 校验（托管服务一般为 "authenticated"）
- create_access_token 仅用于本地联调 / 测试造 token
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import jwt

from backoffice.core.config import get_settings

_JWT_ALG = "HS256"


def create_access_token(
    data: Dict[str, Any],
    expires_minutes: int = 60,
    *,
    secret: Optional[str] = None,
) -> str:
    settings = get_settings()
    payload = dict(data)
    payload["exp"] = int(time.time()) + 60 * expires_minutes
    if settings.AUTH_JWT_AUDIENCE and "aud" not in payload:
        payload["aud"] = settings.AUTH_JWT_AUDIENCE
    return jwt.encode(payload, secret or settings.AUTH_JWT_SECRET, algorithm=_JWT_ALG)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """无效 / 过期 / 签名不符 → None。"""
    settings = get_settings()
    options = {"require": ["exp", "sub"]}
    kwargs: Dict[str, Any] = {"algorithms": [_JWT_ALG], "options": options}
    if settings.AUTH_JWT_AUDIENCE:
        kwargs["audience"] = settings.AUTH_JWT_AUDIENCE
    else:
        options["verify_aud"] = False
    try:
        out = jwt.decode(token, settings.AUTH_JWT_SECRET, **kwargs)
    except jwt.PyJWTError:
        return None
    return out if isinstance(out, dict) else None
