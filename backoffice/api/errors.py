# backoffice/api/errors.py
from __future__ import annotations

from enum import StrEnum
from typing import Dict, Optional, Sequence

from backoffice.api.problem import ProblemDetail


class ErrorKind(StrEnum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    FETCH_FAILED = "fetch_error"
    UPDATE_FAILED = "update_error"
    INTERNAL = "internal_error"


# 错误种类 → HTTP 状态码（唯一映射表，不看 message 文本）
STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FETCH_FAILED: 500,
    ErrorKind.UPDATE_FAILED: 500,
    ErrorKind.INTERNAL: 500,
}


def status_for(kind: ErrorKind) -> int:
    return STATUS_BY_KIND[kind]


class BackofficeError(Exception):
    """业务错误基类：service / 鉴权层抛出，由异常处理器统一翻译为 Problem 响应。"""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[ErrorKind] = None,
        details: Optional[Sequence[ProblemDetail]] = None,
    ):
        super().__init__(message)
        if kind is not None:
            self.kind = kind
        self.message = message
        self.details = list(details) if details else []

    @property
    def status_code(self) -> int:
        return status_for(self.kind)


class Unauthorized(BackofficeError):
    kind = ErrorKind.UNAUTHORIZED


class Forbidden(BackofficeError):
    kind = ErrorKind.FORBIDDEN


class ValidationFailed(BackofficeError):
    kind = ErrorKind.VALIDATION


class NotFound(BackofficeError):
    kind = ErrorKind.NOT_FOUND


class FetchError(BackofficeError):
    kind = ErrorKind.FETCH_FAILED


class UpdateError(BackofficeError):
    kind = ErrorKind.UPDATE_FAILED
