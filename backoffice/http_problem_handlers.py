# backoffice/http_problem_handlers.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from backoffice.api.errors import BackofficeError, ErrorKind
from backoffice.api.problem import ProblemDetail, make_problem

logger = logging.getLogger("backoffice")


def _new_trace_id() -> str:
    return f"t_{uuid.uuid4().hex[:12]}"


def _context(req: Request) -> Dict[str, Any]:
    return {"path": getattr(req.url, "path", ""), "method": req.method}


def _validation_details(raw: List[Any]) -> List[ProblemDetail]:
    details: List[ProblemDetail] = []
    for e in raw:
        if not isinstance(e, dict):
            continue
        loc = [str(x) for x in (e.get("loc") or [])]
        details.append(
            {
                "type": "validation",
                "path": ".".join(loc),
                "reason": str(e.get("msg") or e.get("type") or "invalid"),
            }
        )
    return details


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BackofficeError)
    async def _backoffice_exc(req: Request, exc: BackofficeError):
        trace_id = _new_trace_id()
        if exc.status_code >= 500:
            logger.error("BACKOFFICE_ERROR[%s] %s: %s", trace_id, exc.kind, exc.message)
        content = make_problem(
            status_code=exc.status_code,
            error_code=exc.kind.value,
            message=exc.message,
            context=_context(req),
            details=exc.details,
            trace_id=trace_id,
        )
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(req: Request, exc: RequestValidationError):
        content = make_problem(
            status_code=400,
            error_code=ErrorKind.VALIDATION.value,
            message="Invalid request data",
            context=_context(req),
            details=_validation_details(list(exc.errors())),
            trace_id=_new_trace_id(),
        )
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(HTTPException)
    async def _http_exc(req: Request, exc: HTTPException):
        msg = str(exc.detail) if exc.detail is not None else "Request rejected"
        content = make_problem(
            status_code=exc.status_code,
            error_code="http_error",
            message=msg,
            context=_context(req),
            trace_id=_new_trace_id(),
        )
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def _unhandled_exc(req: Request, exc: Exception):
        trace_id = _new_trace_id()
        logger.exception("UNHANDLED_EXC[%s]: %s", trace_id, exc)
        content = make_problem(
            status_code=500,
            error_code=ErrorKind.INTERNAL.value,
            message="Internal server error",
            context=_context(req),
            trace_id=trace_id,
        )
        return JSONResponse(status_code=500, content=content)
