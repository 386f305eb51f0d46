from __future__ import annotations

import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from libs.common.errors import DomainError
from libs.common.jsonrpc import INTERNAL_ERROR, SERVER_ERROR, jsonrpc_error
from libs.common.logging import get_logger


def register_exception_handlers(app: FastAPI, logger_name: str) -> None:
    logger = get_logger(logger_name)

    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
        trace_id = str(uuid.uuid4())
        logger.warning(
            "domain_error",
            path=request.url.path,
            method=request.method,
            trace_id=trace_id,
            error_code=exc.error_code,
            message=exc.message,
            retryable=exc.retryable,
        )
        return JSONResponse(
            status_code=400,
            content=jsonrpc_error(None, SERVER_ERROR, exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        trace_id = str(uuid.uuid4())
        logger.exception(
            "unhandled_error",
            path=request.url.path,
            method=request.method,
            trace_id=trace_id,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=jsonrpc_error(None, INTERNAL_ERROR, "Internal server error"),
        )


class RequestLoggingMiddleware:
    """모든 HTTP 요청의 메서드와 경로를 남기는 순수 ASGI 미들웨어예요.

    receive 채널을 감싸지 않아야 라우트에서 연결 종료를 감지할 수 있어요.
    """

    def __init__(self, app: ASGIApp, logger_name: str) -> None:
        self._app = app
        self._logger = get_logger(logger_name)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            self._logger.info("http_request", method=scope.get("method"), path=scope.get("path"))
        await self._app(scope, receive, send)
