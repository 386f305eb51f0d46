from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from frappe_mcp.app.settings import Settings, validate_credentials
from frappe_mcp.bootstrap.container import RuntimeComponents, build_runtime_components
from libs.common.logging import get_logger

logger = get_logger("frappe_mcp.lifespan")


def install_runtime(app: FastAPI, runtime: RuntimeComponents, settings: Settings) -> None:
    app.state.runtime = runtime
    app.state.mcp_server = runtime.mcp_server
    app.state.settings = settings


def create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        runtime = getattr(app.state, "runtime", None)
        owns_runtime = not isinstance(runtime, RuntimeComponents)
        if owns_runtime:
            # 자격 증명이 없으면 여기서 예외가 나서 서버가 요청을 받기 전에 멈춰요.
            validate_credentials(settings)
            runtime = build_runtime_components(settings)
            install_runtime(app, runtime, settings)

        logger.info(
            "mcp_server_started",
            host=settings.host,
            port=settings.port,
            tool_count=len(runtime.registry),
        )
        try:
            yield
        finally:
            if owns_runtime:
                await runtime.client.aclose()
            logger.info("mcp_server_stopped")

    return lifespan
