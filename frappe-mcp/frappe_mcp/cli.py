from __future__ import annotations

import sys

import uvicorn

from frappe_mcp.app.settings import settings, validate_credentials
from libs.common.errors import ConfigurationError
from libs.common.logging import configure_logging, get_logger


def _run(*, reload_enabled: bool) -> None:
    configure_logging(settings.log_level)
    logger = get_logger("frappe_mcp.cli")
    try:
        validate_credentials(settings)
    except ConfigurationError as exc:
        logger.error("startup_aborted", error_code=exc.error_code, message=exc.message)
        sys.exit(1)

    logger.info("mcp_server_starting", url=f"http://{settings.host}:{settings.port}/mcp")
    uvicorn.run(
        "frappe_mcp.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload_enabled,
    )


def main() -> None:
    _run(reload_enabled=False)


def main_dev() -> None:
    _run(reload_enabled=True)
