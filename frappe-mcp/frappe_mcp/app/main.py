from __future__ import annotations

from fastapi import FastAPI

from frappe_mcp.app.routes import router
from frappe_mcp.app.settings import Settings, settings
from frappe_mcp.bootstrap import RuntimeComponents, create_lifespan, install_runtime
from frappe_mcp.modules.health.api import router as health_router
from libs.common.http_handlers import RequestLoggingMiddleware, register_exception_handlers
from libs.common.logging import configure_logging


def create_app(app_settings: Settings, runtime: RuntimeComponents | None = None) -> FastAPI:
    """FastAPI 앱을 만들어요.

    `runtime`을 넘기면 lifespan이 컴포넌트를 새로 만들지 않고 그대로 써요.
    테스트에서 스텁 클라이언트를 끼워 넣을 때 사용해요.
    """
    application = FastAPI(title=app_settings.service_name, lifespan=create_lifespan(app_settings))
    if runtime is not None:
        install_runtime(application, runtime, app_settings)
    application.add_middleware(RequestLoggingMiddleware, logger_name="frappe_mcp.http")
    application.include_router(router)
    application.include_router(health_router)
    register_exception_handlers(application, "frappe_mcp.errors")
    return application


configure_logging(settings.log_level)
app = create_app(settings)
