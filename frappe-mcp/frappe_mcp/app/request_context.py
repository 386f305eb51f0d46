from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from structlog.typing import FilteringBoundLogger

from libs.common.logging import get_logger


@dataclass(frozen=True, slots=True)
class RequestContext:
    """POST 한 번 동안만 살아 있는 요청 컨텍스트예요.

    서버 객체는 프로세스 전체에서 공유하고, 요청별 상태는 이 값으로만 전달해요.
    """

    trace_id: str
    logger: FilteringBoundLogger

    @classmethod
    def create(cls, logger_name: str = "frappe_mcp.request", **bindings: Any) -> RequestContext:
        trace_id = str(uuid.uuid4())
        logger = get_logger(logger_name).bind(trace_id=trace_id, **bindings)
        return cls(trace_id=trace_id, logger=logger)
