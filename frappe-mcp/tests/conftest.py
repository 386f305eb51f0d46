from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from frappe_mcp.app.frappe_client import FrappeClient
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.app.static_hints import HintStore


class StubFrappeClient(FrappeClient):
    """원격 호출 대신 미리 정한 응답을 돌려주고 호출 이력을 남기는 스텁이에요.

    응답 값이 예외면 던지고, 호출 가능한 값이면 params를 넘겨 결과를 만들어요.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        super().__init__(base_url="http://frappe.test", api_key="key", api_secret="secret", timeout_seconds=3.0)
        self.responses: dict[str, Any] = responses or {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def call_method(self, method: str, params: dict[str, Any] | None = None) -> Any:
        self.calls.append((method, params or {}))
        response = self.responses.get(method)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            factory: Callable[[dict[str, Any]], Any] = response
            return factory(params or {})
        return response


@pytest.fixture
def stub_client() -> StubFrappeClient:
    """각 테스트용으로 새로 생성한 빈 스텁 클라이언트예요."""
    return StubFrappeClient()


@pytest.fixture
def hint_store() -> HintStore:
    return HintStore()


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext.create("frappe_mcp.tests")
