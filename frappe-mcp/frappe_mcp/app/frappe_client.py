from __future__ import annotations

import json
from typing import Any

import httpx

from libs.common.errors import ConfigurationError, RemoteCallError
from libs.common.logging import get_logger

logger = get_logger("frappe_mcp.frappe_client")


class FrappeClient:
    """원격 Frappe 서버의 화이트리스트 메서드를 호출하는 어댑터예요.

    모든 도구 호출은 결국 `call_method` 하나를 거쳐요. 재시도나 백오프는 없고,
    실패하면 곧바로 `RemoteCallError`를 던져서 호출한 도구 그룹이 처리하게 해요.
    요청 태스크가 취소되면 진행 중인 httpx 요청도 함께 취소돼요.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        api_secret: str,
        timeout_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._api_secret = api_secret
        self._timeout_seconds = timeout_seconds
        self._client = httpx.AsyncClient(timeout=self._timeout_seconds, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self._api_key and self._api_secret:
            headers["Authorization"] = f"token {self._api_key}:{self._api_secret}"
        return headers

    async def call_method(self, method: str, params: dict[str, Any] | None = None) -> Any:
        if not self._base_url:
            raise ConfigurationError("FRAPPE_URL is not configured.")
        if not method:
            raise RemoteCallError("Remote method name is required.")

        url = f"{self._base_url}/api/method/{method}"
        logger.debug("remote_call", method=method)
        try:
            response = await self._client.post(url, json=params or {}, headers=self._build_headers())
        except httpx.TimeoutException as exc:
            raise RemoteCallError(f"Request to {method} timed out.", method=method) from exc
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"Network error while calling {method}: {exc}", method=method) from exc

        if response.status_code >= 400:
            raise RemoteCallError(
                _extract_error_message(response, method),
                method=method,
                status_code=response.status_code,
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as exc:
            raise RemoteCallError(
                f"Response from {method} is not valid JSON.",
                method=method,
                status_code=response.status_code,
            ) from exc

    # Frappe 범용 클라이언트 API (frappe.client.*) 래퍼예요.

    async def get_document(self, doctype: str, name: str) -> dict[str, Any]:
        result = unwrap_message(await self.call_method("frappe.client.get", {"doctype": doctype, "name": name}))
        if not isinstance(result, dict):
            raise RemoteCallError(f"{doctype} {name} not found.", method="frappe.client.get")
        return result

    async def get_list(
        self,
        doctype: str,
        *,
        fields: list[str] | None = None,
        filters: Any = None,
        order_by: str | None = None,
        limit: int | None = None,
        limit_start: int | None = None,
    ) -> list[Any]:
        params: dict[str, Any] = {"doctype": doctype, "fields": fields or ["name"]}
        if filters:
            params["filters"] = filters
        if order_by:
            params["order_by"] = order_by
        if limit is not None:
            params["limit_page_length"] = limit
        if limit_start is not None:
            params["limit_start"] = limit_start
        result = unwrap_message(await self.call_method("frappe.client.get_list", params))
        if not isinstance(result, list):
            raise RemoteCallError(f"Invalid list response for {doctype}.", method="frappe.client.get_list")
        return result

    async def get_count(self, doctype: str, filters: Any = None) -> int:
        params: dict[str, Any] = {"doctype": doctype}
        if filters:
            params["filters"] = filters
        result = unwrap_message(await self.call_method("frappe.client.get_count", params))
        if isinstance(result, bool) or not isinstance(result, int):
            raise RemoteCallError(f"Invalid count response for {doctype}.", method="frappe.client.get_count")
        return result

    async def insert(self, doctype: str, values: dict[str, Any]) -> Any:
        doc = {**values, "doctype": doctype}
        return unwrap_message(await self.call_method("frappe.client.insert", {"doc": doc}))

    async def set_value(self, doctype: str, name: str, values: dict[str, Any]) -> Any:
        return unwrap_message(
            await self.call_method(
                "frappe.client.set_value",
                {"doctype": doctype, "name": name, "fieldname": values},
            )
        )

    async def delete(self, doctype: str, name: str) -> Any:
        return unwrap_message(await self.call_method("frappe.client.delete", {"doctype": doctype, "name": name}))


def unwrap_message(result: Any) -> Any:
    """Frappe가 응답을 ``message`` 키로 감싸면 안쪽 값을, 아니면 원본을 반환해요.

    원격 응답 계약이 보장된 것은 아니라서 호환용 처리로만 사용해요.
    """
    if isinstance(result, dict) and "message" in result and result["message"] is not None:
        return result["message"]
    return result


def _extract_error_message(response: httpx.Response, method: str) -> str:
    fallback = f"{method} failed with HTTP {response.status_code}."
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return f"{fallback} {text[:500]}" if text else fallback

    if not isinstance(body, dict):
        return fallback

    # _server_messages는 JSON 문자열 배열을 다시 JSON 문자열로 감싼 형태예요.
    server_messages = body.get("_server_messages")
    if isinstance(server_messages, str):
        messages = _decode_server_messages(server_messages)
        if messages:
            return f"{fallback} {' '.join(messages)}"

    for key in ("exception", "message", "exc_type"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return f"{fallback} {value.strip()}"
    return fallback


def _decode_server_messages(raw: str) -> list[str]:
    try:
        items = json.loads(raw)
    except ValueError:
        return []
    if not isinstance(items, list):
        return []

    messages: list[str] = []
    for item in items:
        if not isinstance(item, str):
            continue
        try:
            decoded = json.loads(item)
        except ValueError:
            messages.append(item)
            continue
        if isinstance(decoded, dict):
            message_value = decoded.get("message")
            if isinstance(message_value, str):
                messages.append(message_value)
        elif isinstance(decoded, str):
            messages.append(decoded)
    return messages
