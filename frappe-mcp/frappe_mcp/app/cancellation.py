from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable
from typing import TypeVar

from starlette.requests import Request

T = TypeVar("T")


class ClientDisconnected(Exception):
    """응답을 보내기 전에 클라이언트 연결이 끊긴 경우예요."""


async def run_until_disconnect(request: Request, awaitable: Awaitable[T], *, poll_seconds: float) -> T:
    """클라이언트가 떠나면 진행 중인 작업(원격 호출 포함)을 취소해요.

    작업 태스크 옆에서 연결 상태를 주기적으로 확인하는 감시 태스크를 돌려요.
    연결이 끊기면 작업 태스크를 취소하고 `ClientDisconnected`를 던져요.
    """
    task: asyncio.Future[T] = asyncio.ensure_future(awaitable)
    disconnected = False

    async def _watch() -> None:
        nonlocal disconnected
        while not task.done():
            if await request.is_disconnected():
                disconnected = True
                task.cancel()
                return
            await asyncio.sleep(poll_seconds)

    watcher = asyncio.create_task(_watch())
    try:
        return await task
    except asyncio.CancelledError:
        if disconnected:
            raise ClientDisconnected() from None
        raise
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher
