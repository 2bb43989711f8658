# tests/conftest.py

import asyncio
import pytest
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, List, Optional

from stagehand.core.contracts import HostServer, ServerStatus
from stagehand.core.errors import MountError, NotRunningError


@dataclass
class FakeHandle:
    port: int
    closed: bool = False


class FakeHost(HostServer):
    """
    不打开任何 socket 的宿主服务器替身。
    所有调用都按顺序记录在 events 中，钩子也可以往同一个列表里写，方便断言整体顺序。
    """

    def __init__(self):
        self._app = SimpleNamespace(title="fake app")
        self.events: List[Any] = []
        self.mounted: List[Any] = []
        self.bind_error: Optional[BaseException] = None
        self.close_error: Optional[BaseException] = None

    @property
    def app(self):
        return self._app

    def mount(self, handler: Any) -> None:
        if handler is None or not callable(handler):
            raise MountError("mount() requires a middleware function")
        self.mounted.append(handler)
        self.events.append(("mount", handler))

    async def bind(self, port: int) -> FakeHandle:
        self.events.append(("bind", port))
        await asyncio.sleep(0)
        if self.bind_error is not None:
            raise self.bind_error
        return FakeHandle(port=port)

    async def close_handle(self, handle: FakeHandle) -> None:
        self.events.append(("close", handle.port))
        await asyncio.sleep(0)
        if self.close_error is not None:
            raise self.close_error
        if handle.closed:
            raise NotRunningError()
        handle.closed = True


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def resolve_in():
    """
    返回一个工厂：生成在 ms 毫秒后返回 success（或抛出 error）的协程函数。
    """
    def _factory(ms: int, success: Any, error: Optional[BaseException] = None):
        async def _hook(*args):
            await asyncio.sleep(ms / 1000)
            if error is not None:
                raise error
            return success
        return _hook
    return _factory


@pytest.fixture
def status_log():
    """收集某个 Server 广播出来的全部状态快照。"""
    statuses: List[ServerStatus] = []

    def _attach(server) -> List[ServerStatus]:
        server.server_status.subscribe(statuses.append)
        return statuses

    return _attach
