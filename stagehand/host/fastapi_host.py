# stagehand/host/fastapi_host.py

import asyncio
import contextlib
import inspect
import logging
import os
import socket
from dataclasses import dataclass
from typing import Any, Optional

import uvicorn
from fastapi import APIRouter, FastAPI
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware

from stagehand.app import create_app
from stagehand.core.contracts import HostServer
from stagehand.core.errors import MountError, NotRunningError

logger = logging.getLogger(__name__)

DEFAULT_BIND_HOST = "0.0.0.0"


class EmbeddedUvicornServer(uvicorn.Server):
    """
    uvicorn server that leaves SIGINT/SIGTERM to the owning process.
    Stopping goes through should_exit only (FastAPIHost.close_handle).
    """

    @contextlib.contextmanager
    def capture_signals(self):
        # uvicorn >= 0.29
        yield

    def install_signal_handlers(self) -> None:
        # uvicorn < 0.29
        pass


@dataclass
class UvicornHandle:
    """The listening artifacts produced by FastAPIHost.bind()."""
    host: str
    port: int
    server: uvicorn.Server
    task: asyncio.Task
    socket: socket.socket
    closed: bool = False


class FastAPIHost(HostServer):
    """
    Host server backed by a FastAPI application served with uvicorn.

    Handlers are mounted in call order: the first mounted middleware is the
    outermost one, so it sees a request first. Routers are included as-is.
    """

    def __init__(
        self,
        app: Optional[FastAPI] = None,
        bind_host: Optional[str] = None,
        log_level: Optional[str] = None,
        startup_timeout: float = 30.0
    ):
        self._app = app if app is not None else create_app()
        self.bind_host = bind_host or os.getenv("STAGEHAND_HOST", DEFAULT_BIND_HOST)
        self.log_level = log_level or os.getenv("STAGEHAND_UVICORN_LOG_LEVEL", "warning")
        self.startup_timeout = startup_timeout

    @property
    def app(self) -> FastAPI:
        return self._app

    def mount(self, handler: Any) -> None:
        if isinstance(handler, APIRouter):
            self._app.include_router(handler)
            logger.debug(f"Included router: prefix='{handler.prefix}', {len(handler.routes)} routes")
        elif isinstance(handler, Middleware):
            self._append_middleware(handler)
        elif isinstance(handler, type) and _is_asgi_class(handler):
            self._append_middleware(Middleware(handler))
        elif inspect.iscoroutinefunction(handler):
            self._append_middleware(Middleware(BaseHTTPMiddleware, dispatch=handler))
        else:
            raise MountError(
                "mount() requires a middleware function, a Middleware, a middleware class "
                f"or an APIRouter but got a {type(handler).__name__}"
            )

    def _append_middleware(self, middleware: Middleware) -> None:
        # 与 app.add_middleware 相同的限制，但追加到末尾以保持挂载顺序
        if self._app.middleware_stack is not None:
            raise RuntimeError("Cannot add middleware after an application has started")
        self._app.user_middleware.append(middleware)
        logger.debug(f"Mounted middleware: {middleware.cls.__name__}")

    async def bind(self, port: int) -> UvicornHandle:
        """
        Binds the socket first so that a busy port surfaces as an OSError here,
        then runs uvicorn on it in a background task and waits until it is serving.
        """
        sock = self._bind_socket(port)
        bound_port = sock.getsockname()[1]

        config = uvicorn.Config(self._app, host=self.bind_host, port=bound_port, log_level=self.log_level)
        server = EmbeddedUvicornServer(config)

        task = asyncio.create_task(server.serve(sockets=[sock]), name=f"uvicorn-{bound_port}")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.startup_timeout
        while not server.started:
            if task.done():
                sock.close()
                error = task.exception()
                if error is not None:
                    raise error
                raise RuntimeError(f"uvicorn exited before listening on port {bound_port}")
            if loop.time() > deadline:
                server.should_exit = True
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
                sock.close()
                raise TimeoutError(f"Server did not start within {self.startup_timeout}s")
            await asyncio.sleep(0.05)

        logger.debug(f"uvicorn serving on {self.bind_host}:{bound_port}")
        return UvicornHandle(host=self.bind_host, port=bound_port, server=server, task=task, socket=sock)

    async def close_handle(self, handle: UvicornHandle) -> None:
        if handle.closed:
            raise NotRunningError()
        handle.server.should_exit = True
        try:
            await handle.task
        finally:
            handle.socket.close()
        handle.closed = True
        logger.debug(f"uvicorn on port {handle.port} stopped.")

    def _bind_socket(self, port: int) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.bind_host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.bind_host, port))
        except OSError:
            sock.close()
            raise
        sock.set_inheritable(True)
        return sock


def _is_asgi_class(cls: type) -> bool:
    """一个类只有定义了 async __call__(scope, receive, send) 才能作为中间件挂载。"""
    if not any("__call__" in vars(klass) for klass in cls.__mro__ if klass is not object):
        return False
    return inspect.iscoroutinefunction(cls.__call__)
