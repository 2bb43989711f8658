# stagehand/core/server.py
import logging
from typing import Any, List, Mapping, Optional, Union

from stagehand.core.contracts import (
    HostServer,
    ListenResult,
    ServerHandle,
    ServerSettings,
    ServerStatus,
    ServerTestResult,
    TestsRunConfig,
)
from stagehand.core.errors import ConfigurationError, MissingPortError, NotRunningError
from stagehand.core.hooks import run_all_functions
from stagehand.core.status import StatusBroadcaster
from stagehand.core.testing import execute_suite
from stagehand.core.utils import return_array
from stagehand.host.fastapi_host import FastAPIHost

logger = logging.getLogger(__name__)


class Server:
    """
    控制服务器的配置与运行过程，在固定的生命周期节点上执行钩子：

        before_config -> 挂载中间件 -> before_init -> (可选) 自检 -> 监听 -> after_listen

    每个阶段的状态修改完成后，都会通过 server_status 广播一份 ServerStatus 快照。
    """

    def __init__(
        self,
        settings: Optional[Union[ServerSettings, Mapping[str, Any]]] = None,
        *,
        host: Optional[HostServer] = None,
        **overrides: Any
    ):
        if isinstance(settings, ServerSettings):
            if overrides:
                settings = ServerSettings(**{**dict(settings), **overrides})
        else:
            settings = ServerSettings(**{**dict(settings or {}), **overrides})
        self.settings = settings

        # ****** 配置 ****** #
        self.port: Optional[int] = settings.port
        self.name: str = settings.name
        # 拷贝一份，避免多个 Server 共享 settings 中的列表
        self.middleware: List[Any] = list(settings.middleware)
        self.before_config: List[Any] = list(settings.before_config)
        self.before_init: List[Any] = list(settings.before_init)
        self.after_listen: List[Any] = list(settings.after_listen)
        self.tests: List[Any] = list(settings.tests)
        self.run_tests_before_listening: bool = settings.run_tests_before_listening
        self.tests_run_config: TestsRunConfig = settings.tests_run_config

        # ****** 状态 ****** #
        self.pre_config_ran = False
        self.pre_init_ran = False
        self.running = False
        self.stopped = False
        self.tests_ok = not self.tests
        self.last_test_results: List[ServerTestResult] = []

        # ****** 监听产物 ****** #
        self.host: HostServer = host if host is not None else FastAPIHost()
        self.http_server: Optional[ServerHandle] = None

        self.server_status = StatusBroadcaster()

    def __repr__(self) -> str:
        return f"Server(name={self.name!r}, port={self.port!r}, running={self.running})"

    @property
    def application(self) -> Any:
        """宿主服务器的应用对象（FastAPIHost 下就是 FastAPI 实例）。"""
        return self.host.app

    @property
    def status(self) -> ServerStatus:
        return ServerStatus(
            pre_config_ran=self.pre_config_ran,
            pre_init_ran=self.pre_init_ran,
            running=self.running,
            stopped=self.stopped,
            tests_ok=self.tests_ok,
        )

    def mount(self, middleware: Any) -> None:
        """按顺序把一个或多个中间件 / 路由挂载到宿主服务器上。"""
        for handler in return_array(middleware):
            self.host.mount(handler)

    async def config(self) -> Optional[List[Any]]:
        """
        运行 before_config 钩子，然后挂载构造时传入的中间件。
        返回 before_config 钩子的结果；没有配置钩子时返回 None。

        直接调用时总是会重新执行；listen() 只在 pre_config_ran 为 False 时调用它。
        """
        before_config_results = None
        if self.before_config:
            before_config_results = await run_all_functions(self.before_config)

        self.pre_config_ran = True
        try:
            self.mount(self.middleware)
        finally:
            # 挂载失败同样会传播给调用者，但 pre_config_ran 已经生效
            self._emit_status()
        return before_config_results

    async def test(self, config: Optional[TestsRunConfig] = None) -> List[ServerTestResult]:
        """
        运行服务器自检，可以并行或串行执行。
        config 省略时使用 tests_run_config：
          - reject_on_error=True: 只要有一个测试失败就抛出 TestsFailedError
          - run_parallel=True: 并行运行所有测试
        """
        if not self.tests:
            self.tests_ok = True
            self.last_test_results = []
            self._emit_status()
            return []

        config = config or self.tests_run_config
        report = await execute_suite(self.tests, config)

        self.last_test_results = report.results
        self.tests_ok = report.passed
        self._emit_status()
        if config.reject_on_error:
            report.raise_for_failures()
        return report.results

    async def listen(self, port: Optional[int] = None) -> ListenResult:
        """
        按顺序执行：config()（如果还没运行过）-> before_init 钩子 -> 自检（如果启用）
        -> 绑定端口 -> after_listen 钩子。

        返回 before_init 钩子的结果和宿主服务器的监听句柄。
        after_listen 失败时异常照常传播，但服务器已经在监听，不会回滚。
        """
        if port is None and self.port is None:
            raise MissingPortError()
        if self.http_server is not None:
            raise ConfigurationError(f"Server {self.name} is already running")

        # 运行 before_config 并挂载中间件
        if not self.pre_config_ran:
            await self.config()

        # 运行 before_init 钩子
        before_init_results = None
        if self.before_init and not self.pre_init_ran:
            try:
                before_init_results = await run_all_functions(self.before_init)
            except Exception:
                logger.error(f"there were errors during pre init of server {self.name}")
                raise
            self.pre_init_ran = True
            self._emit_status()

        # 运行服务器自检
        if self.run_tests_before_listening:
            await self.test()

        listen_port = port if port is not None else self.port
        handle = await self.host.bind(listen_port)
        logger.info(f"App listening on port {getattr(handle, 'port', listen_port)}")
        self.http_server = handle
        self.running = True
        self.stopped = False
        self._emit_status()

        # 运行 after_listen 钩子，传入 Server 实例
        if self.after_listen:
            await run_all_functions(self.after_listen, self)

        return ListenResult(init_results=before_init_results, http_server=handle)

    async def close(self) -> str:
        """关闭服务器并停止监听。"""
        if self.http_server is None:
            raise NotRunningError()

        await self.host.close_handle(self.http_server)
        self.http_server = None
        self.stopped = True
        self.running = False
        self._emit_status()
        return f"server {self.name} was closed successfully"

    def _emit_status(self) -> None:
        self.server_status.emit(self.status)
