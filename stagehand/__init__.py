# stagehand/__init__.py
"""
stagehand: 为请求服务进程编排生命周期。
配置 -> 预初始化钩子 -> 自检 -> 监听 / 关闭，并在每个阶段之后广播状态快照。
"""
__version__ = "0.1.0"

from stagehand.core.contracts import (
    HostServer,
    ListenResult,
    ServerSettings,
    ServerStatus,
    ServerTestResult,
    TestsRunConfig,
)
from stagehand.core.errors import (
    ConfigurationError,
    MissingPortError,
    MountError,
    NotRunningError,
    StagehandError,
    TestsFailedError,
)
from stagehand.core.hooks import run_all_functions
from stagehand.core.server import Server
from stagehand.core.status import StatusBroadcaster, Subscription
from stagehand.core.testing import ServerTest, TestRunReport, execute_suite, run_tests
from stagehand.host.fastapi_host import FastAPIHost, UvicornHandle
from stagehand.log_config import configure_logging

__all__ = [
    "ConfigurationError",
    "FastAPIHost",
    "HostServer",
    "ListenResult",
    "MissingPortError",
    "MountError",
    "NotRunningError",
    "Server",
    "ServerSettings",
    "ServerStatus",
    "ServerTest",
    "ServerTestResult",
    "StagehandError",
    "StatusBroadcaster",
    "Subscription",
    "TestRunReport",
    "TestsFailedError",
    "TestsRunConfig",
    "UvicornHandle",
    "configure_logging",
    "execute_suite",
    "run_all_functions",
    "run_tests",
]
