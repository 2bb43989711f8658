# stagehand/core/contracts.py

from __future__ import annotations
import os
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from stagehand.core.utils import return_array

# --- 1. 类型别名 ---

# 钩子 / 探针的通用签名：零或一个参数，返回可等待对象
HookCallable = Callable[..., Awaitable[Any]]

# 状态订阅者：接收一份状态快照，可以是普通函数也可以是协程函数
StatusCallback = Callable[['ServerStatus'], Any]

# 宿主服务器返回的监听句柄，对核心来说是不透明的
ServerHandle = Any


# --- 2. 测试相关模型 ---

class TestsRunConfig(BaseModel):
    """Server.test() 的运行配置。"""
    __test__ = False

    reject_on_error: bool = True
    run_parallel: bool = True


class ServerTestResult(BaseModel):
    """单个 ServerTest 执行后的结果记录。"""
    error: Optional[BaseException] = None
    error_message: str = ""
    result: Optional[str] = None
    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def ok(self) -> bool:
        return self.error is None


# --- 3. 状态快照 ---

class ServerStatus(BaseModel):
    """每次阶段切换后广播出去的状态快照。"""
    pre_config_ran: bool = False
    pre_init_ran: bool = False
    running: bool = False
    stopped: bool = False
    tests_ok: bool = False
    model_config = ConfigDict(frozen=True)


class ListenResult(BaseModel):
    """Server.listen() 成功后的返回值。"""
    init_results: Optional[List[Any]] = None
    http_server: ServerHandle = None
    model_config = ConfigDict(arbitrary_types_allowed=True)


# --- 4. 服务器配置 ---

class ServerSettings(BaseModel):
    """
    构造 Server 时使用的配置快照。
    "单个或列表" 形式的字段在这里被统一规范化为列表，之后的代码只处理列表。
    """
    port: Optional[int] = None
    name: str = "stagehand"
    # 通过 config() 挂载到宿主服务器上的中间件 / 路由
    middleware: List[Any] = Field(default_factory=list)
    # 挂载中间件之前运行的钩子
    before_config: List[Any] = Field(default_factory=list)
    # 挂载中间件之后、开始监听之前运行的钩子
    before_init: List[Any] = Field(default_factory=list)
    # 开始监听之后运行的钩子，接收 Server 实例作为参数
    after_listen: List[Any] = Field(default_factory=list)
    # ServerTest 实例，可以在监听前自动运行
    tests: List[Any] = Field(default_factory=list)
    run_tests_before_listening: bool = False
    tests_run_config: TestsRunConfig = Field(default_factory=TestsRunConfig)
    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator('middleware', 'before_config', 'before_init', 'after_listen', 'tests', mode='before')
    @classmethod
    def normalize_sequence(cls, value: Any) -> List[Any]:
        return return_array(value)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides: Any) -> 'ServerSettings':
        """
        从环境变量（以及 .env 文件）构建配置。
        env_file 省略时自动查找 .env；已存在的环境变量不会被 .env 覆盖。
        显式传入的关键字参数优先于环境变量。
        """
        load_dotenv(env_file)
        values: dict = {}

        port = os.getenv("STAGEHAND_PORT")
        if port:
            values["port"] = port
        name = os.getenv("STAGEHAND_NAME")
        if name:
            values["name"] = name

        run_before_listening = os.getenv("STAGEHAND_RUN_TESTS_BEFORE_LISTENING")
        if run_before_listening is not None:
            values["run_tests_before_listening"] = _env_flag(run_before_listening)

        run_config = {}
        reject_on_error = os.getenv("STAGEHAND_TESTS_REJECT_ON_ERROR")
        if reject_on_error is not None:
            run_config["reject_on_error"] = _env_flag(reject_on_error)
        run_parallel = os.getenv("STAGEHAND_TESTS_RUN_PARALLEL")
        if run_parallel is not None:
            run_config["run_parallel"] = _env_flag(run_parallel)
        if run_config:
            values["tests_run_config"] = run_config

        values.update(overrides)
        return cls(**values)


def _env_flag(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


# --- 5. 宿主服务器接口 ---
# 核心只依赖这个抽象接口，而不是某个具体的 HTTP 框架。

class HostServer(ABC):
    @property
    @abstractmethod
    def app(self) -> Any: raise NotImplementedError
    @abstractmethod
    def mount(self, handler: Any) -> None: raise NotImplementedError
    @abstractmethod
    async def bind(self, port: int) -> ServerHandle: raise NotImplementedError
    @abstractmethod
    async def close_handle(self, handle: ServerHandle) -> None: raise NotImplementedError
