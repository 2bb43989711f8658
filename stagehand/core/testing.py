# stagehand/core/testing.py
import asyncio
import inspect
import logging
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel

from stagehand.core.contracts import HookCallable, ServerTestResult, TestsRunConfig
from stagehand.core.errors import TestsFailedError
from stagehand.core.hooks import run_all_functions

logger = logging.getLogger(__name__)


class ServerTest:
    """
    对单个异步探针函数的封装（服务器自检）。
    execute() 永远不会因为探针失败而抛出异常，而是把结果转换成 ServerTestResult。
    """

    def __init__(
        self,
        test_function: HookCallable,
        on_error_message: str,
        on_success_message: str,
        context: Optional[Any] = None
    ):
        self.test_function = test_function
        self.on_error_message = on_error_message
        self.on_success_message = on_success_message
        # 不透明的上下文对象，设置后作为探针的唯一参数传入
        self.context = context

    def __repr__(self) -> str:
        return f"ServerTest(on_success_message={self.on_success_message!r})"

    async def execute(self) -> ServerTestResult:
        """运行探针并记录结果。"""
        error: Optional[BaseException] = None
        try:
            if self.context is not None:
                outcome = self.test_function(self.context)
            else:
                outcome = self.test_function()
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            error = e

        if error is not None:
            result = ServerTestResult(error=error, error_message=self.on_error_message, result=None)
            logger.error(result.error_message)
            logger.error(f"{type(error).__name__}: {error}", exc_info=error)
        else:
            result = ServerTestResult(error=None, error_message="", result=self.on_success_message)
            logger.info(result.result)

        return result


class TestRunReport(BaseModel):
    """一次测试运行的汇总。"""
    __test__ = False

    results: List[ServerTestResult]
    passed: bool

    @property
    def failures(self) -> List[ServerTestResult]:
        return [r for r in self.results if not r.ok]

    def raise_for_failures(self) -> None:
        if not self.passed:
            raise TestsFailedError()


async def execute_suite(tests: Sequence[ServerTest], config: TestsRunConfig) -> TestRunReport:
    """
    运行所有测试并汇总结果，测试失败不会导致异常。

    并行模式下所有探针同时启动；串行模式下逐个执行，但与钩子不同，
    某个测试失败后其余测试照常运行。两种模式下结果顺序都与输入顺序一致。

    列表中的 None 等非法条目会在任何探针启动之前抛出 AttributeError，
    这属于调用方错误，不会被吞进 ServerTestResult。
    """
    if not tests:
        return TestRunReport(results=[], passed=True)

    logger.info(f"Running {len(tests)} server tests ({'parallel' if config.run_parallel else 'series'})")
    # 先取出所有 execute，非法条目在这里就会失败
    probes = [t.execute for t in tests]

    if config.run_parallel:
        results = list(await asyncio.gather(*(probe() for probe in probes)))
    else:
        results = await run_all_functions(probes)

    passed = len([r for r in results if r.ok]) == len(tests)
    return TestRunReport(results=results, passed=passed)


async def run_tests(tests: Sequence[ServerTest], config: Optional[TestsRunConfig] = None) -> List[ServerTestResult]:
    """运行测试，并在 reject_on_error 时对任何失败抛出 TestsFailedError。"""
    config = config or TestsRunConfig()
    report = await execute_suite(tests, config)
    if config.reject_on_error:
        report.raise_for_failures()
    return report.results
