# stagehand/core/hooks.py
import inspect
import logging
from typing import Any, List, Optional, Sequence

from stagehand.core.contracts import HookCallable
from stagehand.core.utils import describe_callable

logger = logging.getLogger(__name__)


async def run_all_functions(
    functions: Sequence[HookCallable],
    server_instance: Optional[Any] = None
) -> List[Any]:
    """
    按列表顺序串行执行一组钩子函数，上一个完成后才启动下一个。

    - 任意一个钩子抛出异常时立即停止，异常原样向上传播，后续钩子不会执行。
    - 全部成功时，按调用顺序返回每个钩子的结果；空列表直接返回空列表。
    - 如果提供了 server_instance，它会作为唯一的位置参数传给每一个钩子
      （目前只有 after_listen 钩子会用到）。

    钩子可以返回任意可等待对象；返回普通值的函数也被接受，视为已完成的结果。
    """
    call_args = () if server_instance is None else (server_instance,)
    results: List[Any] = []

    for func in functions:
        result = func(*call_args)
        if inspect.isawaitable(result):
            result = await result
        logger.debug(f"Hook '{describe_callable(func)}' completed.")
        results.append(result)

    return results
