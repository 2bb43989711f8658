# stagehand/core/status.py
import asyncio
import inspect
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from stagehand.core.contracts import ServerStatus, StatusCallback
from stagehand.core.utils import describe_callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Subscription:
    """subscribe() 返回的订阅凭证，用于取消订阅。"""
    id: int
    callback: StatusCallback = field(compare=False)


class StatusBroadcaster:
    """
    Server 私有的状态广播点，生命周期与所属的 Server 相同。

    同步订阅者在 emit() 中按注册顺序依次调用；协程订阅者会被调度为独立任务，
    不会阻塞广播。订阅者自身的异常只记录日志，不影响其他订阅者和 Server。
    """

    def __init__(self):
        self._subscribers: Dict[int, StatusCallback] = {}
        self._ids = itertools.count(1)
        self._pending: Set[asyncio.Task] = set()
        self.last_status: Optional[ServerStatus] = None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: StatusCallback) -> Subscription:
        if not callable(callback):
            raise TypeError("Status subscriber must be callable.")
        subscription = Subscription(id=next(self._ids), callback=callback)
        self._subscribers[subscription.id] = callback
        logger.debug(f"Status subscriber #{subscription.id} '{describe_callable(callback)}' registered.")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self._subscribers.pop(subscription.id, None) is not None

    def clear(self) -> None:
        self._subscribers.clear()

    def emit(self, status: ServerStatus) -> None:
        self.last_status = status
        # 复制一份，允许订阅者在回调中取消订阅
        for sub_id, callback in list(self._subscribers.items()):
            try:
                outcome = callback(status)
                if inspect.isawaitable(outcome):
                    self._schedule(sub_id, outcome)
            except Exception as e:
                logger.error(f"Error in status subscriber #{sub_id}: {e}", exc_info=e)

    async def drain(self) -> None:
        """等待所有已调度的协程订阅者执行完毕。"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _schedule(self, sub_id: int, awaitable) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_task_done(sub_id, t))

    def _on_task_done(self, sub_id: int, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Error in async status subscriber #{sub_id}: {error}", exc_info=error)
