"""
Scroll Sentinel

Stand-in for the element at the bottom of an infinite list: while it is
visible and the state has more to give, it keeps asking for the next page.
"""

import asyncio
from typing import Optional

import structlog

from home_budget.state.base import ListState, LoadStatus


logger = structlog.get_logger(__name__)


class ScrollSentinel:
    """
    Triggers load_more on a ListState while visible.

    Re-evaluates after every state change and after each load it started,
    so a sentinel that stays visible keeps pulling until has_more is False.
    A failed load stops the pulling until visibility is set again.
    """

    def __init__(self, state: ListState):
        self._state = state
        self._visible = False
        self._task: Optional[asyncio.Task] = None
        self._loads = 0
        self._unsubscribe = state.subscribe(lambda _: self._evaluate())

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def loads_triggered(self) -> int:
        return self._loads

    def set_visible(self, visible: bool) -> None:
        self._visible = visible
        if visible and self._state.status is LoadStatus.ERROR:
            self._trigger()
        else:
            self._evaluate()

    def _evaluate(self) -> None:
        if not self._visible or self._task is not None:
            return
        state = self._state
        if state.loading or not state.has_more or state.status is LoadStatus.ERROR:
            return
        self._trigger()

    def _trigger(self) -> None:
        if self._task is not None or self._state.loading or not self._state.has_more:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("sentinel_without_event_loop", resource=self._state.resource.value)
            return
        self._loads += 1
        self._task = loop.create_task(self._state.load_more())
        self._task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._task = None
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "sentinel_load_failed",
                resource=self._state.resource.value,
                error=str(task.exception()),
            )
            return
        self._evaluate()

    async def wait_idle(self) -> None:
        """Wait until no load started by this sentinel is running."""
        while self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
            await asyncio.sleep(0)

    def close(self) -> None:
        self._visible = False
        self._unsubscribe()
