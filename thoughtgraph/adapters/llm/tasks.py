"""
Inference Task Queue - Submit/await interface over a text generator.

Prompts are submitted synchronously and run as asyncio tasks. At most
``max_concurrent`` generations run at once; when slots are full, waiting
prompts start in priority order (high, medium, low), first come first served
within a priority.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import uuid
from typing import Protocol

from thoughtgraph.config.errors import ErrorCode, ProviderError, ProviderTimeout, ThoughtGraphError
from thoughtgraph.domains.orchestration.models import InferencePriority

logger = logging.getLogger(__name__)

__all__ = ["InferenceTaskQueue", "TextGenerator"]

_RANK = {
    InferencePriority.HIGH: 0,
    InferencePriority.MEDIUM: 1,
    InferencePriority.LOW: 2,
}


class TextGenerator(Protocol):
    def is_configured(self) -> bool: ...

    async def generate_text(self, prompt: str) -> str: ...


class InferenceTaskQueue:
    """
    Inference provider for the reasoning engine.

    Example:
        >>> queue = InferenceTaskQueue(LLMService(), max_concurrent=4)
        >>> task_id = queue.submit("Summarize the evidence", InferencePriority.HIGH)
        >>> text = await queue.await_result(task_id, timeout_ms=30_000)
    """

    def __init__(self, generator: TextGenerator, max_concurrent: int = 4) -> None:
        self._generator = generator
        self._max_concurrent = max(1, max_concurrent)
        self._running = 0
        self._waiting: list[tuple[int, int, asyncio.Future[None]]] = []
        self._sequence = itertools.count()
        self._tasks: dict[str, asyncio.Task[str]] = {}

    def is_configured(self) -> bool:
        return self._generator.is_configured()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, prompt: str, priority: InferencePriority = InferencePriority.HIGH) -> str:
        """
        Queue a prompt; must be called from a running event loop.

        Returns:
            Task ID for ``await_result``
        """
        task_id = uuid.uuid4().hex
        loop = asyncio.get_running_loop()
        self._tasks[task_id] = loop.create_task(self._run(prompt, priority))
        logger.debug("Submitted task %s (%s)", task_id, priority.value)
        return task_id

    async def await_result(self, task_id: str, timeout_ms: int) -> str:
        """
        Wait for a task; a task that exceeds ``timeout_ms`` is cancelled.

        Raises:
            ProviderTimeout: Timeout exceeded
            ProviderError: Unknown task ID or generation failure
        """
        task = self._tasks.get(task_id)
        if task is None:
            raise ProviderError(f"Unknown task {task_id}", code=ErrorCode.NOT_FOUND)

        try:
            return await asyncio.wait_for(task, timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            raise ProviderTimeout(
                f"Inference exceeded {timeout_ms}ms", {"task_id": task_id, "timeout_ms": timeout_ms}
            ) from e
        except ThoughtGraphError:
            raise
        except Exception as e:
            raise ProviderError(f"Inference failed: {e}", {"task_id": task_id}) from e
        finally:
            self._tasks.pop(task_id, None)

    async def _acquire(self, priority: InferencePriority) -> None:
        if self._running < self._max_concurrent and not self._waiting:
            self._running += 1
            return

        slot: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._waiting, (_RANK[priority], next(self._sequence), slot))
        try:
            await slot
        except asyncio.CancelledError:
            # a slot handed over just before cancellation must be passed on
            if slot.done() and not slot.cancelled():
                self._release()
            raise

    def _release(self) -> None:
        while self._waiting:
            _, _, slot = heapq.heappop(self._waiting)
            if not slot.done():
                slot.set_result(None)
                return
        self._running -= 1

    async def _run(self, prompt: str, priority: InferencePriority) -> str:
        await self._acquire(priority)
        try:
            return await self._generator.generate_text(prompt)
        finally:
            self._release()
