"""
Tests for the inference task queue.
"""

from __future__ import annotations

import asyncio

import pytest

from thoughtgraph.config.errors import ErrorCode, ProviderError, ProviderTimeout
from thoughtgraph.domains.orchestration import InferenceProvider, InferencePriority

from .tasks import InferenceTaskQueue


class EchoGenerator:
    """Generator that echoes prompts, optionally blocking until released."""

    def __init__(self, gate: asyncio.Event | None = None, fail: bool = False) -> None:
        self.gate = gate
        self.fail = fail
        self.started: list[str] = []

    def is_configured(self) -> bool:
        return True

    async def generate_text(self, prompt: str) -> str:
        self.started.append(prompt)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RuntimeError("model crashed")
        return f"echo: {prompt}"


def test_queue_satisfies_inference_contract() -> None:
    assert isinstance(InferenceTaskQueue(EchoGenerator()), InferenceProvider)


async def test_submit_and_await() -> None:
    queue = InferenceTaskQueue(EchoGenerator())

    task_id = queue.submit("hello")

    assert await queue.await_result(task_id, 1000) == "echo: hello"
    assert queue.pending == 0


async def test_unknown_task() -> None:
    queue = InferenceTaskQueue(EchoGenerator())

    with pytest.raises(ProviderError) as exc:
        await queue.await_result("missing", 1000)

    assert exc.value.code == ErrorCode.NOT_FOUND


async def test_timeout_cancels_task() -> None:
    queue = InferenceTaskQueue(EchoGenerator(gate=asyncio.Event()))

    task_id = queue.submit("slow")

    with pytest.raises(ProviderTimeout):
        await queue.await_result(task_id, 10)
    assert queue.pending == 0


async def test_generation_failure_is_wrapped() -> None:
    queue = InferenceTaskQueue(EchoGenerator(fail=True))

    task_id = queue.submit("boom")

    with pytest.raises(ProviderError, match="model crashed"):
        await queue.await_result(task_id, 1000)


async def test_waiting_prompts_start_by_priority() -> None:
    gate = asyncio.Event()
    generator = EchoGenerator(gate=gate)
    queue = InferenceTaskQueue(generator, max_concurrent=1)

    first = queue.submit("first", InferencePriority.LOW)
    await asyncio.sleep(0)
    low = queue.submit("low", InferencePriority.LOW)
    high = queue.submit("high", InferencePriority.HIGH)
    medium = queue.submit("medium", InferencePriority.MEDIUM)

    gate.set()
    results = [await queue.await_result(t, 1000) for t in (first, low, high, medium)]

    assert results == ["echo: first", "echo: low", "echo: high", "echo: medium"]
    assert generator.started == ["first", "high", "medium", "low"]
