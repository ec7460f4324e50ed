"""Runs blocking ONNX inference off the event loop.

At most ``max_concurrent`` calls run at once, each on its own worker thread.
A caller that cannot get a slot within ``queue_timeout`` seconds gets
``TimeoutError`` instead of queueing indefinitely.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")

QUEUE_TIMEOUT_SECONDS: float = 5.0


class InferencePool:
    def __init__(self, max_concurrent: int, queue_timeout: float = QUEUE_TIMEOUT_SECONDS) -> None:
        self._slots = asyncio.Semaphore(max_concurrent)
        self._queue_timeout = queue_timeout
        self._executor = ThreadPoolExecutor(max_workers=max_concurrent, thread_name_prefix="r300-inference")

    async def run(self, func: Callable[..., T], *args: object) -> T:
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self._queue_timeout)
        except TimeoutError:
            raise TimeoutError(f"No inference slot free after {self._queue_timeout:g}s") from None
        try:
            return await asyncio.get_running_loop().run_in_executor(self._executor, func, *args)
        finally:
            self._slots.release()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
