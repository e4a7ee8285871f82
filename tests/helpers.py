"""Test helpers for collecting outbound session messages."""

from __future__ import annotations

import asyncio
from typing import Callable, List


async def wait_until(predicate: Callable[[], bool], timeout: float = 20.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


class Recorder:
    """Stand-in for a client connection that remembers every message."""

    def __init__(self) -> None:
        self.messages: List[dict] = []

    async def send(self, message) -> None:
        if hasattr(message, "model_dump"):
            message = message.model_dump()
        self.messages.append(message)

    def of_type(self, kind: str) -> List[dict]:
        return [m for m in self.messages if m["type"] == kind]

    def text(self, kind: str = "stdout") -> str:
        return "".join(m["data"] for m in self.of_type(kind))

    @property
    def exited(self) -> bool:
        return bool(self.of_type("exit"))

    async def wait_for_exit(self, timeout: float = 20.0) -> None:
        await wait_until(lambda: self.exited, timeout)

    async def wait_for_text(self, text: str, kind: str = "stdout", timeout: float = 20.0) -> None:
        await wait_until(lambda: text in self.text(kind), timeout)
