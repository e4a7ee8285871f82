"""Streaming bridge between a spawned program and a client connection.

The bridge owns one :class:`asyncio.subprocess.Process`.  Two reader tasks
copy the program's stdout and stderr to the client as they arrive, and a
watcher task reports the exit code once the program terminates and both
streams are drained.  Input from the client is written to the program's
stdin with a trailing newline.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from typing import Awaitable, Callable, List, Optional

from .models import ExitMessage, OutboundMessage, StderrMessage, StdoutMessage


logger = logging.getLogger("codeide.bridge")

Send = Callable[[OutboundMessage], Awaitable[None]]
OnExit = Callable[[int], Awaitable[None]]

CHUNK_SIZE = 1024
# How long to wait for buffered output after the process has exited.  A
# grandchild that inherited the pipes can otherwise hold them open forever.
DRAIN_TIMEOUT = 5.0


class BridgeClosedError(RuntimeError):
    """The process has exited and can no longer receive input."""


class ProcessBridge:
    """Multiplex one process's output streams and forward input to it."""

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        send: Send,
        on_exit: Optional[OnExit] = None,
    ) -> None:
        self.process = process
        self._send = send
        self._on_exit = on_exit
        self._readers: List[asyncio.Task] = []
        self._watcher: Optional[asyncio.Task] = None
        self._killed = False
        self.exit_code: Optional[int] = None

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def running(self) -> bool:
        return self.process.returncode is None

    def start(self) -> None:
        """Attach the stream readers and the exit watcher."""
        self._readers = [
            asyncio.create_task(self._pump(self.process.stdout, StdoutMessage)),
            asyncio.create_task(self._pump(self.process.stderr, StderrMessage)),
        ]
        self._watcher = asyncio.create_task(self._watch())

    async def _pump(self, stream: asyncio.StreamReader, message_cls) -> None:
        # Chunks may split multi-byte characters; the incremental decoder
        # carries partial sequences over to the next read.
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await stream.read(CHUNK_SIZE)
            if not chunk:
                tail = decoder.decode(b"", final=True)
                if tail:
                    await self._send(message_cls(data=tail))
                return
            text = decoder.decode(chunk)
            if text:
                await self._send(message_cls(data=text))

    async def _watch(self) -> None:
        code = await self.process.wait()
        done, pending = await asyncio.wait(self._readers, timeout=DRAIN_TIMEOUT)
        for task in pending:
            logger.warning("Output of pid %s not drained after exit; dropping", self.pid)
            task.cancel()
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error("Output reader for pid %s failed: %s", self.pid, task.exception())
        self.exit_code = code
        logger.info("Process %s exited with code %s", self.pid, code)
        await self._send(ExitMessage(code=code))
        if self._on_exit is not None:
            await self._on_exit(code)

    async def write(self, text: str) -> None:
        """Send ``text`` followed by a newline to the program's stdin.

        Raises :class:`BridgeClosedError` if the program has exited or its
        stdin is no longer writable.
        """
        stdin = self.process.stdin
        if self.process.returncode is not None or stdin is None or stdin.is_closing():
            raise BridgeClosedError("Process is not running")
        stdin.write((text + "\n").encode("utf-8", errors="replace"))
        try:
            await stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise BridgeClosedError("Process is not running") from exc

    def kill(self) -> bool:
        """Forcibly terminate the process.

        Returns ``True`` if a signal was sent.  Killing a process that has
        already exited or was already killed does nothing.
        """
        if self._killed or self.process.returncode is not None:
            return False
        self._killed = True
        try:
            self.process.kill()
        except ProcessLookupError:
            return False
        logger.info("Killed process %s", self.pid)
        return True

    async def aclose(self) -> None:
        """Kill the process, stop the background tasks and reap the child.

        No exit notification is sent when the bridge is closed this way.
        Safe to call from inside the exit callback.
        """
        self.kill()
        current = asyncio.current_task()
        tasks = [t for t in [*self._readers, self._watcher] if t is not None and t is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.process.wait()
        stdin = self.process.stdin
        if stdin is not None and not stdin.is_closing():
            stdin.close()
