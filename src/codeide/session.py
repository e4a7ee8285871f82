"""Interactive execution sessions.

One :class:`Session` exists per client connection.  It waits for a start
message, launches the requested program through the matching toolchain
launcher, relays the program's output and the client's input through a
:class:`~codeide.bridge.ProcessBridge`, and finally releases the process
and the scratch workspace.

State transitions::

    AWAITING_START -> LAUNCHING -> RUNNING -> CLOSED
                          |
                          +-> COMPILE_FAILED -> CLOSED

Teardown can be triggered both by the program exiting and by the client
disconnecting.  :meth:`Session.close` runs its cleanup exactly once; any
later call returns immediately.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Union

from .bridge import BridgeClosedError, ProcessBridge
from .config import Toolchain
from .launcher import CompileFailure, ToolchainUnavailableError, get_launcher
from .models import (
    ErrorMessage,
    ExitMessage,
    InputMessage,
    OutboundMessage,
    ProtocolError,
    StartMessage,
    StderrMessage,
    parse_inbound,
)
from .workspace import Workspace


logger = logging.getLogger("codeide.session")

Send = Callable[[dict], Awaitable[None]]


class SessionState(str, enum.Enum):
    AWAITING_START = "awaiting_start"
    LAUNCHING = "launching"
    RUNNING = "running"
    COMPILE_FAILED = "compile_failed"
    CLOSED = "closed"


class Session:
    """State machine driving one interactive execution.

    Parameters
    ----------
    send:
        Coroutine function delivering one JSON-serialisable dict to the
        client.
    toolchain:
        Resolved paths of the interpreters and compilers to use.
    workspace_root:
        Parent directory for the session workspace; the system temporary
        directory when ``None``.
    """

    def __init__(
        self,
        send: Send,
        toolchain: Toolchain,
        workspace_root: Union[str, Path, None] = None,
    ) -> None:
        self._send = send
        self._toolchain = toolchain
        self._workspace_root = workspace_root
        self.state = SessionState.AWAITING_START
        self.language: Optional[str] = None
        self.workspace: Optional[Workspace] = None
        self.bridge: Optional[ProcessBridge] = None
        self._launch_task: Optional[asyncio.Task] = None
        self._pending_input: List[str] = []
        self._teardown_started = False
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    async def wait_closed(self) -> None:
        """Block until teardown has completed."""
        await self._closed.wait()

    async def handle_message(self, raw: Union[str, bytes, dict]) -> None:
        """Process one inbound frame from the client."""
        try:
            message = parse_inbound(raw)
        except ProtocolError as exc:
            logger.info("Rejected message in state %s: %s", self.state.value, exc)
            await self._emit(ErrorMessage(error=str(exc)))
            return

        if isinstance(message, StartMessage):
            await self._on_start(message)
        else:
            await self._on_input(message)

    async def _on_start(self, message: StartMessage) -> None:
        if self.state is not SessionState.AWAITING_START:
            await self._emit(ErrorMessage(error="Session already started"))
            return
        self.state = SessionState.LAUNCHING
        self.language = message.language
        logger.info("Starting %s session", self.language)
        self._launch_task = asyncio.create_task(self._launch(message))

    async def _on_input(self, message: InputMessage) -> None:
        if self.state is SessionState.AWAITING_START:
            await self._emit(ErrorMessage(error="Session has not been started"))
        elif self.state is SessionState.LAUNCHING:
            # Written in order as soon as the program is running.
            self._pending_input.append(message.input)
        elif self.state is SessionState.RUNNING:
            await self._write(message.input)
        else:
            await self._emit(ErrorMessage(error="Process is not running"))

    async def _launch(self, message: StartMessage) -> None:
        launcher = get_launcher(message.language, self._toolchain)
        try:
            self.workspace = Workspace.create(
                self._workspace_root, prefix=f"codeide-{message.language}-"
            )
            result = await launcher.launch(message.code, self.workspace)
        except (ToolchainUnavailableError, OSError, ValueError) as exc:
            logger.error("Unable to launch %s program: %s", message.language, exc)
            await self._emit(ErrorMessage(error=str(exc)))
            await self._emit(ExitMessage(code=None))
            await self.close()
            return

        if isinstance(result, CompileFailure):
            self.state = SessionState.COMPILE_FAILED
            await self._emit(StderrMessage(data=result.stderr))
            await self._emit(ExitMessage(code=result.exit_code))
            await self.close()
            return

        self.bridge = ProcessBridge(result, self._emit, on_exit=self._on_process_exit)
        self.bridge.start()
        logger.info("Process %s running for %s session", self.bridge.pid, self.language)

        if message.input is not None:
            await self._write(message.input)
        while self._pending_input and self.state is SessionState.LAUNCHING:
            await self._write(self._pending_input.pop(0))
        if self.state is SessionState.LAUNCHING:
            self.state = SessionState.RUNNING

    async def _write(self, text: str) -> None:
        try:
            await self.bridge.write(text)
        except BridgeClosedError as exc:
            await self._emit(ErrorMessage(error=str(exc)))

    async def _on_process_exit(self, code: int) -> None:
        await self.close()

    async def _emit(self, message: OutboundMessage) -> None:
        try:
            await self._send(message.model_dump())
        except Exception as exc:
            # The connection is gone; teardown is driven by the disconnect.
            logger.debug("Dropped %s message: %s", message.type, exc)

    async def close(self) -> None:
        """Kill the process and remove the workspace, exactly once."""
        if self._teardown_started:
            return
        self._teardown_started = True
        previous = self.state
        self.state = SessionState.CLOSED

        current = asyncio.current_task()
        if self._launch_task is not None and not self._launch_task.done() and self._launch_task is not current:
            self._launch_task.cancel()
            await asyncio.gather(self._launch_task, return_exceptions=True)

        if self.bridge is not None:
            await self.bridge.aclose()
        if self.workspace is not None:
            self.workspace.remove()
        self._pending_input.clear()
        self._closed.set()
        logger.info("Closed %s session (was %s)", self.language or "unstarted", previous.value)
