"""
Base interfaces for toolchain launchers.

A launcher turns source text into a running process.  Every launcher
writes the source into the session workspace.  Interpreted languages then
spawn their interpreter on it; compiled languages run the compiler and only
spawn the produced program when compilation succeeds.  The returned
process has all three standard streams piped so the session can bridge
them to the client.

Launchers never wait for the program itself to finish and impose no
timeouts; a hung program runs until the client disconnects.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..config import Toolchain
from ..workspace import Workspace


logger = logging.getLogger("codeide.launcher")


class ToolchainUnavailableError(RuntimeError):
    """A required interpreter, compiler or runtime is not installed."""


@dataclass
class CompileFailure:
    """Outcome of a compiler run that exited unsuccessfully.

    Attributes
    ----------
    stderr: str
        Diagnostics captured from the compiler, or a generic message when
        the compiler printed nothing.
    exit_code: int
        Exit status of the compiler.
    """

    stderr: str
    exit_code: int


LaunchResult = Union[asyncio.subprocess.Process, CompileFailure]


class ToolchainLauncher(abc.ABC):
    """
    Abstract base class for per-language launch strategies.

    Subclasses set :attr:`language` and implement :meth:`launch`.  The
    helpers :meth:`_compile` and :meth:`_spawn` take care of process
    creation and of mapping a missing binary to
    :class:`ToolchainUnavailableError`.
    """

    language: str = ""

    def __init__(self, toolchain: Toolchain) -> None:
        self.toolchain = toolchain

    @abc.abstractmethod
    async def launch(self, code: str, workspace: Workspace) -> LaunchResult:
        """Prepare and start ``code``.

        Parameters
        ----------
        code: str
            The user supplied source.
        workspace: Workspace
            Scratch directory for source files and build artifacts; also
            the working directory of the spawned program.

        Returns
        -------
        asyncio.subprocess.Process or CompileFailure
            The running program, or the compiler diagnostics when the
            build failed.
        """
        raise NotImplementedError

    def _require(self, tool: str) -> str:
        path = getattr(self.toolchain, tool)
        if not path:
            raise ToolchainUnavailableError(
                f"{tool} is not available on this server; cannot run {self.language} code"
            )
        return path

    async def _compile(self, args: list[str], cwd: Path) -> Optional[CompileFailure]:
        """
        Run a compiler to completion and collect its diagnostics.

        Returns ``None`` on success.  If the surrounding task is cancelled
        while the compiler runs, the compiler is killed before the
        cancellation propagates.
        """
        logger.info("Compiling %s: %s", self.language, " ".join(args))
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(cwd),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as exc:
            raise ToolchainUnavailableError(f"Unable to start compiler {args[0]}: {exc}") from exc

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        if process.returncode == 0:
            return None
        message = stderr.decode("utf-8", errors="replace") or stdout.decode("utf-8", errors="replace")
        logger.info("Compilation of %s failed with exit code %s", self.language, process.returncode)
        return CompileFailure(stderr=message or "Compilation failed", exit_code=process.returncode)

    async def _spawn(self, args: list[str], cwd: Optional[Path] = None) -> asyncio.subprocess.Process:
        logger.info("Starting %s program: %s", self.language, args[0])
        try:
            return await asyncio.create_subprocess_exec(
                *args,
                cwd=str(cwd) if cwd is not None else None,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as exc:
            raise ToolchainUnavailableError(f"Unable to start {args[0]}: {exc}") from exc
