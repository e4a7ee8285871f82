"""
Launchers for natively compiled languages (C and C++).

Both variants share one recipe: rewrite the source so output is flushed
promptly, write it into the workspace, compile it to a ``main`` binary and
execute that binary.  When ``stdbuf`` is available the binary runs under
``stdbuf -oL -eL`` for line-buffered output; without it the program still
runs correctly, only with coarser output timing.
"""

from __future__ import annotations

from ..workspace import Workspace
from .base import LaunchResult, ToolchainLauncher
from .flush import add_flush_calls


BINARY_NAME = "main"


class NativeLauncher(ToolchainLauncher):
    """Shared compile-and-exec logic for C-family languages."""

    #: Toolchain attribute naming the compiler.
    compiler: str = ""
    source_file: str = ""

    def run_command(self, binary: str) -> list[str]:
        if self.toolchain.stdbuf:
            return [self.toolchain.stdbuf, "-oL", "-eL", binary]
        return [binary]

    async def launch(self, code: str, workspace: Workspace) -> LaunchResult:
        compiler = self._require(self.compiler)
        workspace.write(self.source_file, add_flush_calls(code, self.language))
        binary = workspace.path / BINARY_NAME
        failure = await self._compile(
            [compiler, self.source_file, "-o", BINARY_NAME], workspace.path
        )
        if failure is not None:
            return failure
        return await self._spawn(self.run_command(str(binary)), workspace.path)


class CLauncher(NativeLauncher):
    language = "c"
    compiler = "gcc"
    source_file = "main.c"


class CppLauncher(NativeLauncher):
    language = "cpp"
    compiler = "gxx"
    source_file = "main.cpp"
