"""
Launcher for Python programs.

The source is written to ``main.py`` in the session workspace and the
interpreter is started on it in unbuffered mode.  Staging the file
rather than passing the code with ``-c`` keeps large programs clear of
the operating system's per-argument size limit.  There is no build
step, so this launcher never returns a
:class:`~codeide.launcher.base.CompileFailure`.
"""

from __future__ import annotations

from ..workspace import Workspace
from .base import LaunchResult, ToolchainLauncher


SOURCE_FILE = "main.py"


class PythonLauncher(ToolchainLauncher):
    """Run Python code with the host interpreter."""

    language = "python"

    async def launch(self, code: str, workspace: Workspace) -> LaunchResult:
        python = self._require("python")
        workspace.write(SOURCE_FILE, code)
        return await self._spawn([python, "-u", SOURCE_FILE], workspace.path)
