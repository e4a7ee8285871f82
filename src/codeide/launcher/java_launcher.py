"""
Launcher for Java programs.

The source is written to ``Main.java`` in the session workspace and
compiled with ``javac``.  On success the JVM is started against the
compiled ``Main`` class, so user programs must declare ``public class
Main`` without a package.
"""

from __future__ import annotations

from ..workspace import Workspace
from .base import LaunchResult, ToolchainLauncher


SOURCE_FILE = "Main.java"
MAIN_CLASS = "Main"


class JavaLauncher(ToolchainLauncher):
    """Compile with ``javac`` and run on the ``java`` runtime."""

    language = "java"

    async def launch(self, code: str, workspace: Workspace) -> LaunchResult:
        javac = self._require("javac")
        java = self._require("java")
        workspace.write(SOURCE_FILE, code)
        failure = await self._compile([javac, SOURCE_FILE], workspace.path)
        if failure is not None:
            return failure
        return await self._spawn([java, "-cp", str(workspace.path), MAIN_CLASS], workspace.path)
