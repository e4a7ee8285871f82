"""
Toolchain launchers for the interactive session.

Each supported language has one launcher that knows how to turn source
text into a running process: Python is interpreted directly, Java is
compiled with ``javac`` and run on the JVM, and C/C++ are compiled to a
native binary.  Adding a language means adding one
:class:`ToolchainLauncher` subclass and registering it in
:data:`LAUNCHERS`.
"""

from __future__ import annotations

from typing import Dict, Type

from ..config import Toolchain
from .base import CompileFailure, LaunchResult, ToolchainLauncher, ToolchainUnavailableError
from .flush import add_flush_calls
from .java_launcher import JavaLauncher
from .native_launcher import CLauncher, CppLauncher, NativeLauncher
from .python_launcher import PythonLauncher

LAUNCHERS: Dict[str, Type[ToolchainLauncher]] = {
    "python": PythonLauncher,
    "java": JavaLauncher,
    "c": CLauncher,
    "cpp": CppLauncher,
}


def get_launcher(language: str, toolchain: Toolchain) -> ToolchainLauncher:
    """Return a launcher for ``language`` bound to ``toolchain``."""
    try:
        launcher_cls = LAUNCHERS[language]
    except KeyError:
        raise ValueError(f"Unsupported language: {language}")
    return launcher_cls(toolchain)


__all__ = [
    "CompileFailure",
    "LaunchResult",
    "ToolchainLauncher",
    "ToolchainUnavailableError",
    "PythonLauncher",
    "JavaLauncher",
    "NativeLauncher",
    "CLauncher",
    "CppLauncher",
    "LAUNCHERS",
    "add_flush_calls",
    "get_launcher",
]
