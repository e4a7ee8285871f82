"""Configuration loader.

The CodeIDE backend reads its configuration from environment variables so the
same image runs unchanged on a laptop or in a container.  Reasonable defaults
are provided so that local development works out of the box.

Environment variables:

``PORT``
    The port on which the API server listens.  Defaults to 8000.

``CODEIDE_HOST``
    Interface to bind.  Defaults to ``0.0.0.0``.

``CODEIDE_WORKSPACE_ROOT``
    Parent directory for per-session scratch workspaces.  Defaults to the
    system temporary directory.

``CODEIDE_LINE_BUFFERING``
    If ``true``, native programs are started under ``stdbuf`` when it is
    available so their output is line buffered.  Defaults to ``true``.

``CODEIDE_CORS_ORIGINS``
    Comma-separated list of allowed CORS origins.  Defaults to ``*``.

``CODEIDE_LOG_LEVEL``
    Level of the ``codeide`` logger.  Defaults to ``INFO``.

``CODEIDE_JUDGE0_URL`` / ``CODEIDE_JUDGE0_HOST`` / ``RAPID_API_KEY``
    Endpoint, RapidAPI host header and key of the batch execution backend
    used by ``POST /run``.

``CODEIDE_RUN_TIMEOUT_SECS``
    Upper bound on the wait for the batch backend.  Default is 30.

``CODEIDE_PYTHON_BIN``, ``CODEIDE_JAVAC_BIN``, ``CODEIDE_JAVA_BIN``,
``CODEIDE_GCC_BIN``, ``CODEIDE_GXX_BIN``, ``CODEIDE_STDBUF_BIN``
    Explicit toolchain paths.  When unset the binaries are looked up on
    ``PATH``.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from typing import Callable, List, Optional


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y"}


def _int_var(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"Invalid integer for {name}: {val}")


@dataclass
class Config:
    """Centralised configuration object."""

    host: str
    port: int
    workspace_root: str | None
    line_buffering: bool
    cors_origins: List[str]
    log_level: str
    judge0_url: str
    judge0_host: str
    rapid_api_key: str
    run_timeout_secs: int
    toolchain_overrides: dict

    @classmethod
    def load(cls) -> "Config":
        host = os.getenv("CODEIDE_HOST", "0.0.0.0")
        port = _int_var("PORT", 8000)

        workspace_root = os.getenv("CODEIDE_WORKSPACE_ROOT") or None
        line_buffering = _parse_bool(os.getenv("CODEIDE_LINE_BUFFERING"), True)

        origins_env = os.getenv("CODEIDE_CORS_ORIGINS", "*")
        cors_origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]

        log_level = os.getenv("CODEIDE_LOG_LEVEL", "INFO").upper()

        judge0_url = os.getenv("CODEIDE_JUDGE0_URL", "https://judge0-ce.p.rapidapi.com").rstrip("/")
        judge0_host = os.getenv("CODEIDE_JUDGE0_HOST", "judge0-ce.p.rapidapi.com")
        # The key may be empty in local development; /run then fails upstream.
        rapid_api_key = os.getenv("RAPID_API_KEY", "")
        run_timeout_secs = _int_var("CODEIDE_RUN_TIMEOUT_SECS", 30)

        toolchain_overrides = {}
        for tool in Toolchain.TOOLS:
            value = os.getenv(f"CODEIDE_{tool.upper()}_BIN")
            if value:
                toolchain_overrides[tool] = value

        return cls(
            host=host,
            port=port,
            workspace_root=workspace_root,
            line_buffering=line_buffering,
            cors_origins=cors_origins,
            log_level=log_level,
            judge0_url=judge0_url,
            judge0_host=judge0_host,
            rapid_api_key=rapid_api_key,
            run_timeout_secs=run_timeout_secs,
            toolchain_overrides=toolchain_overrides,
        )

    @classmethod
    def from_env(cls) -> "Config":
        """
        Alternate constructor used by the API to load configuration.

        This wrapper calls :meth:`load` to construct the configuration.
        """
        return cls.load()


@dataclass
class Toolchain:
    """Resolved paths of the host binaries used to build and run programs.

    A ``None`` entry means the binary is not available; launchers report that
    as a fatal session error.  Tests construct instances directly with fake
    executables instead of relying on ``PATH``.
    """

    TOOLS = ("python", "javac", "java", "gcc", "gxx", "stdbuf")

    python: Optional[str] = None
    javac: Optional[str] = None
    java: Optional[str] = None
    gcc: Optional[str] = None
    gxx: Optional[str] = None
    stdbuf: Optional[str] = None

    @classmethod
    def discover(
        cls,
        config: Config | None = None,
        which: Callable[[str], Optional[str]] = shutil.which,
    ) -> "Toolchain":
        """Resolve every tool from explicit overrides, then ``PATH``."""
        overrides = config.toolchain_overrides if config is not None else {}
        candidates = {
            "python": ("python3", "python"),
            "javac": ("javac",),
            "java": ("java",),
            "gcc": ("gcc",),
            "gxx": ("g++",),
            "stdbuf": ("stdbuf",),
        }
        resolved = {}
        for tool, names in candidates.items():
            if tool in overrides:
                resolved[tool] = overrides[tool]
                continue
            resolved[tool] = next((path for path in map(which, names) if path), None)
        if config is not None and not config.line_buffering:
            resolved["stdbuf"] = None
        return cls(**resolved)
