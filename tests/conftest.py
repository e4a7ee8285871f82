"""Shared fixtures: real and fake toolchains."""

from __future__ import annotations

import shutil
import sys

import pytest

from codeide.config import Toolchain


@pytest.fixture
def make_tool(tmp_path):
    """Create an executable Python script standing in for a toolchain binary."""

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def _make(name: str, body: str) -> str:
        path = bin_dir / name
        path.write_text(f"#!{sys.executable}\n{body}", encoding="utf-8")
        path.chmod(0o755)
        return str(path)

    return _make


@pytest.fixture
def python_toolchain() -> Toolchain:
    return Toolchain(python=sys.executable)


@pytest.fixture
def host_toolchain() -> Toolchain:
    """Toolchain resolved from the machine running the tests."""
    return Toolchain.discover(which=shutil.which)
