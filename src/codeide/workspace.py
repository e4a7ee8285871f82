"""Per-session scratch directories.

Compiled languages need somewhere to put the source file and the artifacts
the compiler produces.  Each session gets its own directory under a
configurable root; nothing is ever shared between sessions.  The directory
is removed exactly once when the session ends.

Workspaces are not thread-safe and belong to the session that created them.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path


logger = logging.getLogger("codeide.workspace")


class Workspace:
    """A temporary directory owned by one session."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._removed = False

    @classmethod
    def create(cls, root: str | Path | None = None, prefix: str = "codeide-") -> "Workspace":
        if root is not None:
            Path(root).mkdir(parents=True, exist_ok=True)
        path = tempfile.mkdtemp(prefix=prefix, dir=str(root) if root is not None else None)
        logger.debug("Created workspace %s", path)
        return cls(Path(path))

    @property
    def removed(self) -> bool:
        return self._removed

    def write(self, relative_path: str, content: str) -> Path:
        dest = self.path / relative_path
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(content, encoding="utf-8")
        return dest

    def remove(self) -> bool:
        """Delete the directory and everything in it.

        Returns ``True`` on the first call and ``False`` afterwards.  A
        failure to delete is logged and otherwise ignored; the workspace is
        considered gone either way.
        """
        if self._removed:
            return False
        self._removed = True
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Unable to remove workspace %s: %s", self.path, exc)
        else:
            logger.debug("Removed workspace %s", self.path)
        return True

    def __repr__(self) -> str:
        return f"Workspace({str(self.path)!r})"
