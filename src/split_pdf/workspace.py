from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class RunWorkspace:
    """
    Temp directory that owns every artifact materialized during one run.

    Candidates are released as soon as they are rejected; whatever is still
    outstanding when the context exits is removed together with the directory,
    on success and failure alike. Accepted segments must be moved out (see
    `assembler.assemble_outputs`) before the context exits.
    """

    def __init__(self, *, parent: Path | None = None, prefix: str = "split-pdf-") -> None:
        self._parent = parent
        self._prefix = prefix
        self._root: Path | None = None
        self._outstanding: list[Path] = []

    def __enter__(self) -> "RunWorkspace":
        if self._parent is not None:
            self._parent.mkdir(parents=True, exist_ok=True)
        self._root = Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._parent))
        logger.debug(f"Created run workspace {self._root}")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def root(self) -> Path:
        if self._root is None:
            raise RuntimeError("RunWorkspace used outside of its context")
        return self._root

    @property
    def outstanding(self) -> list[Path]:
        return [p for p in self._outstanding if p.exists()]

    def new_artifact_path(self, name: str) -> Path:
        path = self.root / name
        if path in self._outstanding:
            raise ValueError(f"artifact name already in use: {name}")
        self._outstanding.append(path)
        return path

    def adopt(self, path: Path) -> Path:
        """Take ownership of an artifact a materializer wrote somewhere else."""
        if path not in self._outstanding:
            self._outstanding.append(path)
        return path

    def release(self, path: Path) -> None:
        path.unlink(missing_ok=True)
        if path in self._outstanding:
            self._outstanding.remove(path)

    def forget(self, path: Path) -> None:
        """Stop tracking an artifact that has been moved out of the workspace."""
        if path in self._outstanding:
            self._outstanding.remove(path)

    def release_all(self) -> None:
        for path in list(self._outstanding):
            self.release(path)

    def close(self) -> None:
        if self._root is None:
            return
        self.release_all()
        shutil.rmtree(self._root, ignore_errors=True)
        logger.debug(f"Removed run workspace {self._root}")
        self._root = None
