"""
Rebuilds the source a contract is expected to have been verified with.

First-party files are verified with the build preamble prepended; third-party
dependencies (paths starting with "@") are verified exactly as installed.
"""

import os
from pathlib import Path
from typing import Iterable, Optional

from .errors import LocalFileMissing

DEPENDENCY_MARKER = "@"
PREAMBLE_PATH = Path("scripts") / "preamble.sol"
DEPENDENCY_DIR = Path("node_modules")


def read_source(path: Path) -> str:
    # Bytes first: no newline translation, sources must compare exactly.
    return path.read_bytes().decode("utf-8")


def is_dependency(path: str) -> bool:
    return path.startswith(DEPENDENCY_MARKER)


class SourceReconstructor:
    def __init__(self, repo_root: Path,
                 preamble_path: Optional[Path] = None,
                 dependency_root: Optional[Path] = None):
        self.repo_root = Path(repo_root)
        self.preamble_path = preamble_path or self.repo_root / PREAMBLE_PATH
        self.dependency_root = dependency_root or self.repo_root / DEPENDENCY_DIR
        self._preamble: Optional[str] = None

    @property
    def preamble(self) -> str:
        if self._preamble is None:
            self._preamble = self._read(self.preamble_path, str(PREAMBLE_PATH))
        return self._preamble

    def local_path(self, path: str) -> Path:
        """Local file for a bundle path; paths that leave their root are refused."""
        base = self.dependency_root if is_dependency(path) else self.repo_root
        # Bundle paths come from the verified source, so they are untrusted.
        rel = os.path.normpath(path.replace("\\", "/"))
        if os.path.isabs(rel) or rel == os.pardir or rel.startswith(os.pardir + os.sep):
            raise LocalFileMissing(f"Source file {path} is outside {base}",
                                   path=path, local_path=str(base))
        return base / rel

    def expected_source(self, path: str) -> str:
        """Expected verified content for one path of a bundle."""
        content = self._read(self.local_path(path), path)
        if is_dependency(path):
            return content
        return self.preamble + content

    def reconstruct(self, paths: Iterable[str]) -> dict[str, str]:
        return {path: self.expected_source(path) for path in paths}

    def _read(self, local: Path, path: str) -> str:
        try:
            return read_source(local)
        except FileNotFoundError as e:
            raise LocalFileMissing(f"Source file {path} not found locally at {local}",
                                   path=path, local_path=str(local)) from e
