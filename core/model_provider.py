"""
Model providers — tell the engine whether a verified model artifact is
ready and where it lives. Download and storage are someone else's job.
"""
from __future__ import annotations
import hashlib
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_CHUNK = 1 << 20


class ModelProvider(ABC):

    @abstractmethod
    def is_ready(self) -> bool:
        """True only when the artifact exists and passed verification."""

    @abstractmethod
    def resolve_path(self) -> Path:
        """Location of the artifact. Only meaningful when is_ready()."""


def sha256_of(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()


class FileModelProvider(ModelProvider):
    """
    Artifact on the local filesystem.

    Parameters
    ----------
    path : Path
        Serialised model (.pkl / .joblib).
    sha256 : str, optional
        Expected hex digest. When given, the file must match it to be
        reported ready; when omitted only existence is checked.
    """

    def __init__(self, path: Path, sha256: Optional[str] = None) -> None:
        self._path   = Path(path)
        self._sha256 = sha256.lower() if sha256 else None
        self._verified_mtime: Optional[float] = None

    def is_ready(self) -> bool:
        if not self._path.is_file():
            logger.info("Model artifact not found: %s", self._path)
            return False
        if self._sha256 is None:
            return True

        mtime = self._path.stat().st_mtime
        if self._verified_mtime == mtime:
            return True
        actual = sha256_of(self._path)
        if actual != self._sha256:
            logger.warning(
                "Model checksum mismatch for %s (expected %s, got %s)",
                self._path, self._sha256, actual,
            )
            return False
        self._verified_mtime = mtime
        return True

    def resolve_path(self) -> Path:
        return self._path
