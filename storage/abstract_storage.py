"""Storage abstraction for uploaded verification documents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO


class AbstractStorage(ABC):
    """Interface for document storage backends."""

    @abstractmethod
    def save(self, file_obj: IO[bytes], filename: str, folder: str | None = None) -> str:
        """Persist a file and return its stored (relative) path."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return whether the given stored path exists."""

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Remove a stored document; return False if it was already gone."""
