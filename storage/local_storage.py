"""Local filesystem storage implementation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import IO

from werkzeug.utils import secure_filename

from config import Config

from .abstract_storage import AbstractStorage


class LocalStorage(AbstractStorage):
    """Persist documents under the configured upload directory."""

    def __init__(self, upload_dir: str | None = None):
        self.base_directory = Path(upload_dir or Config.UPLOAD_DIR)
        os.makedirs(self.base_directory, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        candidate = (self.base_directory / path).resolve()
        if self.base_directory.resolve() not in candidate.parents:
            raise ValueError("Path escapes the upload directory.")
        return candidate

    def save(self, file_obj: IO[bytes], filename: str, folder: str | None = None) -> str:
        """Save a file, optionally in a sub-folder, and return its relative path."""

        safe_name = secure_filename(filename)
        if not safe_name:
            raise ValueError("Filename must contain at least one valid character.")

        directory = self.base_directory
        if folder:
            safe_folder = secure_filename(folder)
            if not safe_folder:
                raise ValueError("Folder must contain at least one valid character.")
            directory = directory / safe_folder
            os.makedirs(directory, exist_ok=True)

        destination = directory / safe_name
        if hasattr(file_obj, "save"):
            file_obj.save(destination)  # type: ignore[arg-type]
        else:
            with open(destination, "wb") as output:
                output.write(file_obj.read())

        return destination.relative_to(self.base_directory).as_posix()

    def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except ValueError:
            return False

    def absolute_path(self, path: str) -> Path:
        return self._resolve(path)

    def delete(self, path: str) -> bool:
        try:
            target = self._resolve(path)
        except ValueError:
            return False
        if not target.is_file():
            return False
        target.unlink()
        return True
