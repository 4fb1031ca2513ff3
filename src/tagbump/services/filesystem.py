"""Filesystem helpers for tagbump."""

import logging
import os
import shutil
import sys
import tempfile
from contextlib import contextmanager
from typing import Iterator

from rich.console import Console


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    @contextmanager
    def workspace(self, prefix: str = "tagbump-") -> Iterator[str]:
        """Yield a private temporary directory that is removed on every exit path."""
        path = tempfile.mkdtemp(prefix=prefix)
        self.logger.debug("Created workspace: %s", path)
        try:
            yield path
        finally:
            self.cleanup_dir(path)

    def ensure_private_dir(self, path: str, mode: int):
        os.makedirs(path, exist_ok=True)
        self.set_permissions(path, mode)

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def write_private_file(self, path: str, content: str, mode: int):
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
            file_obj.write(content)
        self.set_permissions(path, mode)

    def append_text(self, path: str, content: str):
        with open(path, "a", encoding="utf-8") as file_obj:
            file_obj.write(content)

    def atomic_write_text(self, path: str, content: str):
        """Replace ``path`` with ``content`` without ever leaving it truncated."""
        directory = os.path.dirname(os.path.abspath(path))
        fd, temp_path = tempfile.mkstemp(prefix=".tagbump-", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as file_obj:
                file_obj.write(content)
            if os.path.exists(path):
                shutil.copymode(path, temp_path)
            os.replace(temp_path, path)
        finally:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass

    def cleanup_dir(self, path: str):
        if os.path.exists(path):
            try:
                shutil.rmtree(path)
                self.logger.debug("Removed directory: %s", path)
            except OSError as exc:
                message = f"Warning: Could not remove {path}: {exc}"
                self.console.print(f"[yellow]{message}[/yellow]")
                self.logger.warning(message)
