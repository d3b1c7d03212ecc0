"""File management utilities for Voxpress."""

import time
import logging
from pathlib import Path

from .constants import (
    FILE_WAIT_TIMEOUT,
    FILE_STABILIZATION_CHECK_INTERVAL,
    SUPPORTED_EXTENSIONS,
)
from .core.errors import FileTooLargeError
from .core.models import BinaryFile

logger = logging.getLogger("Voxpress.Files")


class FileManager:
    """Handles file operations around a conversion."""

    @staticmethod
    def wait_for_file(filepath: Path, timeout: int = FILE_WAIT_TIMEOUT) -> bool:
        """
        Wait for file to exist and size to stabilize.

        Args:
            filepath: Path to the file to wait for
            timeout: Maximum time to wait in seconds

        Returns:
            True if file is ready, False otherwise
        """
        start = time.time()
        last_size = -1

        while time.time() - start < timeout:
            if filepath.exists():
                current_size = filepath.stat().st_size
                if current_size == last_size and current_size > 0:
                    return True
                last_size = current_size
            time.sleep(FILE_STABILIZATION_CHECK_INTERVAL)
        return False

    @staticmethod
    def is_supported(filepath: Path) -> bool:
        return filepath.suffix.lower() in SUPPORTED_EXTENSIONS

    @staticmethod
    def check_size(filepath: Path, max_bytes: int) -> int:
        """Raise FileTooLargeError when the file is over the limit. Returns the size."""
        size = filepath.stat().st_size
        if size > max_bytes:
            raise FileTooLargeError(
                f"File too large: {filepath.name} is {size / 1024 / 1024:.2f} MB, "
                f"max size for conversion is {max_bytes / 1024 / 1024:.0f} MB."
            )
        return size

    @staticmethod
    def load(filepath: Path, max_bytes: int) -> BinaryFile:
        FileManager.check_size(filepath, max_bytes)
        logger.debug(f"Reading {filepath}")
        return BinaryFile.from_path(filepath)
