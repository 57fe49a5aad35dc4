"""
File management utilities for AESC Client
"""

import re
from pathlib import Path
from typing import Union
import logging

from utils.error_handler import FileSystemError, ErrorDetector

logger = logging.getLogger(__name__)

ASSET_NAME_PREFIX = "formula"
STATEMENT_FILENAME = "statement.txt"
IMAGES_DIRNAME = "images"


class FileManager:
    """
    Utility class for managing output files and directories
    """

    def ensure_directory(self, path: Union[str, Path]) -> Path:
        """
        Ensure directory exists

        Args:
            path (Union[str, Path]): Directory path

        Returns:
            Path: Path object of the directory

        Raises:
            FileSystemError: If directory creation fails
        """
        path_obj = Path(path)

        if not str(path_obj).strip():
            raise FileSystemError("Empty path provided")

        if path_obj.exists() and not path_obj.is_dir():
            raise FileSystemError(f"Path exists but is not a directory: {path_obj}", str(path_obj))

        if not path_obj.exists():
            parent = path_obj.parent
            while not parent.exists() and parent != parent.parent:
                parent = parent.parent
            if not ErrorDetector.check_disk_space(str(parent), required_mb=10):
                logger.warning(f"Low disk space when creating directory: {path_obj}")

        try:
            path_obj.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise FileSystemError(f"Permission denied creating directory: {path_obj}", str(path_obj), e)
        except OSError as e:
            raise FileSystemError(f"OS error creating directory: {path_obj}: {e}", str(path_obj), e)

        logger.debug(f"Directory ensured: {path_obj}")
        return path_obj

    def save_text(self, text: str, filepath: Union[str, Path],
                  encoding: str = 'utf-8') -> Path:
        """
        Save text to file, creating parent directories

        Args:
            text (str): Text content
            filepath (Union[str, Path]): File path
            encoding (str): Text encoding

        Returns:
            Path: Path of the written file

        Raises:
            FileSystemError: If the file cannot be written
        """
        filepath = Path(filepath)
        self.ensure_directory(filepath.parent)

        try:
            with open(filepath, 'w', encoding=encoding) as f:
                f.write(text)
        except OSError as e:
            raise FileSystemError(f"Failed to save text to {filepath}: {e}", str(filepath), e)

        logger.info(f"Text saved to: {filepath}")
        return filepath

    def safe_filename(self, filename: str, max_length: int = 100) -> str:
        """
        Create a safe filename by removing/replacing invalid characters

        Args:
            filename (str): Original filename
            max_length (int): Maximum filename length

        Returns:
            str: Safe filename
        """
        safe_name = re.sub(r'[<>:"/\\|?*&=]', '_', filename)
        safe_name = re.sub(r'[\x00-\x1f\x7f]', '', safe_name)
        safe_name = re.sub(r'_+', '_', safe_name)
        safe_name = safe_name.strip('. _')

        if len(safe_name) > max_length:
            safe_name = safe_name[:max_length].rstrip('. _')

        return safe_name or "statement"

    @staticmethod
    def asset_filename(sequence_number: int, extension: str) -> str:
        """
        Sequential asset file name, e.g. formula_007.svg
        """
        if extension and not extension.startswith('.'):
            extension = '.' + extension
        return f"{ASSET_NAME_PREFIX}_{sequence_number:03d}{extension}"
