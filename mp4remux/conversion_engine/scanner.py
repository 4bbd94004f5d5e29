# mp4remux/conversion_engine/scanner.py
"""
Turns dropped/selected paths into the list of video files to submit.
"""

import logging
import os
from pathlib import Path

from mp4remux.config import SUPPORTED_EXTENSIONS
from mp4remux.privacy import anonymize_filename

logger = logging.getLogger(__name__)


def is_supported_video(path: str, extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS) -> bool:
    """Check the file extension against the supported container list (case-insensitive)."""
    ext = os.path.splitext(path)[1].lstrip(".").lower()
    return ext in extensions


def find_video_files(folder_path: str, recursive: bool = False,
                     extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS) -> list[str]:
    """Find all supported video files in a folder.

    Args:
        folder_path: Path to folder to scan
        recursive: Also scan sub-folders
        extensions: File extensions to match (e.g., ("mkv", "avi"))

    Returns:
        Sorted list of absolute file paths
    """
    folder = Path(folder_path)
    candidates = folder.rglob("*") if recursive else folder.iterdir()
    files = {
        str(path.resolve())
        for path in candidates
        if path.is_file() and is_supported_video(path.name, extensions)
    }
    return sorted(files)


def collect_video_files(paths: list[str], recursive: bool = False,
                        extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS) -> tuple[list[str], list[str]]:
    """Expand folders and filter unsupported files, keeping the given order.

    Returns:
        Tuple of (accepted, skipped). Accepted paths are absolute and unique.
    """
    accepted: list[str] = []
    skipped: list[str] = []
    seen: set[str] = set()

    def accept(file_path: str) -> None:
        if file_path not in seen:
            seen.add(file_path)
            accepted.append(file_path)

    for raw_path in paths:
        path = os.path.abspath(raw_path)
        if os.path.isdir(path):
            try:
                found = find_video_files(path, recursive, extensions)
            except OSError:
                logger.exception(f"Error scanning folder {path}")
                skipped.append(path)
                continue
            logger.info(f"Found {len(found)} video file(s) in folder {path}")
            for file_path in found:
                accept(file_path)
        elif os.path.isfile(path) and is_supported_video(path, extensions):
            accept(path)
        else:
            logger.info(f"Skipping unsupported or missing path: {anonymize_filename(path)}")
            skipped.append(path)

    return accepted, skipped
