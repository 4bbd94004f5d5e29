# mp4remux/privacy.py
"""Filename anonymization for log output, using BLAKE2b hashes."""

import hashlib
import logging
import os
import re
import sys

from mp4remux.config import OUTPUT_EXTENSION, SUPPORTED_EXTENSIONS

# Set via set_anonymization_enabled; when off, names are logged as-is
_anonymization_enabled = True

# Cache for hash lookups (avoids recomputing)
_hash_cache: dict[str, str] = {}

_VIDEO_EXTENSIONS = "|".join(sorted({*SUPPORTED_EXTENSIONS, OUTPUT_EXTENSION.lstrip(".")}))


def set_anonymization_enabled(enabled: bool) -> None:
    """Turn filename anonymization on or off for every log call site."""
    global _anonymization_enabled  # noqa: PLW0603
    _anonymization_enabled = enabled


def compute_hash(value: str, length: int = 12) -> str:
    """Compute a BLAKE2b hash of a string, truncated for readability."""
    hash_bytes = hashlib.blake2b(value.encode("utf-8"), digest_size=16).digest()
    return hash_bytes.hex()[:length]


def _normalize(value: str) -> str:
    # Case-insensitive filesystem on Windows
    return value.lower() if sys.platform == "win32" else value


def anonymize_folder(folder_path: str) -> str:
    """Return 'folder_<hash>' for a directory path."""
    if not folder_path:
        return "[unknown]"
    normalized = _normalize(os.path.normpath(os.path.abspath(folder_path))).replace("\\", "/")
    key = f"folder:{normalized}"
    if key not in _hash_cache:
        _hash_cache[key] = f"folder_{compute_hash(normalized)}"
    return _hash_cache[key]


def anonymize_file(filename: str) -> str:
    """Return 'file_<hash><ext>' for a file name, keeping the extension."""
    if not filename:
        return "file_unknown"
    basename = _normalize(os.path.basename(filename))
    key = f"file:{basename}"
    if key not in _hash_cache:
        stem, ext = os.path.splitext(basename)
        _hash_cache[key] = f"file_{compute_hash(stem)}{ext}"
    return _hash_cache[key]


def anonymize_filename(filename: str) -> str:
    """Anonymize a bare file name or a full path (folder and name both hashed)."""
    if not filename or not _anonymization_enabled:
        return filename
    folder = os.path.dirname(filename)
    if folder:
        return f"{anonymize_folder(folder)}/{anonymize_file(filename)}"
    return anonymize_file(filename)


# Paths and video file names as they show up in log messages
PATH_PATTERNS = [
    # Windows drive paths ending in a video file
    re.compile(rf"[A-Za-z]:[\\/][^\"'<>|*?\n]*?\.(?:{_VIDEO_EXTENSIONS})\b", re.IGNORECASE),
    # Unix absolute paths ending in a video file
    re.compile(rf"/[^\"'<>|*?\n:]*?\.(?:{_VIDEO_EXTENSIONS})\b", re.IGNORECASE),
    # Bare video file names
    re.compile(rf"[^\s\"'<>|*?\n/\\]+\.(?:{_VIDEO_EXTENSIONS})\b", re.IGNORECASE),
]

_ANONYMIZED_NAME = re.compile(r"file_[0-9a-f]{12}\.\w+")


def _anonymize_match(match: re.Match) -> str:
    text = match.group(0)
    # Already anonymized by an earlier pattern
    if _ANONYMIZED_NAME.fullmatch(os.path.basename(text)):
        return text
    return anonymize_filename(text)


class PathPrivacyFilter(logging.Filter):
    """Log filter that replaces video file paths with anonymized hashes."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            message = record.msg
            for pattern in PATH_PATTERNS:
                message = pattern.sub(_anonymize_match, message)
            record.msg = message
        return True
