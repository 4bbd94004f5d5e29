"""
Locates the ffmpeg executable and downloads static builds of it.

Downloaded binaries are stored in a per-user vendor directory (created on
demand). Lookup order: explicitly configured path, vendor directory, PATH.
"""

import logging
import os
import shutil
import stat
import sys
import tempfile
import urllib.request
import zipfile
from pathlib import Path
from typing import Callable
from urllib.error import URLError

from mp4remux.config import DOWNLOAD_TIMEOUT, FFMPEG_DOWNLOAD_URLS

logger = logging.getLogger(__name__)

# --- Path Configuration ---


def _get_ffmpeg_dir(platform: str = sys.platform) -> Path:
    """Per-user directory for a downloaded ffmpeg binary."""
    home = Path.home()
    if platform == "win32":
        return home / "AppData" / "Local" / "ffmpeg"
    return home / ".local" / "bin"


FFMPEG_DIR = _get_ffmpeg_dir()
FFMPEG_EXE_NAME = "ffmpeg.exe" if sys.platform == "win32" else "ffmpeg"
FFMPEG_EXE = FFMPEG_DIR / FFMPEG_EXE_NAME

# Set from Settings.ffmpeg_path at startup
_configured_ffmpeg_path: str | None = None


def set_configured_ffmpeg_path(path: str | None) -> None:
    """Use an explicit ffmpeg binary before the vendor directory and PATH."""
    global _configured_ffmpeg_path  # noqa: PLW0603
    _configured_ffmpeg_path = path or None


def get_ffmpeg_path() -> Path | None:
    """Get path to ffmpeg: configured path, then vendor directory, then system PATH.

    Returns:
        Path to ffmpeg executable or None if not found anywhere.
    """
    if _configured_ffmpeg_path:
        configured = Path(_configured_ffmpeg_path)
        if configured.is_file():
            return configured
        logger.warning(f"Configured ffmpeg path does not exist: {configured}")
    if FFMPEG_EXE.is_file():
        return FFMPEG_EXE
    system_ffmpeg = shutil.which("ffmpeg")
    if system_ffmpeg:
        return Path(system_ffmpeg)
    return None


# --- Download ---


def _download_file(url: str, dest_path: Path, progress_callback: Callable[[int, int], None] | None = None) -> None:
    """Download a file from URL to destination path.

    Args:
        url: URL to download from
        dest_path: Destination file path
        progress_callback: Optional callback(bytes_downloaded, total_bytes)
    """
    request = urllib.request.Request(  # noqa: S310 - fixed https URLs from config
        url, headers={"User-Agent": "mp4remux"}
    )

    with urllib.request.urlopen(request, timeout=DOWNLOAD_TIMEOUT) as response:  # noqa: S310
        total_size = int(response.headers.get("Content-Length", 0))
        downloaded = 0

        with open(dest_path, "wb") as f:
            while True:
                chunk = response.read(8192)
                if not chunk:
                    break
                f.write(chunk)
                downloaded += len(chunk)
                if progress_callback:
                    progress_callback(downloaded, total_size)


def extract_ffmpeg_binary(archive_path: Path, dest_dir: Path, exe_name: str = FFMPEG_EXE_NAME) -> Path | None:
    """Copy the ffmpeg executable out of a zip archive into ``dest_dir``.

    The binary may sit at the archive root (evermeet.cx) or under a
    ``<build>/bin/`` folder (gyan.dev).

    Returns:
        Path of the extracted executable, or None if the archive has none.
    """
    with zipfile.ZipFile(archive_path, "r") as zf:
        member = next(
            (info for info in zf.infolist() if not info.is_dir() and Path(info.filename).name == exe_name),
            None,
        )
        if member is None:
            return None

        dest_dir.mkdir(parents=True, exist_ok=True)
        dest_path = dest_dir / exe_name
        with zf.open(member) as src, open(dest_path, "wb") as dst:
            shutil.copyfileobj(src, dst)

    if os.name != "nt":
        dest_path.chmod(dest_path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return dest_path


def download_ffmpeg(
    progress_callback: Callable[[int, int], None] | None = None, platform: str = sys.platform
) -> tuple[bool, str]:
    """Download a static ffmpeg build into the vendor directory.

    Args:
        progress_callback: Optional callback(bytes_downloaded, total_bytes)
        platform: sys.platform value selecting the build

    Returns:
        Tuple of (success, message)
    """
    download_url = FFMPEG_DOWNLOAD_URLS.get(platform)
    if not download_url:
        return False, f"No static ffmpeg build available for {platform}"

    dest_dir = _get_ffmpeg_dir(platform)
    exe_name = "ffmpeg.exe" if platform == "win32" else "ffmpeg"

    try:
        with tempfile.NamedTemporaryFile(delete=False, suffix=".zip") as tmp:
            tmp_path = Path(tmp.name)

        try:
            logger.info(f"Downloading ffmpeg from {download_url}")
            _download_file(download_url, tmp_path, progress_callback)

            logger.info("Extracting ffmpeg...")
            installed = extract_ffmpeg_binary(tmp_path, dest_dir, exe_name)
            if installed is None:
                return False, f"{exe_name} not found in downloaded archive"

            logger.info(f"ffmpeg installed to {installed}")
            return True, f"Installed ffmpeg to {installed}"

        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    except URLError as e:
        logger.exception("Network error downloading ffmpeg")
        return False, f"Network error: {e.reason}"
    except zipfile.BadZipFile:
        logger.exception("Invalid ffmpeg archive")
        return False, "Downloaded file is not a valid zip archive"
    except OSError as e:
        logger.exception("File error installing ffmpeg")
        return False, f"File error: {e}"
