"""Platform-specific utilities for subprocess handling and the system file manager."""

import logging
import os
import subprocess
import sys
from typing import Any

logger = logging.getLogger(__name__)


# --- Windows Subprocess Helper ---


def get_windows_subprocess_startupinfo() -> tuple[Any, int]:
    """Get Windows subprocess startup info to hide console windows.

    Returns:
        Tuple of (startupinfo, creationflags). On non-Windows, returns (None, 0).
    """
    if sys.platform != "win32":
        return None, 0
    startupinfo = subprocess.STARTUPINFO()
    startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
    startupinfo.wShowWindow = subprocess.SW_HIDE
    creationflags = subprocess.CREATE_NO_WINDOW
    return startupinfo, creationflags


# --- File Manager ---


def build_reveal_command(path: str, platform: str = sys.platform) -> list[str]:
    """Command that shows ``path`` in Finder, Explorer or the Linux file manager."""
    if platform == "darwin":
        return ["open", "-R", path]
    if platform == "win32":
        return ["explorer", f"/select,{path}"]
    # xdg-open cannot select a file, open its folder instead
    return ["xdg-open", os.path.dirname(path) or "."]


def reveal_file(path: str, platform: str = sys.platform) -> bool:
    """Reveal a converted file in the system file manager without waiting for it.

    Returns:
        True if the file manager was launched, False otherwise
    """
    command = build_reveal_command(path, platform)
    try:
        subprocess.Popen(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)  # noqa: S603
        return True
    except OSError:
        logger.exception(f"Failed to open file manager for {path}")
        return False
