"""
Checks whether the ffmpeg executable is present and can be invoked.
"""

import errno
import logging
import subprocess

from mp4remux.config import PROBE_TIMEOUT
from mp4remux.exceptions import ProbeError
from mp4remux.models import ToolState
from mp4remux.platform_utils import get_windows_subprocess_startupinfo
from mp4remux.vendor_manager import get_ffmpeg_path

logger = logging.getLogger(__name__)

# OSErrors that mean "this ffmpeg cannot be run", as opposed to "nothing can be run"
_NOT_INVOCABLE_ERRNOS = {errno.ENOENT, errno.EACCES, errno.EPERM, errno.ENOEXEC, errno.ENOTDIR}


class FFmpegChecker:
    """Availability probe for ffmpeg.

    ``state`` caches the result of the last probe. It starts as UNKNOWN and is
    refreshed by every call to probe(); callers must re-probe after an install
    instead of trusting a cached value.
    """

    def __init__(self, timeout: float = PROBE_TIMEOUT):
        self.timeout = timeout
        self.state = ToolState.UNKNOWN
        self.version: str | None = None
        self.path: str | None = None

    def probe(self) -> bool:
        """Run ``ffmpeg -version``.

        Returns:
            True if ffmpeg ran and exited with 0, False if it is missing or not invocable.

        Raises:
            ProbeError: if the probe could not spawn a process at all.
        """
        self.version = None
        ffmpeg_path = get_ffmpeg_path()
        if ffmpeg_path is None:
            logger.warning("ffmpeg not found (not configured, not in vendor dir, not in PATH)")
            return self._record(ToolState.MISSING, None)

        command = [str(ffmpeg_path), "-version"]
        try:
            startupinfo, creationflags = get_windows_subprocess_startupinfo()
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
                startupinfo=startupinfo,
                creationflags=creationflags,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"ffmpeg -version timed out after {self.timeout}s")
            return self._record(ToolState.MISSING, str(ffmpeg_path))
        except OSError as e:
            if e.errno in _NOT_INVOCABLE_ERRNOS:
                logger.warning(f"ffmpeg at {ffmpeg_path} cannot be invoked: {e}")
                return self._record(ToolState.MISSING, str(ffmpeg_path))
            logger.exception("Failed to spawn ffmpeg availability probe")
            raise ProbeError(f"Cannot run availability probe: {e}", command=command, error_type="probe_failed") from e

        if result.returncode != 0:
            logger.warning(f"ffmpeg -version exited with code {result.returncode}")
            return self._record(ToolState.MISSING, str(ffmpeg_path))

        lines = result.stdout.splitlines()
        self.version = lines[0] if lines else None
        logger.info(f"ffmpeg available at {ffmpeg_path}: {self.version}")
        return self._record(ToolState.AVAILABLE, str(ffmpeg_path))

    def _record(self, state: ToolState, path: str | None) -> bool:
        self.state = state
        self.path = path
        return state == ToolState.AVAILABLE
