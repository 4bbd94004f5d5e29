"""
Installs ffmpeg on demand, trying the platform's package manager first and a
static build download second.
"""

import logging
import shutil
import subprocess
import sys
from typing import Callable

from mp4remux.config import INSTALL_STEP_TIMEOUT
from mp4remux.exceptions import InstallError
from mp4remux.platform_utils import get_windows_subprocess_startupinfo
from mp4remux.vendor_manager import download_ffmpeg

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]

# (label, executable that must be on PATH, command)
PACKAGE_MANAGER_COMMANDS: dict[str, list[tuple[str, str, list[str]]]] = {
    "darwin": [
        ("Homebrew", "brew", ["brew", "install", "ffmpeg"]),
    ],
    "win32": [
        ("winget", "winget", ["winget", "install", "Gyan.FFmpeg", "-e", "--silent"]),
    ],
    "linux": [
        ("apt-get", "apt-get", ["sudo", "-n", "apt-get", "install", "-y", "ffmpeg"]),
        ("dnf", "dnf", ["sudo", "-n", "dnf", "install", "-y", "ffmpeg"]),
    ],
}

MANUAL_INSTRUCTIONS = {
    "darwin": (
        "Install ffmpeg with Homebrew:\n"
        "    brew install ffmpeg\n"
        "or download a static build from https://evermeet.cx/ffmpeg/ and place it on your PATH."
    ),
    "win32": (
        "Install ffmpeg with winget:\n"
        "    winget install Gyan.FFmpeg\n"
        "or download a build from https://www.gyan.dev/ffmpeg/builds/ and add its bin folder to PATH."
    ),
    "linux": (
        "Install ffmpeg with your package manager, for example:\n"
        "    sudo apt-get install ffmpeg      (Debian/Ubuntu)\n"
        "    sudo dnf install ffmpeg          (Fedora)"
    ),
}


def _platform_key(platform: str) -> str:
    return "linux" if platform.startswith("linux") else platform


class FFmpegInstaller:
    """Black-box ffmpeg installation.

    install() blocks until every strategy has been tried or one succeeded; the
    only output while it runs is status text passed to ``status_callback``.
    Success means a strategy reported success, not that ffmpeg can now be
    invoked. Callers re-probe afterwards.
    """

    def __init__(self, platform: str = sys.platform, step_timeout: float = INSTALL_STEP_TIMEOUT):
        self.platform = _platform_key(platform)
        self.step_timeout = step_timeout

    def manual_instructions(self) -> str:
        return MANUAL_INSTRUCTIONS.get(
            self.platform, "Install ffmpeg from https://ffmpeg.org/download.html and make sure it is on your PATH."
        )

    def install(self, status_callback: StatusCallback | None = None) -> None:
        """Install ffmpeg.

        Raises:
            InstallError: if no strategy succeeded.
        """
        report = status_callback or (lambda _text: None)
        failures = []

        for label, strategy in self._strategies():
            report(f"Installing ffmpeg using {label}...")
            try:
                strategy(report)
            except InstallError as e:
                logger.warning(f"ffmpeg install via {label} failed: {e.message}")
                failures.append(f"{label}: {e.message}")
                continue
            logger.info(f"ffmpeg installed via {label}")
            report(f"ffmpeg installed using {label}")
            return

        reasons = "; ".join(failures) if failures else "no installation method available on this system"
        raise InstallError(
            f"Could not install ffmpeg automatically ({reasons}). Please install it manually.",
            output="\n".join(failures),
            error_type="install_failed",
        )

    def _strategies(self) -> list[tuple[str, Callable[[StatusCallback], None]]]:
        strategies = []
        for label, executable, command in PACKAGE_MANAGER_COMMANDS.get(self.platform, []):
            if shutil.which(executable):
                strategies.append((label, lambda report, cmd=command: self._run_package_manager(cmd)))
            else:
                logger.debug(f"{label} not available, skipping")
        if self.platform in ("darwin", "win32"):
            strategies.append(("static build download", self._download_static_build))
        return strategies

    def _run_package_manager(self, command: list[str]) -> None:
        logger.info(f"Running: {' '.join(command)}")
        try:
            startupinfo, creationflags = get_windows_subprocess_startupinfo()
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.step_timeout,
                check=False,
                stdin=subprocess.DEVNULL,
                startupinfo=startupinfo,
                creationflags=creationflags,
            )
        except subprocess.TimeoutExpired as e:
            raise InstallError(f"timed out after {self.step_timeout}s", command=command) from e
        except OSError as e:
            raise InstallError(f"failed to run {command[0]}: {e}", command=command) from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise InstallError(
                detail or f"exited with code {result.returncode}", command=command, output=result.stderr
            )

    def _download_static_build(self, report: StatusCallback) -> None:
        last_pct = [-1]

        def progress_callback(downloaded: int, total: int) -> None:
            if total > 0:
                pct = int(downloaded * 100 / total)
                # One status line per 10%
                if pct // 10 != last_pct[0] // 10:
                    last_pct[0] = pct
                    report(f"Downloading ffmpeg... {pct}%")

        success, message = download_ffmpeg(progress_callback, platform=self.platform)
        if not success:
            raise InstallError(message, error_type="download_failed")
