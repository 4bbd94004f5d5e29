# mp4remux/conversion_engine/converter.py
"""
Remuxes a single file into MP4 with ffmpeg stream copy (no re-encode).
"""

import logging
import os
import subprocess
import time

from mp4remux.config import DEFAULT_CONVERT_TIMEOUT
from mp4remux.exceptions import ConversionError, OutputExistsError, ToolMissingError
from mp4remux.platform_utils import get_windows_subprocess_startupinfo
from mp4remux.privacy import anonymize_filename
from mp4remux.vendor_manager import get_ffmpeg_path

from .cleanup import remove_partial_output
from .naming import OutputNamer

logger = logging.getLogger(__name__)


def build_remux_command(ffmpeg_path: str, input_path: str, output_path: str) -> list[str]:
    """ffmpeg command copying every stream of ``input_path`` into ``output_path``.

    ``-n`` makes ffmpeg refuse to overwrite an existing output.
    """
    return [
        ffmpeg_path,
        "-hide_banner",
        "-nostdin",
        "-loglevel", "error",
        "-n",
        "-i", input_path,
        "-codec", "copy",
        output_path,
    ]


class Converter:
    """Runs ffmpeg for one input at a time and reports the realized output path."""

    def __init__(self, namer: OutputNamer | None = None, timeout: float | None = DEFAULT_CONVERT_TIMEOUT):
        self.namer = namer or OutputNamer()
        self.timeout = timeout

    def convert(self, input_path: str) -> str:
        """Remux ``input_path`` to MP4.

        Returns:
            The output path that was written.

        Raises:
            ConversionError: carrying ffmpeg's diagnostic text; NamingError if no
                output name was free.
        """
        anonymized_input = anonymize_filename(input_path)

        ffmpeg_path = get_ffmpeg_path()
        if ffmpeg_path is None:
            raise ToolMissingError("ffmpeg not found", error_type="tool_missing")

        output_path = self.namer.name(input_path)
        command = build_remux_command(str(ffmpeg_path), input_path, output_path)
        logger.info(f"Remuxing {anonymized_input} -> {anonymize_filename(output_path)}")
        logger.debug(f"Command: {' '.join(command)}")

        if os.path.exists(output_path):
            raise OutputExistsError(
                f"Output file already exists: {os.path.basename(output_path)}",
                command=command,
                error_type="output_exists",
            )

        start_time = time.time()
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
                stdin=subprocess.DEVNULL,
                startupinfo=startupinfo,
                creationflags=creationflags,
            )
        except subprocess.TimeoutExpired as e:
            remove_partial_output(output_path)
            raise ConversionError(
                f"ffmpeg timed out after {self.timeout}s", command=command, error_type="timeout"
            ) from e
        except FileNotFoundError as e:
            # ffmpeg removed between lookup and launch
            raise ToolMissingError(f"ffmpeg not found: {e}", command=command, error_type="tool_missing") from e
        except OSError as e:
            raise ConversionError(f"Failed to run ffmpeg: {e}", command=command, error_type="launch_failed") from e

        elapsed = time.time() - start_time

        if result.returncode != 0:
            detail = (result.stderr or "").strip() or f"ffmpeg exited with code {result.returncode}"
            # With -n a refusal means someone else owns the file now
            if "already exists" in detail:
                logger.error(f"Output for {anonymized_input} was created by another writer, leaving it in place")
                raise OutputExistsError(detail, command=command, output=result.stderr, error_type="output_exists")
            remove_partial_output(output_path)
            logger.error(f"Remux of {anonymized_input} failed (exit {result.returncode}): {detail}")
            raise ConversionError(detail, command=command, output=result.stderr, error_type="ffmpeg_failed")

        if not os.path.isfile(output_path):
            raise ConversionError(
                "ffmpeg reported success but wrote no output file", command=command, error_type="missing_output"
            )

        logger.info(f"Remuxed {anonymized_input} in {elapsed:.1f}s")
        return output_path
