"""
Removes partial output left behind by a failed remux.
"""
import logging
import os

from mp4remux.privacy import anonymize_filename

logger = logging.getLogger(__name__)


def remove_partial_output(output_path: str) -> bool:
    """Delete an output file written by a failed ffmpeg run.

    Only called for paths the namer reported as free before the run, so the
    file (if any) was created by that run.

    Returns:
        True if a file was removed.
    """
    if not output_path or not os.path.isfile(output_path):
        return False
    try:
        os.remove(output_path)
        logger.info(f"Removed partial output {anonymize_filename(output_path)}")
        return True
    except OSError as e:
        logger.warning(f"Could not remove partial output {anonymize_filename(output_path)}: {e}")
        return False
