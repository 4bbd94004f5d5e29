# mp4remux/conversion_engine/naming.py
"""
Collision-safe output naming: ``clip.mkv`` -> ``clip.mp4``, ``clip_1.mp4``, ``clip_2.mp4``, ...
"""

import os
from typing import Callable

from mp4remux.config import MAX_NAMING_ATTEMPTS, OUTPUT_EXTENSION
from mp4remux.exceptions import NamingError


class OutputNamer:
    """Derives a non-existing output path for an input file.

    The existence check is not atomic with the later write; another process
    creating the same file in between is not guarded against here.
    """

    def __init__(self, output_folder: str | None = None, exists: Callable[[str], bool] = os.path.exists,
                 max_attempts: int = MAX_NAMING_ATTEMPTS, extension: str = OUTPUT_EXTENSION):
        self.output_folder = output_folder
        self.exists = exists
        self.max_attempts = max_attempts
        self.extension = extension

    def name(self, input_path: str) -> str:
        """Return the first free output path for ``input_path``.

        Raises:
            NamingError: if no free name was found within ``max_attempts`` suffixes.
        """
        folder = self.output_folder or os.path.dirname(os.path.abspath(input_path))
        stem = os.path.splitext(os.path.basename(input_path))[0]

        candidate = os.path.join(folder, f"{stem}{self.extension}")
        if not self.exists(candidate):
            return candidate

        for counter in range(1, self.max_attempts + 1):
            candidate = os.path.join(folder, f"{stem}_{counter}{self.extension}")
            if not self.exists(candidate):
                return candidate

        raise NamingError(
            f"No free output name for {os.path.basename(input_path)} after {self.max_attempts} attempts",
            error_type="naming_exhausted",
        )
