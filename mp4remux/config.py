# mp4remux/config.py
"""
Central configuration constants and persisted settings for the MP4 remux tool.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

# --- Formats ---
SUPPORTED_EXTENSIONS = ("mkv", "avi", "mov", "wmv", "flv", "webm", "m4v", "mpeg", "mpg", "3gp")
OUTPUT_EXTENSION = ".mp4"

# --- Output Naming ---
MAX_NAMING_ATTEMPTS = 10000  # Upper bound on _1, _2, ... suffixes tried per file

# --- Timeouts (seconds) ---
PROBE_TIMEOUT = 10  # ffmpeg -version
INSTALL_STEP_TIMEOUT = 1800  # One package manager run
DOWNLOAD_TIMEOUT = 30  # Socket timeout for the static build download
DEFAULT_CONVERT_TIMEOUT: float | None = None  # Remux waits for ffmpeg to finish

# --- Static FFmpeg Builds (used when no package manager succeeds) ---
FFMPEG_DOWNLOAD_URLS = {
    "darwin": "https://evermeet.cx/ffmpeg/getrelease/ffmpeg/zip",
    "win32": "https://www.gyan.dev/ffmpeg/builds/ffmpeg-release-essentials.zip",
}

# --- Application Directory ---
APP_DIR = Path.home() / ".mp4remux"
CONFIG_FILE = APP_DIR / "mp4remux_config.json"


@dataclass
class Settings:
    """User settings persisted between runs. Command line flags override these."""

    output_folder: str | None = None  # None -> next to each input file
    log_folder: str | None = None  # None -> APP_DIR/logs
    anonymize_logs: bool = True
    ffmpeg_path: str | None = None  # Explicit ffmpeg binary, checked before vendor dir and PATH
    convert_timeout: float | None = DEFAULT_CONVERT_TIMEOUT
    recursive: bool = False  # Descend into sub-folders of dropped folders

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Create from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_dict(self) -> dict:
        return asdict(self)


def load_settings(config_file: Path | str = CONFIG_FILE) -> Settings:
    """Load settings from the JSON config file, falling back to defaults."""
    try:
        if os.path.exists(config_file):
            with open(config_file, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                logger.warning(f"Config file {config_file} does not hold an object, using defaults.")
                return Settings()
            logger.info(f"Loaded settings from {config_file}")
            return Settings.from_dict(data)
        logger.info(f"Config file {config_file} not found, using defaults.")
        return Settings()
    except (OSError, ValueError, TypeError):
        logger.exception(f"Error loading settings from {config_file}. Using defaults.")
        return Settings()


def save_settings(settings: Settings, config_file: Path | str = CONFIG_FILE) -> bool:
    """Save settings atomically (temp file + replace).

    Returns:
        True if the file was written, False otherwise
    """
    config_path = Path(config_file)
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        temp_config_file = config_path.with_name(config_path.name + ".tmp")
        with open(temp_config_file, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=4)
        os.replace(temp_config_file, config_path)
        logger.info(f"Saved settings to {config_path}")
        return True
    except OSError:
        logger.exception(f"Error saving settings to {config_path}")
        return False
