"""Tests for discovery, settings, log anonymization, vendor paths and platform helpers."""

import logging
import os
import zipfile

from mp4remux import config, privacy, vendor_manager
from mp4remux.config import Settings, load_settings, save_settings
from mp4remux.logging_setup import setup_logging
from mp4remux.conversion_engine.scanner import collect_video_files, find_video_files, is_supported_video
from mp4remux.platform_utils import build_reveal_command
from mp4remux.privacy import PathPrivacyFilter, anonymize_filename

# --- Discovery ---


def test_supported_extensions_case_insensitive():
    assert is_supported_video("clip.MKV")
    assert is_supported_video("clip.3gp")
    assert not is_supported_video("clip.mp3")
    assert not is_supported_video("README")


def test_collect_keeps_order_and_filters(tmp_path):
    for name in ("b.avi", "a.mkv", "notes.txt"):
        (tmp_path / name).write_bytes(b"x")

    accepted, skipped = collect_video_files(
        [str(tmp_path / "b.avi"), str(tmp_path / "notes.txt"), str(tmp_path / "a.mkv"), str(tmp_path / "b.avi")]
    )

    assert accepted == [str(tmp_path / "b.avi"), str(tmp_path / "a.mkv")]
    assert skipped == [str(tmp_path / "notes.txt")]


def test_collect_missing_file_is_skipped(tmp_path):
    accepted, skipped = collect_video_files([str(tmp_path / "gone.mkv")])
    assert accepted == []
    assert skipped == [str(tmp_path / "gone.mkv")]


def test_folder_expansion(tmp_path):
    (tmp_path / "b.mov").write_bytes(b"x")
    (tmp_path / "a.webm").write_bytes(b"x")
    (tmp_path / "cover.jpg").write_bytes(b"x")
    nested = tmp_path / "season1"
    nested.mkdir()
    (nested / "e01.mkv").write_bytes(b"x")

    top_level = find_video_files(str(tmp_path))
    assert [os.path.basename(path) for path in top_level] == ["a.webm", "b.mov"]

    accepted, _ = collect_video_files([str(tmp_path)], recursive=True)
    assert sorted(os.path.basename(path) for path in accepted) == ["a.webm", "b.mov", "e01.mkv"]


# --- Settings ---


def test_missing_config_gives_defaults(tmp_path):
    assert load_settings(tmp_path / "none.json") == Settings()


def test_settings_saved_and_loaded(tmp_path):
    config_file = tmp_path / "nested" / "config.json"
    settings = Settings(output_folder="/out", anonymize_logs=False, convert_timeout=600.0)

    assert save_settings(settings, config_file)

    assert load_settings(config_file) == settings
    assert not (tmp_path / "nested" / "config.json.tmp").exists()


def test_corrupt_config_gives_defaults(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text("{not json", encoding="utf-8")
    assert load_settings(config_file) == Settings()


def test_unknown_keys_ignored():
    settings = Settings.from_dict({"recursive": True, "theme": "dark"})
    assert settings.recursive is True


def test_supported_extension_list_matches_formats():
    assert config.SUPPORTED_EXTENSIONS == ("mkv", "avi", "mov", "wmv", "flv", "webm", "m4v", "mpeg", "mpg", "3gp")


# --- Log anonymization ---


def test_anonymize_filename_hides_name_keeps_extension():
    anonymized = anonymize_filename("/home/user/Holiday Video.mkv")
    assert "Holiday" not in anonymized
    assert anonymized.endswith(".mkv")
    assert anonymized.startswith("folder_")
    assert anonymize_filename("/home/user/Holiday Video.mkv") == anonymized


def test_privacy_filter_rewrites_log_message():
    record = logging.LogRecord("test", logging.INFO, __file__, 1,
                               "Remuxing /home/user/secret.mkv -> /home/user/secret.mp4", None, None)

    PathPrivacyFilter().filter(record)

    assert "secret" not in record.msg
    assert record.msg.startswith("Remuxing folder_")
    assert ".mp4" in record.msg


def test_disabling_anonymization_logs_real_names(tmp_path, monkeypatch):
    monkeypatch.setattr(privacy, "_anonymization_enabled", True)
    root_logger = logging.getLogger()
    saved_handlers = root_logger.handlers[:]

    try:
        log_file = setup_logging(str(tmp_path / "logs"), anonymize=False)
        assert anonymize_filename("/home/user/holiday.mkv") == "/home/user/holiday.mkv"
        logging.getLogger("mp4remux.test").info(f"Remuxing {anonymize_filename('/home/user/holiday.mkv')}")
    finally:
        for handler in root_logger.handlers[:]:
            handler.close()
            root_logger.removeHandler(handler)
        for handler in saved_handlers:
            root_logger.addHandler(handler)

    with open(log_file, encoding="utf-8") as f:
        assert "Remuxing /home/user/holiday.mkv" in f.read()


# --- Vendor paths ---


def test_extract_binary_from_nested_archive(tmp_path):
    archive = tmp_path / "build.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("ffmpeg-7.1-essentials_build/bin/ffmpeg", b"binary")
        zf.writestr("ffmpeg-7.1-essentials_build/README.txt", b"readme")

    dest = tmp_path / "bin"
    extracted = vendor_manager.extract_ffmpeg_binary(archive, dest, "ffmpeg")

    assert extracted == dest / "ffmpeg"
    assert extracted.read_bytes() == b"binary"
    if os.name != "nt":
        assert os.access(extracted, os.X_OK)


def test_extract_returns_none_without_binary(tmp_path):
    archive = tmp_path / "build.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("README.txt", b"readme")

    assert vendor_manager.extract_ffmpeg_binary(archive, tmp_path / "bin", "ffmpeg") is None


def test_no_static_build_for_linux():
    success, message = vendor_manager.download_ffmpeg(platform="linux")
    assert success is False
    assert "linux" in message


def test_configured_ffmpeg_path_wins(tmp_path, monkeypatch):
    binary = tmp_path / "ffmpeg"
    binary.write_bytes(b"binary")
    monkeypatch.setattr(vendor_manager.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    vendor_manager.set_configured_ffmpeg_path(str(binary))
    try:
        assert vendor_manager.get_ffmpeg_path() == binary
    finally:
        vendor_manager.set_configured_ffmpeg_path(None)


def test_missing_everywhere(tmp_path, monkeypatch):
    monkeypatch.setattr(vendor_manager, "FFMPEG_EXE", tmp_path / "ffmpeg")
    monkeypatch.setattr(vendor_manager.shutil, "which", lambda name: None)
    assert vendor_manager.get_ffmpeg_path() is None


# --- Platform helpers ---


def test_reveal_commands():
    assert build_reveal_command("/v/a.mp4", "darwin") == ["open", "-R", "/v/a.mp4"]
    assert build_reveal_command("C:\\v\\a.mp4", "win32") == ["explorer", "/select,C:\\v\\a.mp4"]
    assert build_reveal_command("/v/a.mp4", "linux") == ["xdg-open", "/v"]
