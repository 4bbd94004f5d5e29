#mp4remux/main.py
"""
Main application logic module for the MP4 remux tool.
Defines the main() function called by the launchers.
"""
import argparse
import logging
import sys

from mp4remux.config import load_settings, save_settings
from mp4remux.console import EXIT_FAILURES, ConsoleSession
from mp4remux.conversion_engine import BatchOrchestrator, Converter, OutputNamer, collect_video_files
from mp4remux.exceptions import ProbeError
from mp4remux.ffmpeg import FFmpegChecker, FFmpegInstaller
from mp4remux.logging_setup import setup_logging
from mp4remux.platform_utils import reveal_file
from mp4remux.vendor_manager import set_configured_ffmpeg_path


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mp4remux",
        description="Convert MKV, AVI, MOV, WMV, FLV, WebM, M4V, MPEG, MPG and 3GP files to MP4 "
                    "without re-encoding (ffmpeg stream copy).",
    )
    parser.add_argument("paths", nargs="+", help="Video files or folders to convert")
    parser.add_argument("-r", "--recursive", action="store_true", default=None,
                        help="Also convert videos in sub-folders of the given folders")
    parser.add_argument("-o", "--output-dir", help="Write MP4 files here instead of next to each input")
    parser.add_argument("--ffmpeg", dest="ffmpeg_path", help="Path to the ffmpeg executable")
    parser.add_argument("--timeout", type=float, help="Give up on a single file after this many seconds")
    parser.add_argument("-y", "--yes", action="store_true", help="Install ffmpeg without asking if it is missing")
    parser.add_argument("--reveal", action="store_true", help="Show the last converted file in the file manager")
    parser.add_argument("--log-dir", help="Directory for log files")
    parser.add_argument("--no-anonymize", action="store_true", help="Log real file names")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging on the console")
    parser.add_argument("--save-settings", action="store_true",
                        help="Remember the output folder, ffmpeg path, timeout and recursion options given here")
    return parser.parse_args(argv)


def _remember_options(settings, args: argparse.Namespace) -> None:
    if args.output_dir:
        settings.output_folder = args.output_dir
    if args.ffmpeg_path:
        settings.ffmpeg_path = args.ffmpeg_path
    if args.timeout is not None:
        settings.convert_timeout = args.timeout
    if args.recursive is not None:
        settings.recursive = args.recursive
    if args.log_dir:
        settings.log_folder = args.log_dir
    if not save_settings(settings):
        print("Could not save settings, see the log for details.", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Initializes and runs the MP4 remux tool. Returns the process exit code."""
    args = parse_args(argv)
    settings = load_settings()

    anonymize = settings.anonymize_logs and not args.no_anonymize
    log_file = setup_logging(args.log_dir or settings.log_folder, anonymize=anonymize, verbose=args.verbose)
    logging.info("=== Starting MP4 remux ===")
    if log_file:
        logging.info(f"Log file: {log_file}")
    logging.info(f"System: {sys.platform}, Python: {sys.version}")

    if args.save_settings:
        _remember_options(settings, args)

    set_configured_ffmpeg_path(args.ffmpeg_path or settings.ffmpeg_path)

    recursive = settings.recursive if args.recursive is None else args.recursive
    files, skipped = collect_video_files(args.paths, recursive=recursive)
    for path in skipped:
        print(f"Skipping (not a supported video): {path}", file=sys.stderr)
    if not files:
        print("No supported video files to convert.", file=sys.stderr)
        return EXIT_FAILURES

    timeout = args.timeout if args.timeout is not None else settings.convert_timeout
    namer = OutputNamer(output_folder=args.output_dir or settings.output_folder)
    orchestrator = BatchOrchestrator(
        checker=FFmpegChecker(),
        installer=FFmpegInstaller(),
        converter=Converter(namer=namer, timeout=timeout),
    )
    session = ConsoleSession(orchestrator, assume_yes=args.yes)

    try:
        exit_code = session.run(files)
    except ProbeError as e:
        print(f"Cannot check for ffmpeg: {e.message}", file=sys.stderr)
        return EXIT_FAILURES
    except KeyboardInterrupt:
        logging.warning("Interrupted by user")
        print("\nInterrupted.", file=sys.stderr)
        return 130

    if args.reveal:
        last_output = session.last_output_path()
        if last_output:
            reveal_file(last_output)

    logging.info(f"=== MP4 remux finished (exit code {exit_code}) ===")
    return exit_code
