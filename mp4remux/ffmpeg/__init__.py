"""
Package for checking and installing the ffmpeg executable.
"""
from .checker import FFmpegChecker
from .installer import FFmpegInstaller
