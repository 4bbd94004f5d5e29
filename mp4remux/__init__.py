"""
MP4 remux: batch conversion of video containers to MP4 with ffmpeg stream copy.
"""

__version__ = "1.0.0"
