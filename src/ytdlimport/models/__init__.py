"""
ytdlimport data models

Records shared between the binary resolver, the CLI driver and the normalizer.
"""

from .binary_details import BinaryDetails
from .video_info import VideoImportInfo, YoutubeDLRawInfo, normalize_object

__all__ = [
    "BinaryDetails",
    "VideoImportInfo",
    "YoutubeDLRawInfo",
    "normalize_object",
]
