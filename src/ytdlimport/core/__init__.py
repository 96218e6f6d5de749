"""
ytdlimport core layer

- config_manager  -> JSON settings
- binary_manager  -> downloader binary probe / install / update
- yt_dlp_cli      -> subprocess driver for the downloader
- normalizer      -> tool metadata -> VideoImportInfo
"""

from .binary_manager import BinaryManager, binary_manager
from .config_manager import ConfigManager, config_manager

__all__ = [
    "BinaryManager",
    "binary_manager",
    "ConfigManager",
    "config_manager",
]
