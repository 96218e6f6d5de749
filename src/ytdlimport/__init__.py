"""
ytdlimport

Import-from-URL helpers built on the yt-dlp / youtube-dl command-line tool.
"""

from __future__ import annotations

__version__ = "1.0.0"

from .core.errors import (
    AuthenticationRequiredError,
    BinaryNotFoundError,
    DownloadTimeoutError,
    LiveStreamError,
    OutputTooLargeError,
    UnsupportedURLError,
    VideoUnavailableError,
    YoutubeDLError,
    YoutubeDLProcessError,
)
from .core.normalizer import build_originally_published_at
from .models import BinaryDetails, VideoImportInfo
from .youtube.youtube_dl_service import (
    YoutubeDLService,
    download_youtube_dl_video,
    get_youtube_dl_info,
    safe_get_youtube_dl,
    update_youtube_dl_binary,
)

__all__ = [
    "__version__",
    "AuthenticationRequiredError",
    "BinaryDetails",
    "BinaryNotFoundError",
    "DownloadTimeoutError",
    "LiveStreamError",
    "OutputTooLargeError",
    "UnsupportedURLError",
    "VideoImportInfo",
    "VideoUnavailableError",
    "YoutubeDLError",
    "YoutubeDLProcessError",
    "YoutubeDLService",
    "build_originally_published_at",
    "download_youtube_dl_video",
    "get_youtube_dl_info",
    "safe_get_youtube_dl",
    "update_youtube_dl_binary",
]
