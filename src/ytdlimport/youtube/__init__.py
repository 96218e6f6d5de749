"""
ytdlimport service layer

Metadata fetch and media download over the downloader tool.
"""

from .youtube_dl_service import YoutubeDLService, get_default_service

__all__ = [
    "YoutubeDLService",
    "get_default_service",
]
