from __future__ import annotations


class YoutubeDLError(Exception):
    """Base class for every failure surfaced by ytdlimport."""


class YoutubeDLProcessError(YoutubeDLError):
    """The downloader tool exited non-zero or printed nothing usable."""

    def __init__(self, message: str, *, returncode: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class UnsupportedURLError(YoutubeDLProcessError):
    pass


class VideoUnavailableError(YoutubeDLProcessError):
    pass


class AuthenticationRequiredError(YoutubeDLProcessError):
    pass


class OutputTooLargeError(YoutubeDLProcessError):
    pass


class LiveStreamError(YoutubeDLError):
    """Live content cannot be snapshot-downloaded."""


class DownloadTimeoutError(YoutubeDLError):
    pass


class BinaryNotFoundError(YoutubeDLError):
    """No executable even after an update attempt."""
