from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Sequence

from ..core.binary_manager import BinaryManager, binary_manager
from ..core.config_manager import ConfigManager, config_manager
from ..core.constants import (
    CONSTRAINTS_FIELDS,
    DEFAULT_INFO_ARGS,
    DOWNLOAD_FORMAT,
    SHORT_NAME_SUFFIX,
)
from ..core.errors import LiveStreamError, YoutubeDLError
from ..core.normalizer import build_originally_published_at, build_video_info
from ..core.yt_dlp_cli import YoutubeDLTool
from ..models.binary_details import BinaryDetails
from ..models.video_info import VideoImportInfo, YoutubeDLRawInfo
from ..utils.logger import get_logger
from ..utils.paths import generate_video_import_tmp_path


class YoutubeDLService:
    """Import-from-URL front end over the downloader tool.

    - get_info: metadata-only run, normalized into VideoImportInfo
    - download: media run into a per-URL temp file, bounded by a timeout
    - Async variants offload to a worker thread via asyncio.to_thread

    No retries; callers own retry policy.
    """

    def __init__(
        self,
        binaries: BinaryManager | None = None,
        config: ConfigManager | None = None,
    ) -> None:
        self.config = config or config_manager
        self.binaries = binaries or (binary_manager if config is None else BinaryManager(self.config))
        self._logger = get_logger("ytdlimport.YoutubeDLService")

    def safe_get_youtube_dl(self) -> YoutubeDLTool:
        return self.binaries.resolve()

    def update_binary(self) -> BinaryDetails | None:
        return self.binaries.update_binary()

    def get_info(self, url: str, args: Sequence[str] | None = None) -> VideoImportInfo:
        args = list(args) if args is not None else list(DEFAULT_INFO_ARGS)

        tool = self.safe_get_youtube_dl()
        data = tool.get_info(url, args)

        if data.get("is_live") is True:
            raise LiveStreamError("Cannot download a live streaming.")

        info = build_video_info(YoutubeDLRawInfo.from_dict(data))
        if info.name and len(info.name) < CONSTRAINTS_FIELDS["NAME"]["min"]:
            info.name += SHORT_NAME_SUFFIX

        return info

    def build_download_args(self, path: Path) -> list[str]:
        options = ["-f", DOWNLOAD_FORMAT, "-o", str(path)]

        ffmpeg_location = self.config.ffmpeg_location()
        if ffmpeg_location:
            options += ["--ffmpeg-location", ffmpeg_location]

        return options

    def download(self, url: str, timeout: float) -> Path:
        """Download `url` into its import temp path; returns that path.

        Partial files are removed on timeout and on tool failure.
        """

        tmp_dir = Path(str(self.config.get("tmp_dir"))).expanduser()
        path = generate_video_import_tmp_path(url, tmp_dir)

        self._logger.info(f"Importing youtubeDL video {url}")

        options = self.build_download_args(path)
        tool = self.safe_get_youtube_dl()

        try:
            tmp_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise YoutubeDLError(f"Cannot create import directory {tmp_dir}: {e}") from e

        try:
            tool.exec(url, options, timeout=timeout)
        except YoutubeDLError:
            self._remove_partial_files(path)
            raise

        return path

    def _remove_partial_files(self, path: Path) -> None:
        # Covers the target itself, `.part` files and per-format intermediates
        for candidate in path.parent.glob(f"{path.stem}*"):
            try:
                candidate.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                self._logger.error(f"Cannot delete path on YoutubeDL error. {candidate}: {e}")

    async def get_info_async(self, url: str, args: Sequence[str] | None = None) -> VideoImportInfo:
        return await asyncio.to_thread(self.get_info, url, args)

    async def download_async(self, url: str, timeout: float) -> Path:
        return await asyncio.to_thread(self.download, url, timeout)

    async def update_binary_async(self) -> BinaryDetails | None:
        return await asyncio.to_thread(self.update_binary)


_default_service: YoutubeDLService | None = None
_default_lock = threading.Lock()


def get_default_service() -> YoutubeDLService:
    global _default_service
    if _default_service is None:
        with _default_lock:
            if _default_service is None:
                _default_service = YoutubeDLService()
    return _default_service


# --- Module-level API for the import pipeline ---
def get_youtube_dl_info(url: str, opts: Sequence[str] | None = None) -> VideoImportInfo:
    return get_default_service().get_info(url, opts)


def download_youtube_dl_video(url: str, timeout: float) -> Path:
    return get_default_service().download(url, timeout)


def update_youtube_dl_binary() -> BinaryDetails | None:
    return get_default_service().update_binary()


def safe_get_youtube_dl() -> YoutubeDLTool:
    return get_default_service().safe_get_youtube_dl()


__all__ = [
    "YoutubeDLService",
    "build_originally_published_at",
    "download_youtube_dl_video",
    "get_default_service",
    "get_youtube_dl_info",
    "safe_get_youtube_dl",
    "update_youtube_dl_binary",
]
