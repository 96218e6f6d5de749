"""
ytdl-import command line

Usage:
    ytdl-import info URL
    ytdl-import download URL --timeout 300
    ytdl-import update
    ytdl-import version
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Sequence

from . import __version__
from .core.constants import DEFAULT_INFO_ARGS
from .core.errors import YoutubeDLError
from .utils.logger import logger, set_console_level
from .youtube.youtube_dl_service import YoutubeDLService, get_default_service


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ytdl-import", description="Import video metadata and media through yt-dlp")
    parser.add_argument("--verbose", "-v", action="store_true", help="log debug output to the console")
    sub = parser.add_subparsers(dest="command", required=True)

    info_parser = sub.add_parser("info", help="print normalized metadata as JSON")
    info_parser.add_argument("url")
    info_parser.add_argument(
        "--tool-args",
        nargs=argparse.REMAINDER,
        default=None,
        help=f"arguments passed to the tool instead of {' '.join(DEFAULT_INFO_ARGS)}",
    )

    download_parser = sub.add_parser("download", help="download media into the import temp dir")
    download_parser.add_argument("url")
    download_parser.add_argument("--timeout", type=float, default=3600.0, help="seconds (default: 3600)")

    sub.add_parser("update", help="install the latest downloader binary")
    sub.add_parser("version", help="print package and tool versions")

    return parser


def main(argv: Sequence[str] | None = None, service: YoutubeDLService | None = None) -> int:
    args = build_parser().parse_args(argv)
    service = service or get_default_service()

    set_console_level("DEBUG" if args.verbose else str(service.config.get("log_level") or "INFO"))

    try:
        if args.command == "info":
            info = service.get_info(args.url, args.tool_args or None)
            print(json.dumps(info.to_dict(), indent=2, ensure_ascii=False))
        elif args.command == "download":
            print(service.download(args.url, args.timeout))
        elif args.command == "update":
            details = service.update_binary()
            if details is None:
                print("Update failed, see logs.", file=sys.stderr)
                return 1
            print(f"{details.exec} {details.version} -> {details.path}")
        elif args.command == "version":
            print(f"ytdl-import {__version__}")
            print(f"tool {service.binaries.current_version() or 'not installed'}")
    except YoutubeDLError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1

    return 0
