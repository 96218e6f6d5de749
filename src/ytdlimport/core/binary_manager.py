from __future__ import annotations

import os
import re
import shutil
import tempfile
import threading
from pathlib import Path

import requests

from ..models.binary_details import BinaryDetails
from ..utils.logger import logger
from .config_manager import ConfigManager, config_manager
from .constants import VERSION_PATTERN
from .errors import BinaryNotFoundError
from .yt_dlp_cli import YoutubeDLTool

DETAILS_FILENAME = "details"
EXECUTABLE_MODE = 0o755


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


class BinaryManager:
    """
    Keeps a callable downloader executable around.

    `probe()` only looks; `ensure_present()` installs the latest release when the
    probe comes back empty. Updates are best effort: failures are logged and
    `update_binary()` returns None instead of raising.
    """

    def __init__(self, config: ConfigManager | None = None) -> None:
        self.config = config or config_manager
        self._lock = threading.Lock()

    @property
    def bin_dir(self) -> Path:
        return Path(str(self.config.get("bin_dir"))).expanduser()

    @property
    def exec_name(self) -> str:
        return str(self.config.get("exec_name") or "yt-dlp")

    @property
    def bin_path(self) -> Path:
        return self.bin_dir / self.exec_name

    @property
    def details_path(self) -> Path:
        return self.bin_dir / DETAILS_FILENAME

    def read_details(self) -> BinaryDetails | None:
        try:
            text = self.details_path.read_text(encoding="utf-8")
        except OSError:
            return None
        return BinaryDetails.from_json(text)

    def locate(self) -> Path | None:
        """Resolve the executable.

        Priority:
        1) config yt_dlp_exe_path
        2) path recorded by the last update
        3) managed bin dir
        4) exec_name on PATH
        """

        override = str(self.config.get("yt_dlp_exe_path") or "").strip()
        if override and _is_executable(Path(override)):
            return Path(override)

        details = self.read_details()
        if details is not None and _is_executable(details.exe_path):
            return details.exe_path

        if _is_executable(self.bin_path):
            return self.bin_path

        which = shutil.which(self.exec_name)
        return Path(which) if which else None

    def probe(self) -> bool:
        return self.locate() is not None

    def ensure_present(self) -> Path:
        exe = self.locate()
        if exe is not None:
            return exe

        with self._lock:
            # Another thread may have finished the install while we waited
            exe = self.locate()
            if exe is not None:
                return exe

            logger.warning(f"{self.exec_name} binary not found, downloading the latest release.")
            self.update_binary()

            exe = self.locate()
            if exe is None:
                raise BinaryNotFoundError(
                    f"{self.exec_name} is not available in {self.bin_dir} nor on PATH, and the update failed."
                )
            return exe

    def resolve(self) -> YoutubeDLTool:
        return YoutubeDLTool(exe=self.ensure_present())

    def current_version(self) -> str:
        exe = self.locate()
        if exe is None:
            return ""
        return YoutubeDLTool(exe=exe).version()

    def update_binary(self) -> BinaryDetails | None:
        logger.info(f"Updating {self.exec_name} binary.")

        url = str(self.config.get("update_url"))
        timeout = float(self.config.get("update_timeout") or 60)
        proxies = self.config.requests_proxies()

        try:
            self.bin_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot update {self.exec_name}: cannot create {self.bin_dir}: {e}")
            return None

        try:
            resp = requests.get(url, allow_redirects=False, proxies=proxies, timeout=timeout)
        except requests.RequestException as e:
            logger.error(f"Cannot update {self.exec_name}: {e}")
            return None

        if resp.status_code != 302:
            logger.error(
                f"{self.exec_name} update error: did not get redirect for the latest version link. "
                f"Status {resp.status_code}"
            )
            return None

        location = resp.headers.get("location") or ""
        match = re.search(VERSION_PATTERN, location)
        if match is None:
            logger.error(f"{self.exec_name} update error: cannot find a version in redirect target {location!r}.")
            return None
        new_version = match.group(1)

        tmp_path: str | None = None
        try:
            with requests.get(location, stream=True, proxies=proxies, timeout=timeout) as r:
                if r.status_code != 200:
                    logger.error(
                        f"Cannot update {self.exec_name}: new version response is not 200, it's {r.status_code}."
                    )
                    return None

                fd, tmp_path = tempfile.mkstemp(dir=self.bin_dir, prefix=f".{self.exec_name}-")
                with os.fdopen(fd, "wb") as f:
                    for chunk in r.iter_content(chunk_size=8192):
                        if chunk:
                            f.write(chunk)

            os.chmod(tmp_path, EXECUTABLE_MODE)
            shutil.move(tmp_path, self.bin_path)
            tmp_path = None
        except (requests.RequestException, OSError) as e:
            logger.error(f"{self.exec_name} update error: {e}")
            return None
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError as e:
                    logger.warning(f"Cannot remove partial download {tmp_path}: {e}")

        details = BinaryDetails(version=new_version, path=str(self.bin_path), exec=self.exec_name)
        try:
            self.details_path.write_text(details.to_json(), encoding="utf-8")
        except OSError as e:
            logger.error(f"{self.exec_name} update error: cannot write details. {e}")
            return None

        logger.info(f"{self.exec_name} updated to version {new_version}.")
        return details


# Global instance
binary_manager = BinaryManager()
