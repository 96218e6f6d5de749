from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from ..utils.paths import config_path, default_bin_dir, default_tmp_dir


class ConfigManager:
    """JSON-persisted settings merged over DEFAULT_CONFIG."""

    DEFAULT_CONFIG: dict[str, Any] = {
        # Where the managed downloader binary and its details record live
        "bin_dir": str(default_bin_dir()),
        "exec_name": "yt-dlp",
        # Must answer with a 302 to a versioned release path
        "update_url": "https://github.com/yt-dlp/yt-dlp/releases/latest/download/yt-dlp",
        "update_timeout": 60,
        # Optional explicit executable; empty means auto (bin_dir, details record, PATH)
        "yt_dlp_exe_path": "",
        # Optional encoder location; empty falls back to $FFMPEG_PATH
        "ffmpeg_path": "",
        "tmp_dir": str(default_tmp_dir()),
        # Proxy mode for binary updates:
        # - off: ignore ambient proxies
        # - system: follow environment proxy settings
        # - http / socks5: use proxy_url
        "proxy_mode": "system",
        "proxy_url": "",
        "log_level": "INFO",
    }

    def __init__(self, config_file: Path | None = None) -> None:
        self.config_file = Path(config_file) if config_file is not None else config_path()
        self.config: dict[str, Any] = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        if not self.config_file.exists():
            return self.DEFAULT_CONFIG.copy()

        try:
            data = json.loads(self.config_file.read_text(encoding="utf-8"))
        except Exception:
            return self.DEFAULT_CONFIG.copy()
        if not isinstance(data, dict):
            return self.DEFAULT_CONFIG.copy()

        merged = {**self.DEFAULT_CONFIG, **data}

        pm = str(merged.get("proxy_mode") or "off").lower().strip()
        if pm not in {"off", "system", "http", "socks5"}:
            pm = "off"
        merged["proxy_mode"] = pm

        # A moved or deleted tool must not pin us to a dead path
        for key in ("ffmpeg_path", "yt_dlp_exe_path"):
            raw = str(merged.get(key) or "").strip()
            if raw and not Path(raw).exists():
                merged[key] = ""

        return merged

    def save(self) -> None:
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(
                json.dumps(self.config, indent=4, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError:
            # Read-only deployments keep running on in-memory settings
            pass

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.config[key] = value
        self.save()

    def ffmpeg_location(self) -> str | None:
        """Configured encoder path, else $FFMPEG_PATH, else None."""

        configured = str(self.get("ffmpeg_path") or "").strip()
        if configured:
            return configured
        return os.environ.get("FFMPEG_PATH", "").strip() or None

    def requests_proxies(self) -> dict[str, str] | None:
        """Proxy mapping for `requests`; None keeps the environment's own settings."""

        mode = str(self.get("proxy_mode") or "off")
        proxy_url = str(self.get("proxy_url") or "").strip()
        if mode == "off":
            return {"http": "", "https": ""}
        if mode in ("http", "socks5") and proxy_url:
            if "://" not in proxy_url:
                proxy_url = f"{'socks5' if mode == 'socks5' else 'http'}://{proxy_url}"
            return {"http": proxy_url, "https": proxy_url}
        return None


config_manager = ConfigManager()
