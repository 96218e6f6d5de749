from __future__ import annotations

import json
import stat
import sys
import textwrap
from pathlib import Path

import pytest

from ytdlimport.core.binary_manager import BinaryManager
from ytdlimport.core.config_manager import ConfigManager
from ytdlimport.youtube.youtube_dl_service import YoutubeDLService

FAKE_TOOL_SOURCE = textwrap.dedent(
    """
    import json
    import os
    import subprocess
    import sys
    import time

    MERGER_SOURCE = (
        "import sys, time\\n"
        "while True:\\n"
        "    with open(sys.argv[1], 'a') as f:\\n"
        "        f.write('chunk')\\n"
        "    time.sleep(0.1)\\n"
    )

    args = sys.argv[1:]
    argv_file = os.environ.get("FAKE_TOOL_ARGV_FILE")
    if argv_file:
        with open(argv_file, "w", encoding="utf-8") as f:
            json.dump(args, f)

    pid_file = os.environ.get("FAKE_TOOL_PID_FILE")
    if pid_file:
        with open(pid_file, "a", encoding="utf-8") as f:
            f.write(f"{os.getpid()}\\n")

    if "--version" in args:
        print("2024.03.10")
        sys.exit(0)

    mode = os.environ.get("FAKE_TOOL_MODE", "info")

    if mode == "info":
        print("WARNING: some harmless warning")
        print(os.environ.get("FAKE_TOOL_PAYLOAD", "{}"))
        sys.exit(0)

    if mode == "flood":
        chunk = "x" * 65536
        while True:
            sys.stdout.write(chunk)
            sys.stdout.flush()

    if mode == "fail":
        print(os.environ.get("FAKE_TOOL_ERROR", "ERROR: something broke"), file=sys.stderr)
        sys.exit(1)

    out = args[args.index("-o") + 1]
    with open(out + ".part", "w", encoding="utf-8") as f:
        f.write("partial")

    if mode == "slow":
        time.sleep(30)

    if mode == "merge_slow":
        # Stands in for the merger the tool hands muxing to
        merger = subprocess.Popen([sys.executable, "-c", MERGER_SOURCE, out + ".temp.mp4"])
        if pid_file:
            with open(pid_file, "a", encoding="utf-8") as f:
                f.write(f"{merger.pid}\\n")
        time.sleep(30)

    if mode == "download_fail":
        print("ERROR: [youtube] abc: Video unavailable", file=sys.stderr)
        sys.exit(1)

    os.replace(out + ".part", out)
    """
)


def write_fake_tool(path: Path) -> Path:
    path.write_text(f"#!{sys.executable}\n{FAKE_TOOL_SOURCE}", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def config(tmp_path: Path) -> ConfigManager:
    cfg = ConfigManager(tmp_path / "config.json")
    cfg.config.update(
        {
            "bin_dir": str(tmp_path / "bin"),
            # Unique name so a real yt-dlp on PATH never answers the probe
            "exec_name": "ytdl-import-test-tool",
            "tmp_dir": str(tmp_path / "imports"),
            "ffmpeg_path": "",
            "proxy_mode": "off",
        }
    )
    return cfg


@pytest.fixture
def fake_tool(tmp_path: Path, config: ConfigManager) -> Path:
    tool = write_fake_tool(tmp_path / "fake-yt-dlp")
    config.config["yt_dlp_exe_path"] = str(tool)
    return tool


@pytest.fixture
def service(config: ConfigManager) -> YoutubeDLService:
    return YoutubeDLService(binaries=BinaryManager(config), config=config)


@pytest.fixture
def tool_payload(monkeypatch: pytest.MonkeyPatch):
    def _set(payload: dict) -> None:
        monkeypatch.setenv("FAKE_TOOL_MODE", "info")
        monkeypatch.setenv("FAKE_TOOL_PAYLOAD", json.dumps(payload))

    return _set


@pytest.fixture
def argv_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    p = tmp_path / "argv.json"
    monkeypatch.setenv("FAKE_TOOL_ARGV_FILE", str(p))
    return p


@pytest.fixture
def pid_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    p = tmp_path / "pids.txt"
    monkeypatch.setenv("FAKE_TOOL_PID_FILE", str(p))
    return p
