from __future__ import annotations

import importlib
import json
import os
import stat
import threading
import time
from pathlib import Path

import pytest
import requests

from ytdlimport.core.binary_manager import BinaryManager
from ytdlimport.core.errors import BinaryNotFoundError
from ytdlimport.models import BinaryDetails

binary_manager_module = importlib.import_module("ytdlimport.core.binary_manager")

LATEST_URL = "https://github.com/yt-dlp/yt-dlp/releases/latest/download/yt-dlp"
RELEASE_URL = "https://github.com/yt-dlp/yt-dlp/releases/download/2024.03.10/yt-dlp"
BINARY = b"#!/bin/sh\necho 2024.03.10\n"


class FakeResponse:
    def __init__(self, status_code: int, headers: dict | None = None, body: bytes = b"") -> None:
        self.status_code = status_code
        self.headers = headers or {}
        self._body = body

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self._body), chunk_size):
            yield self._body[i : i + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeRequests:
    """Replays one response (or exception) per call and records the calls."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def manager(config) -> BinaryManager:
    config.config["update_url"] = LATEST_URL
    return BinaryManager(config)


def _install_fake_get(monkeypatch, *responses) -> FakeRequests:
    fake = FakeRequests(*responses)
    monkeypatch.setattr(binary_manager_module.requests, "get", fake)
    return fake


def _leftovers(manager: BinaryManager) -> list[str]:
    if not manager.bin_dir.exists():
        return []
    return sorted(p.name for p in manager.bin_dir.iterdir())


def test_update_binary_installs_executable_and_details(manager, monkeypatch):
    fake = _install_fake_get(
        monkeypatch,
        FakeResponse(302, {"location": RELEASE_URL}),
        FakeResponse(200, body=BINARY),
    )

    details = manager.update_binary()

    assert details == BinaryDetails(version="2024.03.10", path=str(manager.bin_path), exec=manager.exec_name)
    assert manager.bin_path.read_bytes() == BINARY
    assert stat.S_IMODE(manager.bin_path.stat().st_mode) == 0o755
    assert json.loads(manager.details_path.read_text(encoding="utf-8")) == {
        "version": "2024.03.10",
        "path": str(manager.bin_path),
        "exec": manager.exec_name,
    }
    assert manager.read_details() == details
    assert _leftovers(manager) == sorted(["details", manager.exec_name])

    first_url, first_kwargs = fake.calls[0]
    assert first_url == LATEST_URL
    assert first_kwargs["allow_redirects"] is False
    assert fake.calls[1][0] == RELEASE_URL


def test_update_binary_accepts_legacy_download_host(manager, monkeypatch):
    _install_fake_get(
        monkeypatch,
        FakeResponse(302, {"location": "https://yt-dl.org/downloads/2021.12.17/youtube-dl"}),
        FakeResponse(200, body=BINARY),
    )

    details = manager.update_binary()

    assert details is not None
    assert details.version == "2021.12.17"


def test_update_binary_requires_redirect(manager, monkeypatch):
    fake = _install_fake_get(monkeypatch, FakeResponse(200))

    assert manager.update_binary() is None
    assert len(fake.calls) == 1
    assert not manager.bin_path.exists()
    assert manager.read_details() is None


def test_update_binary_transport_error_is_swallowed(manager, monkeypatch):
    _install_fake_get(monkeypatch, requests.ConnectionError("offline"))

    assert manager.update_binary() is None
    assert not manager.bin_path.exists()


def test_update_binary_unversioned_redirect(manager, monkeypatch):
    fake = _install_fake_get(monkeypatch, FakeResponse(302, {"location": "https://example.com/yt-dlp"}))

    assert manager.update_binary() is None
    assert len(fake.calls) == 1


def test_update_binary_download_not_ok_leaves_nothing(manager, monkeypatch):
    _install_fake_get(
        monkeypatch,
        FakeResponse(302, {"location": RELEASE_URL}),
        FakeResponse(404),
    )

    assert manager.update_binary() is None
    assert _leftovers(manager) == []


def test_update_binary_stream_error_removes_partial_file(manager, monkeypatch):
    class BrokenStream(FakeResponse):
        def iter_content(self, chunk_size: int = 1):
            yield b"#!/bin/sh\n"
            raise requests.ConnectionError("reset")

    _install_fake_get(
        monkeypatch,
        FakeResponse(302, {"location": RELEASE_URL}),
        BrokenStream(200),
    )

    assert manager.update_binary() is None
    assert _leftovers(manager) == []


def test_update_keeps_previous_binary_when_download_fails(manager, monkeypatch):
    manager.bin_dir.mkdir(parents=True)
    manager.bin_path.write_bytes(b"old")
    manager.bin_path.chmod(0o755)
    _install_fake_get(
        monkeypatch,
        FakeResponse(302, {"location": RELEASE_URL}),
        FakeResponse(500),
    )

    assert manager.update_binary() is None
    assert manager.bin_path.read_bytes() == b"old"


def test_locate_priority(manager, tmp_path: Path):
    assert manager.locate() is None
    assert manager.probe() is False

    manager.bin_dir.mkdir(parents=True)
    manager.bin_path.write_bytes(BINARY)
    manager.bin_path.chmod(0o755)
    assert manager.locate() == manager.bin_path

    recorded = tmp_path / "recorded" / "yt-dlp"
    recorded.parent.mkdir()
    recorded.write_bytes(BINARY)
    recorded.chmod(0o755)
    manager.details_path.write_text(
        BinaryDetails(version="1", path=str(recorded), exec="yt-dlp").to_json(), encoding="utf-8"
    )
    assert manager.locate() == recorded

    override = tmp_path / "override"
    override.write_bytes(BINARY)
    override.chmod(0o755)
    manager.config.config["yt_dlp_exe_path"] = str(override)
    assert manager.locate() == override


def test_non_executable_file_is_absent(manager):
    manager.bin_dir.mkdir(parents=True)
    manager.bin_path.write_bytes(BINARY)
    manager.bin_path.chmod(0o644)

    assert manager.probe() is False


def test_locate_falls_back_to_path(manager, tmp_path: Path, monkeypatch):
    on_path = tmp_path / "path-bin"
    on_path.mkdir()
    exe = on_path / manager.exec_name
    exe.write_bytes(BINARY)
    exe.chmod(0o755)
    monkeypatch.setenv("PATH", str(on_path) + os.pathsep + os.environ.get("PATH", ""))

    assert manager.locate() == exe


def test_ensure_present_skips_update_when_present(manager, monkeypatch):
    manager.bin_dir.mkdir(parents=True)
    manager.bin_path.write_bytes(BINARY)
    manager.bin_path.chmod(0o755)
    fake = _install_fake_get(monkeypatch)

    assert manager.ensure_present() == manager.bin_path
    assert fake.calls == []


def test_resolve_installs_missing_binary(manager, monkeypatch):
    _install_fake_get(
        monkeypatch,
        FakeResponse(302, {"location": RELEASE_URL}),
        FakeResponse(200, body=BINARY),
    )

    tool = manager.resolve()

    assert tool.exe == manager.bin_path
    assert manager.probe() is True


def test_resolve_fails_when_update_fails(manager, monkeypatch):
    _install_fake_get(monkeypatch, FakeResponse(503))

    with pytest.raises(BinaryNotFoundError):
        manager.resolve()


def test_concurrent_ensure_present_updates_once(manager, monkeypatch):
    calls = []

    def slow_update():
        calls.append(threading.get_ident())
        time.sleep(0.2)
        manager.bin_dir.mkdir(parents=True, exist_ok=True)
        manager.bin_path.write_bytes(BINARY)
        manager.bin_path.chmod(0o755)
        return BinaryDetails(version="2024.03.10", path=str(manager.bin_path), exec=manager.exec_name)

    monkeypatch.setattr(manager, "update_binary", slow_update)

    results: list[Path] = []
    threads = [threading.Thread(target=lambda: results.append(manager.ensure_present())) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert results == [manager.bin_path] * 4


def test_current_version_without_binary(manager):
    assert manager.current_version() == ""
