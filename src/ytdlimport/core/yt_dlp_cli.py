from __future__ import annotations

import json
import os
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Sequence

import psutil

from ..utils.error_parser import classify_tool_error
from ..utils.logger import logger
from .constants import MAX_OUTPUT_BYTES
from .errors import DownloadTimeoutError, OutputTooLargeError, YoutubeDLProcessError

READ_CHUNK_SIZE = 64 * 1024


def _terminate_process_best_effort(proc: subprocess.Popen) -> None:
    try:
        proc.terminate()
    except OSError:
        return
    try:
        proc.wait(timeout=1.0)
        return
    except subprocess.TimeoutExpired:
        pass
    try:
        proc.kill()
        proc.wait(timeout=1.0)
    except (OSError, subprocess.TimeoutExpired):
        pass


def _terminate_process_tree(proc: subprocess.Popen) -> None:
    """Stop `proc` and every process it spawned (merger, fragment fetchers).

    Descendants are collected before the parent goes away; once it dies they
    are reparented and can no longer be found through it.
    """

    try:
        children = psutil.Process(proc.pid).children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        children = []

    for child in children:
        try:
            child.terminate()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"No permission to stop child process {child.pid}")

    _terminate_process_best_effort(proc)

    _, alive = psutil.wait_procs(children, timeout=1.0)
    for child in alive:
        try:
            child.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    if alive:
        psutil.wait_procs(alive, timeout=1.0)


def _close_pipes(proc: subprocess.Popen) -> None:
    # Drain what is left so the pipe objects get closed; a stray holder of the
    # write end must not hang us
    try:
        proc.communicate(timeout=1.0)
    except (subprocess.TimeoutExpired, ValueError, OSError):
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()


def _drain_tail(stream: IO[bytes], sink: bytearray, limit: int) -> None:
    # Keeps only the last `limit` bytes; error lines come last
    for chunk in iter(lambda: stream.read1(READ_CHUNK_SIZE), b""):
        sink += chunk
        if len(sink) > limit:
            del sink[: len(sink) - limit]


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def parse_json_output(out: str) -> dict[str, Any]:
    """Pick the last parsable JSON object line.

    The tool may print warnings, and flat playlists print one object per entry.
    """

    for line in reversed(out.splitlines()):
        s = line.strip()
        if not s or not s.startswith("{"):
            continue
        try:
            data = json.loads(s)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data

    raise YoutubeDLProcessError(f"youtube-dl printed no parsable JSON:\n{out.strip()[:500]}", output=out)


@dataclass(slots=True)
class YoutubeDLTool:
    """Handle on a resolved downloader executable."""

    exe: Path

    def build_command(self, url: str, args: Sequence[str]) -> list[str]:
        return [str(self.exe), *args, url]

    def get_info(self, url: str, args: Sequence[str]) -> dict[str, Any]:
        """Run in metadata-only mode and return the parsed JSON object.

        stdout is read incrementally; past `MAX_OUTPUT_BYTES` the process tree
        is stopped and OutputTooLargeError is raised.
        """

        cmd = self.build_command(url, args)
        logger.debug(f"youtube-dl info cmd={' '.join(cmd)}")

        limit = MAX_OUTPUT_BYTES

        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=_tool_env(),
            )
        except OSError as e:
            raise YoutubeDLProcessError(f"Cannot run youtube-dl: {e}") from e

        stderr_buf = bytearray()
        drainer = threading.Thread(target=_drain_tail, args=(proc.stderr, stderr_buf, limit), daemon=True)
        drainer.start()

        stdout_buf = bytearray()
        too_large = False
        try:
            for chunk in iter(lambda: proc.stdout.read1(READ_CHUNK_SIZE), b""):
                stdout_buf += chunk
                if len(stdout_buf) > limit:
                    too_large = True
                    _terminate_process_tree(proc)
                    break
        finally:
            proc.stdout.close()
            drainer.join(timeout=5.0)
            if not drainer.is_alive():
                proc.stderr.close()
            proc.wait()

        if too_large:
            raise OutputTooLargeError(
                f"youtube-dl output exceeds {limit} bytes",
                returncode=proc.returncode,
            )

        stdout = _decode(bytes(stdout_buf))
        if proc.returncode != 0:
            out = stdout + "\n" + _decode(bytes(stderr_buf))
            raise classify_tool_error(out.strip(), proc.returncode)

        return parse_json_output(stdout)

    def exec(self, url: str, args: Sequence[str], timeout: float | None = None) -> str:
        """Run the tool to completion, bounded by `timeout` seconds.

        Raises DownloadTimeoutError after the process has been stopped.
        """

        cmd = self.build_command(url, args)
        logger.debug(f"youtube-dl exec cmd={' '.join(cmd)}")

        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=_tool_env(),
            )
        except OSError as e:
            raise YoutubeDLProcessError(f"Cannot run youtube-dl: {e}") from e

        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            _terminate_process_tree(proc)
            _close_pipes(proc)
            raise DownloadTimeoutError("YoutubeDL download timeout.") from None

        if proc.returncode != 0:
            out = (stdout or "") + "\n" + (stderr or "")
            raise classify_tool_error(out.strip(), proc.returncode)

        return stdout or ""

    def version(self) -> str:
        try:
            out = subprocess.check_output(
                [str(self.exe), "--version"],
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=30,
            )
        except (OSError, subprocess.SubprocessError):
            return ""
        return (out or "").strip()


def _tool_env() -> dict[str, str]:
    env = dict(os.environ)
    env["PYTHONIOENCODING"] = "utf-8"
    return env
