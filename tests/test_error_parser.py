from __future__ import annotations

import pytest

from ytdlimport.core.errors import (
    AuthenticationRequiredError,
    UnsupportedURLError,
    VideoUnavailableError,
    YoutubeDLError,
    YoutubeDLProcessError,
)
from ytdlimport.utils.error_parser import classify_tool_error, extract_error_line


@pytest.mark.parametrize(
    "output, expected",
    [
        ("ERROR: [generic] Unsupported URL: https://example.com/page", UnsupportedURLError),
        ("ERROR: [youtube] aaaaaa: Sign in to confirm you're not a bot", AuthenticationRequiredError),
        ("ERROR: [youtube] aaaaaa: Video unavailable in your country", VideoUnavailableError),
        ("ERROR: [youtube] aaaaaa: Private video", VideoUnavailableError),
        ("ERROR: ffprobe/ffmpeg not found", YoutubeDLProcessError),
    ],
)
def test_classify_tool_error(output, expected):
    err = classify_tool_error(output, returncode=1)

    assert type(err) is expected
    assert isinstance(err, YoutubeDLError)
    assert err.returncode == 1
    assert err.output == output


def test_message_is_last_error_line():
    output = "WARNING: retrying\nERROR: first\nERROR: [youtube] x: Private video\n"
    assert str(classify_tool_error(output, 1)) == "[youtube] x: Private video"


def test_message_fallbacks():
    assert str(classify_tool_error("Traceback: boom", 2)) == "Traceback: boom"
    assert str(classify_tool_error("", 2)) == "youtube-dl exited with code 2"


def test_extract_error_line_truncates():
    line = extract_error_line("ERROR: " + "x" * 400)
    assert line is not None
    assert len(line) == 300
    assert line.endswith("...")
    assert extract_error_line("all good") is None
