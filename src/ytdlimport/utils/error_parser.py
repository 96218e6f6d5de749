import re
from dataclasses import dataclass

from ..core.errors import (
    AuthenticationRequiredError,
    UnsupportedURLError,
    VideoUnavailableError,
    YoutubeDLProcessError,
)


@dataclass
class ErrorDefinition:
    keywords: list[str]
    error_class: type[YoutubeDLProcessError]


# Known tool error signatures, checked in order
YTDLP_ERRORS = [
    ErrorDefinition(
        keywords=["Unsupported URL", "is not a valid URL"],
        error_class=UnsupportedURLError,
    ),
    ErrorDefinition(
        keywords=[
            "Sign in to confirm you're not a bot",
            "This video is only available to registered users",
            "Sign in to confirm your age",
            "Login required",
        ],
        error_class=AuthenticationRequiredError,
    ),
    ErrorDefinition(
        keywords=[
            "Private video",
            "Video unavailable",
            "This video has been removed",
            "not available in your country",
            "Geo-restricted",
            "Members only content",
            "HTTP Error 404",
        ],
        error_class=VideoUnavailableError,
    ),
]


def extract_error_line(output: str) -> str | None:
    """Return the text after the last `ERROR:` marker, if any."""

    matches = re.findall(r"ERROR:\s*(.*?)(?:\n|$)", output or "", flags=re.IGNORECASE)
    if not matches:
        return None
    extracted = matches[-1].strip()
    if len(extracted) > 300:
        extracted = extracted[:297] + "..."
    return extracted or None


def classify_tool_error(output: str, returncode: int | None = None) -> YoutubeDLProcessError:
    """
    Turn raw tool output into a typed error so callers can match on classes.

    The message is the tool's own `ERROR:` line when there is one, otherwise the
    trimmed output.
    """
    clean_msg = " ".join((output or "").splitlines()).lower()

    message = extract_error_line(output)
    if message is None:
        fallback = (output or "").strip()
        if len(fallback) > 300:
            fallback = fallback[:297] + "..."
        message = fallback or f"youtube-dl exited with code {returncode}"

    for err_def in YTDLP_ERRORS:
        for keyword in err_def.keywords:
            if keyword.lower() in clean_msg:
                return err_def.error_class(message, returncode=returncode, output=output)

    return YoutubeDLProcessError(message, returncode=returncode, output=output)
