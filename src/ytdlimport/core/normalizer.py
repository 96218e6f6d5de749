"""
Mapping from downloader-tool metadata to the platform's import schema.

Everything here is pure: no I/O, no logging, no config lookups.
"""

from __future__ import annotations

import re
import unicodedata
from datetime import datetime
from typing import Any

from ..models.video_info import VideoImportInfo, YoutubeDLRawInfo
from .constants import (
    CC_BY_LICENCE_CODE,
    CC_BY_MARKER,
    CONSTRAINTS_FIELDS,
    NEWS_CATEGORY_CODE,
    NEWS_CATEGORY_LABEL,
    NSFW_AGE_LIMIT,
    TRUNCATE_OMISSION,
    TRUNCATE_SEPARATOR,
    VIDEO_CATEGORIES,
)

_UPLOAD_DATE_RE = re.compile(r"(\d{4})(\d{2})(\d{2})", re.ASCII)


def truncate(
    text: str,
    length: int,
    separator: str | re.Pattern[str] | None = None,
    omission: str = TRUNCATE_OMISSION,
) -> str:
    """Shorten `text` to at most `length` characters, omission included.

    The cut falls back to the last `separator` match inside the kept part,
    unless the dropped remainder already starts with a separator.

    >>> truncate("hi-diddly-ho there, neighborino", 24, separator=r",? +", omission="...")
    'hi-diddly-ho there...'
    """

    if len(text) <= length:
        return text

    end = length - len(omission)
    if end < 1:
        return omission

    result = text[:end]
    if separator is None:
        return result + omission

    pattern = re.compile(separator) if isinstance(separator, str) else separator
    remainder_match = pattern.search(text, end)
    if remainder_match is None or remainder_match.start() != end:
        last_start = None
        for match in pattern.finditer(result):
            last_start = match.start()
        if last_start is not None:
            result = result[:last_start]

    return result + omission


def title_truncation(title: str | None) -> str | None:
    if title is None:
        return None
    return truncate(title, CONSTRAINTS_FIELDS["NAME"]["max"], separator=TRUNCATE_SEPARATOR)


def description_truncation(description: str | None) -> str | None:
    if not description or len(description) < CONSTRAINTS_FIELDS["DESCRIPTION"]["min"]:
        return None
    return truncate(description, CONSTRAINTS_FIELDS["DESCRIPTION"]["max"], separator=TRUNCATE_SEPARATOR)


def get_category(categories: list[str | None] | None) -> int | None:
    if not categories:
        return None

    category_string = categories[0]
    if not category_string or not isinstance(category_string, str):
        return None

    if category_string == NEWS_CATEGORY_LABEL:
        return NEWS_CATEGORY_CODE

    lowered = category_string.lower()
    for code, label in VIDEO_CATEGORIES.items():
        if lowered == label.lower():
            return code

    return None


def get_licence(licence: str | None) -> int | None:
    if not licence:
        return None
    if CC_BY_MARKER in licence:
        return CC_BY_LICENCE_CODE
    return None


def is_nsfw(age_limit: int | float | None) -> bool:
    return age_limit is not None and age_limit >= NSFW_AGE_LIMIT


def get_tags(tags: Any) -> list[str]:
    if not isinstance(tags, (list, tuple)):
        return []

    tag_min = CONSTRAINTS_FIELDS["TAG"]["min"]
    tag_max = CONSTRAINTS_FIELDS["TAG"]["max"]
    kept = [
        unicodedata.normalize("NFC", t)
        for t in tags
        if isinstance(t, str) and tag_min < len(t) < tag_max
    ]
    return kept[: CONSTRAINTS_FIELDS["TAGS"]["max"]]


def build_originally_published_at(upload_date: Any) -> datetime | None:
    """Parse a `YYYYMMDD` upload date into a naive local-midnight datetime."""

    if not isinstance(upload_date, str):
        return None

    match = _UPLOAD_DATE_RE.fullmatch(upload_date)
    if match is None:
        return None

    year, month, day = (int(g) for g in match.groups())
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


def build_video_info(raw: YoutubeDLRawInfo) -> VideoImportInfo:
    return VideoImportInfo(
        name=title_truncation(raw.title),
        description=description_truncation(raw.description),
        category=get_category(raw.categories),
        licence=get_licence(raw.license),
        nsfw=is_nsfw(raw.age_limit),
        tags=get_tags(raw.tags),
        thumbnail_url=raw.thumbnail or None,
        originally_published_at=build_originally_published_at(raw.upload_date),
    )
