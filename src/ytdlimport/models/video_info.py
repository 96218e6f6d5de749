"""Typed records for tool output and the normalized import metadata."""

from __future__ import annotations

import math
import unicodedata
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..core.constants import DEPRECATED_KEYS


def normalize_object(obj: Mapping[str, Any]) -> dict[str, Any]:
    """NFC-normalize every top-level string value and drop deprecated keys."""

    new_obj: dict[str, Any] = {}
    for key, value in obj.items():
        if key in DEPRECATED_KEYS:
            continue
        if isinstance(value, str):
            new_obj[key] = unicodedata.normalize("NFC", value)
        else:
            new_obj[key] = value
    return new_obj


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _opt_number(value: Any) -> int | float | None:
    # bool is an int subclass; True is not an age limit
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _opt_head_list(value: Any) -> list[str | None] | None:
    # Only the first entry is ever consulted, so it keeps its position
    if not isinstance(value, (list, tuple)):
        return None
    return [v if isinstance(v, str) else None for v in value]


def _opt_str_list(value: Any) -> list[str] | None:
    if not isinstance(value, (list, tuple)):
        return None
    return [v for v in value if isinstance(v, str)]


@dataclass(slots=True)
class YoutubeDLRawInfo:
    """The subset of the tool's JSON this package understands.

    Build it with `from_dict`; malformed fields become None instead of leaking
    through. `raw` keeps the whole normalized mapping for site-specific lookups.
    """

    title: str | None = None
    description: str | None = None
    categories: list[str | None] | None = None
    license: str | None = None
    age_limit: int | float | None = None
    tags: list[str] | None = None
    thumbnail: str | None = None
    upload_date: str | None = None
    is_live: bool = False
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "YoutubeDLRawInfo":
        obj = normalize_object(data)
        return cls(
            title=_opt_str(obj.get("title")),
            description=_opt_str(obj.get("description")),
            categories=_opt_head_list(obj.get("categories")),
            license=_opt_str(obj.get("license")),
            age_limit=_opt_number(obj.get("age_limit")),
            tags=_opt_str_list(obj.get("tags")),
            thumbnail=_opt_str(obj.get("thumbnail")),
            upload_date=_opt_str(obj.get("upload_date")),
            is_live=obj.get("is_live") is True,
            raw=obj,
        )


@dataclass(slots=True)
class VideoImportInfo:
    name: str | None = None
    description: str | None = None
    category: int | None = None
    licence: int | None = None
    nsfw: bool = False
    tags: list[str] = field(default_factory=list)
    thumbnail_url: str | None = None
    originally_published_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "licence": self.licence,
            "nsfw": self.nsfw,
            "tags": list(self.tags),
            "thumbnailUrl": self.thumbnail_url,
            "originallyPublishedAt": (
                self.originally_published_at.isoformat() if self.originally_published_at else None
            ),
        }
