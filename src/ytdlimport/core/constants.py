"""Platform-side validation bounds and lookup tables used when mapping tool output."""

from __future__ import annotations

CONSTRAINTS_FIELDS: dict[str, dict[str, int]] = {
    "NAME": {"min": 3, "max": 120},
    "DESCRIPTION": {"min": 3, "max": 10000},
    "TAG": {"min": 2, "max": 30},
    "TAGS": {"max": 5},
}

VIDEO_CATEGORIES: dict[int, str] = {
    1: "Music",
    2: "Films",
    3: "Vehicles",
    4: "Art",
    5: "Sports",
    6: "Travels",
    7: "Gaming",
    8: "People",
    9: "Comedy",
    10: "Entertainment",
    11: "News & Politics",
    12: "How To",
    13: "Education",
    14: "Activism",
    15: "Science & Technology",
    16: "Animals",
    17: "Kids",
    18: "Food",
}

# Tool-side spelling that maps to category 11 regardless of the table above
NEWS_CATEGORY_LABEL = "News & Politics"
NEWS_CATEGORY_CODE = 11

CC_BY_MARKER = "Creative Commons Attribution"
CC_BY_LICENCE_CODE = 1

NSFW_AGE_LIMIT = 16

TRUNCATE_OMISSION = " […]"
TRUNCATE_SEPARATOR = r",? +"

SHORT_NAME_SUFFIX = " video"

DEFAULT_INFO_ARGS: tuple[str, ...] = ("-j", "--flat-playlist")
DOWNLOAD_FORMAT = "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best"

# stdout cap for metadata mode
MAX_OUTPUT_BYTES = 1024 * 1024 * 10

# Keys the tool still emits but that are no longer meaningful
DEPRECATED_KEYS = frozenset({"resolution"})

# Redirect target of the "latest" URL carries the release date as version
VERSION_PATTERN = r"/downloads?/(\d{4}\.\d\d\.\d\d(?:\.\d+)?)/"
