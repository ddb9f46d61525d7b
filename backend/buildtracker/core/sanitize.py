"""Input sanitization helpers for build reports and store keys."""

from __future__ import annotations

import hashlib
import re
import unicodedata
from typing import Iterable

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_PATH_RE = re.compile(r"[^A-Za-z0-9._-]+")


def _strip_control_chars(value: str, *, allow_newlines: bool) -> str:
    cleaned: list[str] = []
    for ch in value:
        if ch == "\n" and allow_newlines:
            cleaned.append(ch)
            continue
        if unicodedata.category(ch) == "Cc":
            continue
        cleaned.append(ch)
    return "".join(cleaned)


def clean_text(value: str | None, *, allow_newlines: bool = False) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    value = value.replace("\r\n", "\n").replace("\r", "\n")
    value = _strip_control_chars(value, allow_newlines=allow_newlines)
    value = value.strip()
    if not allow_newlines:
        value = _WHITESPACE_RE.sub(" ", value)
    else:
        value = "\n".join(line.strip() for line in value.split("\n"))
        value = re.sub(r"\n{3,}", "\n\n", value)
    return value


def clean_single_line(value: str | None) -> str:
    return clean_text(value, allow_newlines=False)


def clean_multiline(value: str | None) -> str:
    return clean_text(value, allow_newlines=True)


def clean_list(values: Iterable[str] | str | None, *, max_items: int | None = None) -> list[str]:
    """Clean a list of names; a single string is split on commas."""
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")
    cleaned: list[str] = []
    seen: set[str] = set()
    for item in values:
        if item is None:
            continue
        item_clean = clean_single_line(str(item))
        if not item_clean:
            continue
        key = item_clean.casefold()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(item_clean)
    if max_items is not None and len(cleaned) > max_items:
        raise ValueError("too_many_items")
    return cleaned


def safe_path_component(value: str) -> str:
    """Turn a job name like ``folder/job name`` into a unique directory name.

    The readable part is lossy, so a digest of the raw name is appended:
    ``team/api`` and ``team_api`` map to different directories.
    """
    readable = _UNSAFE_PATH_RE.sub("_", clean_single_line(value)).strip("._")[:80] or "job"
    digest = hashlib.sha256(str(value).encode("utf-8")).hexdigest()[:12]
    return f"{readable}-{digest}"
