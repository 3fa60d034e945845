"""Shared mapping from loosely-shaped dicts to :class:`ExtractedEvent`.

Model answers and schema.org blocks both describe an event as a dict, with
different key names and a lot of variation in types (strings, nested
objects, lists).  This module coerces them into the event model without
ever raising; unusable fields simply stay empty.
"""

from __future__ import annotations

from typing import Any

from eventscout.models.event import ExtractedEvent, Speaker
from eventscout.utils.text_normalizer import normalize_whitespace, parse_datetime


def as_text(value: Any) -> str | None:
    """First usable string in *value* (str, list of str, or ``{"name": ...}``)."""
    if isinstance(value, str):
        cleaned = normalize_whitespace(value)
        return cleaned or None
    if isinstance(value, list):
        for entry in value:
            text = as_text(entry)
            if text:
                return text
        return None
    if isinstance(value, dict):
        return as_text(value.get("name"))
    return None


def speakers_from(value: Any) -> list[Speaker]:
    """Build speakers from a list of names or person-like dicts."""
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        return []
    speakers: list[Speaker] = []
    for entry in value:
        if isinstance(entry, str):
            name = as_text(entry)
            if name:
                speakers.append(Speaker(name=name))
            continue
        if not isinstance(entry, dict):
            continue
        name = as_text(entry.get("name"))
        if not name:
            continue
        speakers.append(
            Speaker(
                name=name,
                organization=as_text(
                    entry.get("organization") or entry.get("affiliation") or entry.get("worksFor")
                ),
                role=as_text(entry.get("role") or entry.get("jobTitle")),
                profile_url=as_text(entry.get("profile_url") or entry.get("url")),
            )
        )
    return speakers


def build_event(url: str, fields: dict[str, Any], extractor: str) -> ExtractedEvent:
    """Create an event from normalized *fields*.

    ``success`` is set when the page yielded at least a title; confidence is
    left at 0 and filled in by the extraction engine.
    """
    title = as_text(fields.get("title")) or ""
    return ExtractedEvent(
        url=url,
        title=title,
        description=as_text(fields.get("description")) or "",
        starts_at=parse_datetime(fields.get("starts_at")),
        ends_at=parse_datetime(fields.get("ends_at")),
        venue=as_text(fields.get("venue")),
        city=as_text(fields.get("city")),
        country=as_text(fields.get("country")),
        speakers=speakers_from(fields.get("speakers")),
        success=bool(title),
        extractor=extractor,
    )
