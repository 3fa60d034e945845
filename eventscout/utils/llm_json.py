"""JSON parsing for language-model output.

Models asked for strict JSON still wrap it in markdown fences, open with a
sentence of prose, leave trailing commas or get cut off by the token limit.
``parse_json_lenient`` tries a strict parse of the fenced block first and
hands anything else to the ``json-repair`` library:

    parse_json_lenient(text) -> (value, repaired)

``repaired`` is reported by the prioritization trace as ``repair_used``.
"""

from __future__ import annotations

import json
import re
from typing import Any

import json_repair

# Matches ```json ... ``` or ``` ... ``` fenced blocks.
_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

_CLOSERS = {"{": "}", "[": "]"}


def strip_fences(text: str) -> str:
    """Return the body of the first fenced code block, or *text* unchanged."""
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def extract_json_block(text: str) -> str:
    """Slice *text* from the first ``{``/``[`` to the matching last bracket.

    Leading prose ("Here is the ranking:") and trailing commentary are
    dropped.  Without a closing bracket everything from the opening one on
    is kept, so truncated output can still be salvaged.
    """
    body = strip_fences(text)
    starts = [i for i in (body.find("{"), body.find("[")) if i != -1]
    if not starts:
        return body
    start = min(starts)
    end = body.rfind(_CLOSERS[body[start]])
    if end <= start:
        return body[start:]
    return body[start : end + 1]


def parse_json_strict(text: str) -> Any:
    """Parse the JSON block in *text* with :func:`json.loads`.

    Raises:
        ValueError: If the block is not valid JSON.
    """
    return json.loads(extract_json_block(text))


def parse_json_lenient(text: str) -> tuple[Any, bool]:
    """Parse *text* strictly, falling back to ``json_repair``.

    Returns:
        ``(value, repaired)``; ``repaired`` is ``True`` when the strict
        parse failed and the repaired document was used.

    Raises:
        ValueError: If the repaired document is not an object or array.
            ``json_repair`` answers prose with an empty string rather than
            raising, so that case lands here too.
    """
    try:
        return parse_json_strict(text), False
    except ValueError:
        pass
    value = json_repair.loads(extract_json_block(text))
    if not isinstance(value, (dict, list)):
        raise ValueError(f"Unrepairable JSON: repair produced {type(value).__name__}")
    return value, True
