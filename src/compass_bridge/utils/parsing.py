"""Helpers for reading structured data out of model responses."""

import json
import re
from typing import Any

_FENCED = re.compile(r"```(?:json)?\s*\n([\s\S]*?)\n\s*```")


def extract_json(text: str) -> Any | None:
    """Return the first JSON value found in ``text``.

    Tries, in order: the whole text, a fenced code block, and the outermost
    ``{...}`` or ``[...]`` span. Returns None when nothing parses.
    """
    if not text:
        return None

    candidates = [text.strip()]
    fenced = _FENCED.search(text)
    if fenced:
        candidates.append(fenced.group(1).strip())
    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = text.find(opener), text.rfind(closer)
        if start != -1 and end > start:
            candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None
