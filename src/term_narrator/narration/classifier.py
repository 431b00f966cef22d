"""Speakable-prose predicate for delimited segments."""

from __future__ import annotations

import re

DEFAULT_MIN_LENGTH = 5

_CODE_LIKE_RE = re.compile(
    r"[{}()\[\];=`$]"
    r"|^\s*//"
    r"|^\s*#"
    r"|\b(?:function|const|let|var)\s"
)


def is_speakable_prose(segment: str, *, min_length: int = DEFAULT_MIN_LENGTH) -> bool:
    """Return True when a delimited segment reads as narration rather than leaked code.

    The upstream producer is expected to mark only genuine narration, so this is
    a safety net: too-short text, code punctuation or declaration keywords, and
    anything not starting with a letter are rejected.
    """
    if len(segment) <= min_length:
        return False
    if _CODE_LIKE_RE.search(segment):
        return False
    return segment[0].isalpha()
