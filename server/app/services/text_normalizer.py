"""Cleanup of assistant text before it is shown to the user."""
from __future__ import annotations

import re
from typing import Optional

# Citation markers emitted by the file_search tool, e.g. "【4:15†source】".
_CITATION_BRACKETS = re.compile(r"【[^】]*】")
_SOURCE_SUFFIX = re.compile(r"(?:\d+:\d+)?†source")
_DECORATIVE_EMOJI = re.compile("[🌟🌼🙏😊✨💫]")
_WHITESPACE_RUN = re.compile(r"\s{2,}")


def _clean_once(text: str) -> str:
    text = _CITATION_BRACKETS.sub("", text)
    text = _SOURCE_SUFFIX.sub("", text)
    text = _DECORATIVE_EMOJI.sub("", text)
    text = _WHITESPACE_RUN.sub(" ", text)
    return text.strip()


def normalize(text: Optional[str]) -> str:
    """Strip citation artifacts, decorative emoji and whitespace runs.

    Plain ``[...]`` / ``(...)`` text and markdown are left alone. The passes are
    repeated until the text stops changing, since removing an emoji can join
    the pieces of a citation marker back together.
    """

    current = text or ""
    while True:
        cleaned = _clean_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned
