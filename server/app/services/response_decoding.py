"""Decoding of assistant replies into structured or plain answers."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from .text_normalizer import normalize

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = "I apologize, but I couldn't generate a proper response."


@dataclass(slots=True)
class StructuredReply:
    answer: str
    shortcuts: list[str] = field(default_factory=list)
    # True when the assistant sent no answer and FALLBACK_ANSWER was used.
    fallback: bool = False


@dataclass(slots=True)
class PlainReply:
    text: str


Decoded = Union[StructuredReply, PlainReply]


def _clean_items(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item]


def compose_answer(answer: str, steps: list[str], bullets: list[str]) -> str:
    """Append numbered steps and bullets to the answer, one blank line between blocks."""

    blocks = [answer]
    if steps:
        blocks.append("\n".join(f"{index}) {step}" for index, step in enumerate(steps, start=1)))
    if bullets:
        blocks.append("\n".join(f"• {bullet}" for bullet in bullets))
    return "\n\n".join(blocks)


def decode_reply(text: str) -> Decoded:
    """Parse a reply as the JSON answer contract, falling back to plain text."""

    try:
        payload = json.loads(text)
    except (TypeError, ValueError):
        logger.info("Response is not valid JSON, treating as plain text")
        return PlainReply(text=normalize(text))

    if not isinstance(payload, dict):
        logger.info("Response JSON is not an object, treating as plain text")
        return PlainReply(text=normalize(text))

    raw_answer = payload.get("answer")
    fallback = not (isinstance(raw_answer, str) and raw_answer.strip())
    answer = FALLBACK_ANSWER if fallback else raw_answer
    composed = compose_answer(answer, _clean_items(payload.get("steps")), _clean_items(payload.get("bullets")))
    return StructuredReply(
        answer=normalize(composed),
        shortcuts=_clean_items(payload.get("shortcuts")),
        fallback=fallback,
    )
