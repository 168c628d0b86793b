from __future__ import annotations

import json

from app.services.response_decoding import (
    FALLBACK_ANSWER,
    PlainReply,
    StructuredReply,
    compose_answer,
    decode_reply,
)
from app.services.text_normalizer import normalize


def test_structured_reply_with_steps():
    body = '{"answer":"Breathe slowly.","steps":["Inhale 4s","Exhale 6s"],"shortcuts":["What is pranayama?"]}'
    decoded = decode_reply(body)
    assert isinstance(decoded, StructuredReply)
    assert decoded.answer == normalize("Breathe slowly.\n\n1) Inhale 4s\n2) Exhale 6s")
    assert decoded.shortcuts == ["What is pranayama?"]
    assert decoded.fallback is False


def test_compose_orders_steps_before_bullets():
    composed = compose_answer("Try this.", ["Sit", "Breathe"], ["Calms the mind", "Improves focus"])
    assert composed == "Try this.\n\n1) Sit\n2) Breathe\n\n• Calms the mind\n• Improves focus"


def test_compose_skips_empty_blocks():
    assert compose_answer("Only answer.", [], []) == "Only answer."
    assert compose_answer("A.", [], ["b"]) == "A.\n\n• b"


def test_falsy_entries_are_dropped():
    body = json.dumps({"answer": "Rest.", "steps": ["", None, "Lie down"], "bullets": [""], "shortcuts": ["", "Next?"]})
    decoded = decode_reply(body)
    assert isinstance(decoded, StructuredReply)
    assert decoded.answer == "Rest. 1) Lie down"
    assert decoded.shortcuts == ["Next?"]


def test_missing_answer_uses_fallback():
    decoded = decode_reply('{"answer": "", "shortcuts": []}')
    assert isinstance(decoded, StructuredReply)
    assert decoded.answer == FALLBACK_ANSWER
    assert decoded.fallback is True
    assert decoded.shortcuts == []


def test_answer_is_normalized():
    decoded = decode_reply('{"answer": "Hum gently【1:2†source】 🙏", "shortcuts": ["Why hum?"]}')
    assert isinstance(decoded, StructuredReply)
    assert decoded.answer == "Hum gently"


def test_plain_text_fallback():
    decoded = decode_reply("Just relax and breathe.")
    assert decoded == PlainReply(text="Just relax and breathe.")


def test_non_object_json_is_plain_text():
    decoded = decode_reply('"a quoted string"')
    assert isinstance(decoded, PlainReply)
    assert decoded.text == '"a quoted string"'
