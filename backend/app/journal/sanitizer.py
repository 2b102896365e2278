"""Response sanitizer.

All model output passes through this module before any other component looks
at it. Every function is pure and total: malformed or empty input yields a
fixed fallback value, never an exception.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional

from backend.app.journal.schema import Insight, Question

QUESTION_FALLBACK = "What would you like to explore deeper?"
TITLE_FALLBACK = "New chat."
SUMMARY_FALLBACK = (
    "You're exploring some of the layers of what you've been feeling and what might be underneath it all."
)
ROOT_CONCERN_FALLBACK = "There seems to be a deeper wish to understand and trust your own feelings."

_WHITESPACE = re.compile(r"\s+")
_PARENTHETICAL = re.compile(r"\(.+?\)")
_LEADING_FILLER = re.compile(r"^when you say[, ]*", re.IGNORECASE)
_FIRST_SENTENCE = re.compile(r"[^.?!]+[.?!]?")
_QUESTION_PREFIX = re.compile(r"^(?:Q(?:uestion)?\s*\d*\s*[:\-.)]\s*|\d+\s*[.\-)]\s*)", re.IGNORECASE)
_TITLE_SENTINEL = re.compile(r"^new chat\.?$", re.IGNORECASE)
_FENCED = re.compile(r"```(?:json)?\s*(.*?)```", re.IGNORECASE | re.DOTALL)
_QUESTION_MARKS = ("?", "？")


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _strip_wrapping_quotes(text: str) -> str:
    text = text.strip()
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    return text.strip()


def to_single_sentence(raw: Any) -> str:
    if not isinstance(raw, str) or not raw:
        return ""
    text = _collapse(_PARENTHETICAL.sub("", _collapse(raw)))
    text = _LEADING_FILLER.sub("", text)
    match = _FIRST_SENTENCE.search(text)
    if match is None:
        return text
    return match.group(0).strip()


def strip_question_prefix(raw: Any) -> str:
    """Remove enumeration labels ("Q1:", "2.") and wrapping quotes the model was told not to add."""
    if not isinstance(raw, str):
        return ""
    text = _QUESTION_PREFIX.sub("", raw.strip())
    return _strip_wrapping_quotes(text)


def normalize_question(raw: Any) -> str:
    sentence = to_single_sentence(raw)
    if sentence.endswith(_QUESTION_MARKS):
        return sentence
    sentence = sentence.rstrip(".! ")
    if not sentence:
        return QUESTION_FALLBACK
    return f"{sentence}?"


def normalize_title(raw: Any) -> str:
    if not isinstance(raw, str):
        return TITLE_FALLBACK
    text = _strip_wrapping_quotes(raw)
    if not text or _TITLE_SENTINEL.match(text):
        return TITLE_FALLBACK
    return to_single_sentence(text) or TITLE_FALLBACK


def extract_json(raw: Any) -> Optional[Any]:
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    fenced = _FENCED.search(text)
    if fenced is not None:
        text = fenced.group(1).strip()
    elif text.startswith("```"):
        # Unterminated fence: drop the opening marker line
        text = re.sub(r"^```(?:json)?", "", text, flags=re.IGNORECASE).strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return None


def _non_empty_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_insights(raw: Any) -> Insight:
    parsed = extract_json(raw)
    if not isinstance(parsed, dict):
        parsed = {}
    summary = _non_empty_str(parsed.get("summary")) or SUMMARY_FALLBACK
    root_concern = (
        _non_empty_str(parsed.get("rootConcern"))
        or _non_empty_str(parsed.get("root_concern"))
        or ROOT_CONCERN_FALLBACK
    )
    return Insight(summary=summary, root_concern=root_concern)


def fallback_layer_questions(layer: int) -> List[Question]:
    layer = max(1, layer)
    return [
        Question(
            id=f"fallback-{layer}-1",
            text="What feels most alive for you in this moment of the situation?",
            layer=layer,
        ),
        Question(
            id=f"fallback-{layer}-2",
            text="What part of this feels like it matters the most underneath?",
            layer=layer,
        ),
    ]


def parse_layer_questions(raw: Any, layer: int) -> List[Question]:
    layer = max(1, layer)
    parsed = extract_json(raw)
    if not isinstance(parsed, list):
        return fallback_layer_questions(layer)

    questions: List[Question] = []
    for idx, item in enumerate(parsed):
        if not isinstance(item, dict):
            continue
        text = _non_empty_str(item.get("text"))
        if text is None:
            continue
        item_id = item.get("id") if isinstance(item.get("id"), str) and item.get("id") else f"ai-{layer}-{idx + 1}"
        item_layer = item.get("layer")
        if isinstance(item_layer, bool) or not isinstance(item_layer, int) or item_layer < 1:
            item_layer = layer
        questions.append(Question(id=item_id, text=text, layer=item_layer))
    return questions or fallback_layer_questions(layer)


__all__ = [
    "QUESTION_FALLBACK",
    "ROOT_CONCERN_FALLBACK",
    "SUMMARY_FALLBACK",
    "TITLE_FALLBACK",
    "extract_json",
    "fallback_layer_questions",
    "normalize_question",
    "normalize_title",
    "parse_insights",
    "parse_layer_questions",
    "strip_question_prefix",
    "to_single_sentence",
]
