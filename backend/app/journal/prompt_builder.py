"""Prompt builder for the reflective question loop.

Turns (brain dump, answer history, mode) into a single instruction string for
the remote model. Pure string construction: identical inputs always render the
identical prompt, and the full history is embedded verbatim, oldest first, so
the model never needs hidden state between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence

from backend.app.journal.errors import PromptBuilderError
from backend.app.journal.modes import Mode
from backend.app.journal.paths import DEFAULT_PATH
from backend.app.journal.sanitizer import TITLE_FALLBACK
from backend.app.journal.schema import Answer, Path

EMPTY_HISTORY = "None yet."
TITLE_MAX_WORDS = 20


@dataclass(frozen=True)
class _Envelope:
    role: str
    task: str
    sections: List[str]
    inputs: str
    output_contract: str

    def render(self) -> str:
        parts = [self.role, "", self.task]
        for section in self.sections:
            parts.extend(["", section])
        parts.extend(["", self.inputs, "", self.output_contract])
        return "\n".join(parts)


def _bullets(lines: Sequence[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


def _require_text(name: str, value: object) -> str:
    if not isinstance(value, str):
        raise PromptBuilderError(f"{name} must be a string")
    return value


def format_history(answers: Sequence[Answer], *, separator: str = "\n\n") -> str:
    """Q/A pairs numbered from 1, oldest first, text kept verbatim."""
    if not answers:
        return EMPTY_HISTORY
    return separator.join(
        f"Q{idx}: {a.question_text}\nA{idx}: {a.answer}" for idx, a in enumerate(answers, start=1)
    )


def _path_line(path: Path) -> str:
    return f'"{path.label}" - {path.description}'


# ---------------------------------------------------------------------------
# Follow-up question
# ---------------------------------------------------------------------------

_QUESTION_ROLE = (
    "You are a warm, emotionally intelligent conversation partner. Your goal is to help "
    "someone explore their inner world, one question at a time, until they reach the root "
    "feelings and beliefs underneath what they first described."
)

_MODE_OVERVIEW = (
    "You work in three modes:\n"
    "1) UNDERSTANDING_MODE: gather enough situational context to really understand what is happening.\n"
    "2) DEPTH_MODE: move toward the emotional roots (beliefs, fears, patterns, meanings, tender feelings).\n"
    "3) ROOT_CHALLENGE_MODE: they have told you they hit a root; gently test that core belief while offering warmth."
)

_MODE_GUIDANCE: Dict[Mode, List[str]] = {
    Mode.UNDERSTANDING: [
        "Clarify what is actually happening in their life: the situation, the people, the pressures.",
        "Ask about concrete details that matter emotionally: who, when, where, and how it has been affecting them.",
        "Explore how this has been showing up over time and what keeps pulling their attention back.",
        "Stay curious and specific; do not try to go very deep yet, you are still gathering puzzle pieces.",
        'Good examples: "What has the past week actually looked like for you at work?" '
        '"Whose expectations feel most intense in this for you?"',
    ],
    Mode.DEPTH: [
        "Shift toward the root: what this means to them, what it touches, what it threatens or awakens.",
        "Go at least as deep as the previous question and never return to shallower, situational framing.",
        "Build on the emotional thread of their most recent one to three answers; earlier answers may be referenced too.",
        "Help them notice what sits under the main emotion, such as fear beneath anger or grief beneath numbness.",
        'Good examples: "What do you fear this situation might be saying about you as a person?" '
        '"Does this remind you of an older feeling from another part of your life?"',
    ],
    Mode.ROOT_CHALLENGE: [
        "Aim directly at the core belief they have surfaced.",
        "Gently question its certainty: how do they know, what evidence conflicts with it, what does holding it cost them.",
        "Pair every challenge with reassurance so the question nudges and comforts in the same breath.",
        "Invite alternatives, exceptions, or a kinder reading of the belief.",
    ],
}

_QUESTION_RULES = [
    "Ask EXACTLY ONE question.",
    "It must be ONE sentence only.",
    "No stacked questions, no lists, no parentheticals.",
    'No bare therapy clichés such as "How does that make you feel?".',
    "Ground the question in the FULL context: the brain dump and the whole history of answers.",
    "Use their own words, names and images where possible.",
    "Never give advice, solutions or interpretations; just ask.",
]

_QUESTION_OUTPUT = (
    "OUTPUT:\n"
    "Return ONLY the question sentence itself.\n"
    + _bullets(["No numbering.", 'No "Q:" prefix.', "No quotes.", "No markdown."])
    + "\nJust the raw question as one sentence."
)


def build_question_prompt(brain_dump: str, answers: Sequence[Answer], mode: Mode) -> str:
    brain_dump = _require_text("brain_dump", brain_dump)
    if not isinstance(mode, Mode):
        raise PromptBuilderError(f"Unsupported mode: {mode!r}")

    guidance = f"{mode.label} BEHAVIOR:\n" + _bullets(_MODE_GUIDANCE[mode])
    inputs = (
        "INPUTS:\n\n"
        f'Brain dump (their initial free write):\n"{brain_dump}"\n\n'
        "Conversation so far (questions and answers, oldest to newest):\n"
        f"{format_history(answers)}"
    )
    return _Envelope(
        role=_QUESTION_ROLE,
        task=f"{_MODE_OVERVIEW}\n\nThe conversation is currently in: {mode.label}.",
        sections=[guidance, "GENERAL RULES FOR ALL QUESTIONS:\n" + _bullets(_QUESTION_RULES)],
        inputs=inputs,
        output_contract=_QUESTION_OUTPUT,
    ).render()


# ---------------------------------------------------------------------------
# Thread title
# ---------------------------------------------------------------------------


def build_title_prompt(brain_dump: str, answers: Sequence[Answer], path: Path = DEFAULT_PATH) -> str:
    brain_dump = _require_text("brain_dump", brain_dump)
    guidelines = [
        "Focus on what they are wrestling with underneath (fears, needs, tensions), not on small details.",
        "Use plain language, like a reflection title a person might write.",
        "Keep it gentle and non-judgmental.",
        "No advice, no instructions, no questions.",
        "Do not wrap the sentence in quotation marks.",
    ]
    return _Envelope(
        role="You are summarizing a reflective conversation in which someone moves from surface emotions toward their root feelings.",
        task=(
            f"TASK:\nWrite ONE short, natural sentence (max {TITLE_MAX_WORDS} words) that captures "
            "the main emotional theme of this conversation."
        ),
        sections=[
            "Guidelines:\n" + _bullets(guidelines),
            f"If there is not enough information to say anything meaningful, respond EXACTLY with:\n{TITLE_FALLBACK}",
        ],
        inputs=(
            "CONTEXT:\n\n"
            f'Brain dump:\n"{brain_dump}"\n\n'
            f"Path (if relevant):\n{_path_line(path)}\n\n"
            "Conversation so far (questions and answers, oldest to newest):\n"
            f"{format_history(answers, separator=chr(10))}"
        ),
        output_contract=f'OUTPUT:\nReturn ONLY the single summary sentence (or exactly "{TITLE_FALLBACK}" if there is not enough info).',
    ).render()


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


def build_insight_prompt(brain_dump: str, answers: Sequence[Answer], path: Path = DEFAULT_PATH) -> str:
    brain_dump = _require_text("brain_dump", brain_dump)
    tone = [
        "Warm, validating and non-judgmental.",
        'Curious rather than certain; prefer "It seems" or "It might be".',
        "No advice or instructions; only help them see what might be underneath.",
    ]
    return _Envelope(
        role="You are a thoughtful therapist offering gentle, grounded reflections.",
        task=(
            "TASK:\nSomeone wrote a brain dump and then answered questions that moved from surface emotions "
            "toward deeper ones. Based on what they shared, provide:\n"
            "1. summary: a compassionate 2-3 sentence summary of what they seem to be going through.\n"
            "2. rootConcern: one sentence naming what seems to sit underneath everything emotionally."
        ),
        sections=["Tone:\n" + _bullets(tone)],
        inputs=(
            f'Brain dump:\n"{brain_dump}"\n\n'
            f"Path explored (if any):\n{_path_line(path)}\n\n"
            "Their journey (questions and answers, oldest to newest):\n"
            f"{format_history(answers)}"
        ),
        output_contract=(
            "OUTPUT FORMAT (JSON):\n"
            "{\n"
            '  "summary": "string",\n'
            '  "rootConcern": "string"\n'
            "}\n"
            "Rules: return ONLY valid JSON; no backticks; no extra keys; no explanations."
        ),
    ).render()


# ---------------------------------------------------------------------------
# Layer question batch
# ---------------------------------------------------------------------------


def build_layer_questions_prompt(
    brain_dump: str,
    path: Path,
    layer: int,
    answers: Sequence[Answer],
) -> str:
    brain_dump = _require_text("brain_dump", brain_dump)
    if isinstance(layer, bool) or not isinstance(layer, int) or layer < 1:
        raise PromptBuilderError("layer must be a positive integer")
    requirements = [
        "Each question builds from the context and feels specific.",
        "Keep them concise (under about 22 words), warm and curiosity-driven.",
        "Do NOT include numbering or markdown.",
    ]
    return _Envelope(
        role='You generate 2-3 thoughtful, open-ended questions that help someone explore their feelings at one "layer" of reflection.',
        task="TASK:\nWrite the questions for the current layer.",
        sections=["Requirements:\n" + _bullets(requirements)],
        inputs=(
            "Context:\n"
            f'- Brain dump: "{brain_dump}"\n'
            f"- Path: {_path_line(path)}\n"
            f"- Current layer (1 = gentle surface, 2 = deeper, 3 = core): {layer}\n"
            "- Previous answers (oldest first):\n"
            f"{format_history(answers)}"
        ),
        output_contract=(
            "OUTPUT FORMAT (JSON array):\n"
            "[\n"
            f'  {{"text": "string", "layer": {layer}}},\n'
            f'  {{"text": "string", "layer": {layer}}}\n'
            "]\n"
            "Rules: return ONLY the JSON array; no explanations."
        ),
    ).render()


__all__ = [
    "EMPTY_HISTORY",
    "build_insight_prompt",
    "build_layer_questions_prompt",
    "build_question_prompt",
    "build_title_prompt",
    "format_history",
]
