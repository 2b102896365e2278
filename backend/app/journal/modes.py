"""Conversation mode controller.

The mode is never persisted. It is derived every turn from the number of
accepted answers and the sticky root-hit flag held by the caller.

Before any mode is chosen, decide_turn() evaluates two bypasses that answer
the turn without a model call:

- the affirmation bypass, enabled when the brain dump or any answer contains
  AFFIRMATION_TRIGGER; the reply cycles through AFFIRMATIONS by answer count;
- the mode probe, enabled only by configuration, which echoes the current mode
  when the latest answer is exactly "q".
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from backend.app.journal.schema import Answer

UNDERSTANDING_TURNS = 3
MODE_PROBE_ANSWER = "q"

AFFIRMATION_TRIGGER = re.compile(r"i\s+am\s+olivia", re.IGNORECASE)

AFFIRMATIONS = (
    "you are so smart :)",
    "so so fashionable!",
    "i hope you are having a good day today!",
    "oliver says hi",
    "good luck today! you're gonna do great",
    "your pikmin miss you...",
    "you are so talented!!!",
    "i love your art",
    "knock knock!",
    "meowww",
)


class Mode(str, Enum):
    UNDERSTANDING = "UNDERSTANDING"
    DEPTH = "DEPTH"
    ROOT_CHALLENGE = "ROOT_CHALLENGE"

    @property
    def label(self) -> str:
        return f"{self.value}_MODE"


def next_mode(turn_count: int, root_hit_requested: bool) -> Mode:
    if root_hit_requested:
        return Mode.ROOT_CHALLENGE
    if turn_count < UNDERSTANDING_TURNS:
        return Mode.UNDERSTANDING
    return Mode.DEPTH


def affirmation_triggered(brain_dump: str, answers: Sequence[Answer]) -> bool:
    if isinstance(brain_dump, str) and AFFIRMATION_TRIGGER.search(brain_dump):
        return True
    return any(AFFIRMATION_TRIGGER.search(a.answer) for a in answers)


def pick_affirmation(answer_count: int) -> str:
    return AFFIRMATIONS[max(0, answer_count) % len(AFFIRMATIONS)]


def mode_probe_requested(answers: Sequence[Answer]) -> bool:
    if not answers:
        return False
    return answers[-1].answer.strip().lower() == MODE_PROBE_ANSWER


@dataclass(frozen=True)
class TurnDecision:
    mode: Mode
    bypass_text: Optional[str] = None

    @property
    def needs_model(self) -> bool:
        return self.bypass_text is None


def decide_turn(
    brain_dump: str,
    answers: Sequence[Answer],
    root_hit_requested: bool,
    *,
    probe_enabled: bool = False,
) -> TurnDecision:
    mode = next_mode(len(answers), root_hit_requested)
    if affirmation_triggered(brain_dump, answers):
        return TurnDecision(mode=mode, bypass_text=pick_affirmation(len(answers)))
    if probe_enabled and mode_probe_requested(answers):
        return TurnDecision(mode=mode, bypass_text=f"MODE: {mode.label}")
    return TurnDecision(mode=mode)


__all__ = [
    "AFFIRMATIONS",
    "AFFIRMATION_TRIGGER",
    "Mode",
    "TurnDecision",
    "UNDERSTANDING_TURNS",
    "affirmation_triggered",
    "decide_turn",
    "mode_probe_requested",
    "next_mode",
    "pick_affirmation",
]
