from __future__ import annotations

import time
import uuid
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

ANSWERS_PER_LAYER = 3
PREVIEW_CHARS = 30


class Path(BaseModel):
    id: str
    label: str
    description: str

    model_config = ConfigDict(frozen=True)


class Question(BaseModel):
    id: str
    text: str
    layer: int = Field(1, ge=1)

    model_config = ConfigDict(frozen=True)


class Answer(BaseModel):
    question_id: str = Field(..., alias="questionId")
    question_text: str = Field(..., alias="questionText")
    answer: str
    layer: int = Field(1, ge=1)

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Session(BaseModel):
    id: str
    timestamp: int
    brain_dump: str = Field(..., alias="brainDump")
    selected_path: Path = Field(..., alias="selectedPath")
    answers: Tuple[Answer, ...] = ()
    summary: Optional[str] = None
    root_concern: Optional[str] = Field(None, alias="rootConcern")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def turn_count(self) -> int:
        return len(self.answers)

    @property
    def has_summary(self) -> bool:
        return bool(self.summary and self.summary.strip())

    def to_record(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Insight(BaseModel):
    summary: str
    root_concern: str = Field(..., alias="rootConcern")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ThreadSummary(BaseModel):
    id: str
    timestamp: int
    title: Optional[str] = None
    preview: str
    answer_count: int = 0


def now_ms() -> int:
    return int(time.time() * 1000)


def new_session_id(timestamp_ms: int) -> str:
    return f"session_{timestamp_ms}_{uuid.uuid4().hex[:9]}"


def new_question_id(timestamp_ms: int) -> str:
    return f"q_{timestamp_ms}"


def layer_for_position(index: int) -> int:
    """Display layer for the answer appended at zero-based position ``index``."""
    return max(0, index) // ANSWERS_PER_LAYER + 1


def preview_text(brain_dump: str, limit: int = PREVIEW_CHARS) -> str:
    if len(brain_dump) > limit:
        return brain_dump[:limit] + "..."
    return brain_dump


def summarize_thread(session: Session) -> ThreadSummary:
    return ThreadSummary(
        id=session.id,
        timestamp=session.timestamp,
        title=session.summary if session.has_summary else None,
        preview=preview_text(session.brain_dump),
        answer_count=session.turn_count,
    )


__all__ = [
    "ANSWERS_PER_LAYER",
    "Answer",
    "Insight",
    "Path",
    "Question",
    "Session",
    "ThreadSummary",
    "layer_for_position",
    "new_question_id",
    "new_session_id",
    "now_ms",
    "preview_text",
    "summarize_thread",
]
