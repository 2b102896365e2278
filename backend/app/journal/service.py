from __future__ import annotations

import logging
from typing import Callable, List, Optional, Set

from backend.app.config import Settings, get_settings
from backend.app.gateway import GatewayClient, GatewayError, MalformedResponseError, ModelGateway, TransportError
from backend.app.journal.errors import ValidationError
from backend.app.journal.modes import Mode, decide_turn, next_mode
from backend.app.journal.paths import DEFAULT_PATH
from backend.app.journal.prompt_builder import (
    build_insight_prompt,
    build_layer_questions_prompt,
    build_question_prompt,
    build_title_prompt,
)
from backend.app.journal.sanitizer import (
    QUESTION_FALLBACK,
    TITLE_FALLBACK,
    normalize_question,
    normalize_title,
    parse_insights,
    parse_layer_questions,
    strip_question_prefix,
)
from backend.app.journal.schema import (
    Answer,
    Question,
    Session,
    ThreadSummary,
    layer_for_position,
    new_question_id,
    new_session_id,
    now_ms,
    summarize_thread,
)
from backend.app.journal.store import SessionStore, create_file_store
from backend.app.observability import hash_thread_id

logger = logging.getLogger(__name__)

BRAIN_DUMP_TOO_SHORT = "tell me more"


class JournalService:
    """Core operations behind the journaling UI.

    Model calls happen only in request_* and enrichment methods, one at a time.
    The store is written only after the user accepts something (a brain dump or
    an answer) or after an enrichment succeeds, never before a model call.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        store: SessionStore,
        *,
        clock: Callable[[], int] = now_ms,
        min_brain_dump_chars: int = 10,
        mode_probe_enabled: bool = False,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.clock = clock
        self.min_brain_dump_chars = min_brain_dump_chars
        self.mode_probe_enabled = mode_probe_enabled
        self._root_threads: Set[str] = set()

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def submit_brain_dump(self, text: str) -> Session:
        trimmed = text.strip() if isinstance(text, str) else ""
        if len(trimmed) < self.min_brain_dump_chars:
            raise ValidationError(BRAIN_DUMP_TOO_SHORT, field="brain_dump")

        ts = self.clock()
        session = Session(
            id=new_session_id(ts),
            timestamp=ts,
            brain_dump=trimmed,
            selected_path=DEFAULT_PATH,
            answers=(),
        )
        self.store.upsert(session)
        self._forget_evicted_threads()
        logger.info("[JOURNAL] thread created", extra={"thread_hash": hash_thread_id(session.id), "chars": len(trimmed)})
        return session

    def submit_answer(self, thread: Session, question_id: str, question_text: str, answer_text: str) -> Session:
        answer = answer_text.strip() if isinstance(answer_text, str) else ""
        if not answer:
            raise ValidationError("answer must not be empty", field="answer")
        if not isinstance(question_text, str) or not question_text.strip():
            raise ValidationError("question must not be empty", field="question_text")

        appended = Answer(
            question_id=question_id or new_question_id(self.clock()),
            question_text=question_text.strip(),
            answer=answer,
            layer=layer_for_position(len(thread.answers)),
        )
        updated = thread.model_copy(update={"answers": thread.answers + (appended,), "timestamp": self.clock()})
        self.store.upsert(updated)
        logger.info(
            "[JOURNAL] answer accepted",
            extra={"thread_hash": hash_thread_id(thread.id), "turn": updated.turn_count, "layer": appended.layer},
        )
        return updated

    def list_threads(self) -> List[ThreadSummary]:
        return [summarize_thread(s) for s in self.store.list()]

    def get_thread(self, thread_id: str) -> Optional[Session]:
        return self.store.get_by_id(thread_id)

    def delete_thread(self, thread_id: str) -> bool:
        self._root_threads.discard(thread_id)
        return self.store.delete(thread_id)

    # ------------------------------------------------------------------
    # Question loop
    # ------------------------------------------------------------------

    def _forget_evicted_threads(self) -> None:
        if self._root_threads:
            self._root_threads &= {s.id for s in self.store.list()}

    def is_root_mode(self, thread: Session) -> bool:
        return thread.id in self._root_threads

    def current_mode(self, thread: Session) -> Mode:
        return next_mode(thread.turn_count, self.is_root_mode(thread))

    def request_next_question(self, thread: Session) -> str:
        decision = decide_turn(
            thread.brain_dump,
            thread.answers,
            self.is_root_mode(thread),
            probe_enabled=self.mode_probe_enabled,
        )
        if not decision.needs_model:
            return decision.bypass_text

        prompt = build_question_prompt(thread.brain_dump, thread.answers, decision.mode)
        logger.info(
            "[JOURNAL] next question",
            extra={"thread_hash": hash_thread_id(thread.id), "mode": decision.mode.value, "turn": thread.turn_count},
        )
        raw = self._call_absorbing_malformed(prompt)
        if raw is None:
            return QUESTION_FALLBACK
        return normalize_question(strip_question_prefix(raw))

    def request_root_mode(self, thread: Session) -> str:
        return self._with_root_flag(thread, True)

    def exit_root_mode(self, thread: Session) -> str:
        return self._with_root_flag(thread, False)

    def _with_root_flag(self, thread: Session, enabled: bool) -> str:
        was_root = self.is_root_mode(thread)
        self._set_root_flag(thread.id, enabled)
        try:
            return self.request_next_question(thread)
        except (GatewayError, TransportError):
            # a failed turn leaves the mode as it was
            self._set_root_flag(thread.id, was_root)
            raise

    def _set_root_flag(self, thread_id: str, enabled: bool) -> None:
        if enabled:
            self._root_threads.add(thread_id)
        else:
            self._root_threads.discard(thread_id)

    def new_question_id(self) -> str:
        return new_question_id(self.clock())

    def request_layer_questions(self, thread: Session, layer: int) -> List[Question]:
        prompt = build_layer_questions_prompt(thread.brain_dump, thread.selected_path, layer, thread.answers)
        raw = self._call_absorbing_malformed(prompt)
        return parse_layer_questions(raw, layer)

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    def enrich_title(self, thread: Session) -> Session:
        if thread.has_summary:
            return thread

        prompt = build_title_prompt(thread.brain_dump, thread.answers, thread.selected_path)
        try:
            raw = self._call_absorbing_malformed(prompt)
        except (GatewayError, TransportError) as exc:
            logger.warning(
                "[JOURNAL] title enrichment skipped",
                extra={"thread_hash": hash_thread_id(thread.id), "error": exc.__class__.__name__},
            )
            return thread

        title = normalize_title(raw)
        if title == TITLE_FALLBACK:
            # nothing meaningful yet; leave the thread untitled so a later listing retries
            return thread
        updated = thread.model_copy(update={"summary": title, "timestamp": self.clock()})
        self.store.upsert(updated)
        return updated

    def generate_insights(self, thread: Session) -> Session:
        prompt = build_insight_prompt(thread.brain_dump, thread.answers, thread.selected_path)
        insight = parse_insights(self._call_absorbing_malformed(prompt))
        updated = thread.model_copy(
            update={"summary": insight.summary, "root_concern": insight.root_concern, "timestamp": self.clock()}
        )
        self.store.upsert(updated)
        return updated

    def _call_absorbing_malformed(self, prompt: str) -> Optional[str]:
        try:
            return self.gateway.call(prompt)
        except MalformedResponseError as exc:
            logger.info("[JOURNAL] malformed model reply, using fallback", extra={"reason": str(exc)})
            return None


def create_journal_service(settings: Optional[Settings] = None, *, gateway: Optional[ModelGateway] = None) -> JournalService:
    s = settings or get_settings()
    store = create_file_store(s.journal_store_path(), s.journal_store_key, capacity=s.journal_capacity)
    return JournalService(
        gateway or GatewayClient(
            s.relay_base_url,
            timeout_seconds=float(s.gateway_timeout_seconds),
            connect_timeout_seconds=float(s.gateway_connect_timeout_seconds),
        ),
        store,
        min_brain_dump_chars=s.brain_dump_min_chars,
        mode_probe_enabled=bool(s.mode_probe_enabled),
    )


__all__ = ["BRAIN_DUMP_TOO_SHORT", "JournalService", "create_journal_service"]
