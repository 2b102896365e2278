from backend.app.journal.errors import JournalError, PersistenceReadError, PromptBuilderError, ValidationError
from backend.app.journal.feedback import Banner, BannerKind, banner_for
from backend.app.journal.modes import Mode, decide_turn, next_mode
from backend.app.journal.paths import DEFAULT_PATH, detect_paths
from backend.app.journal.schema import Answer, Insight, Path, Question, Session, ThreadSummary
from backend.app.journal.service import JournalService, create_journal_service
from backend.app.journal.store import FileBackend, InMemoryBackend, SessionStore, StorageBackend

__all__ = [
    "Answer",
    "Banner",
    "BannerKind",
    "DEFAULT_PATH",
    "FileBackend",
    "InMemoryBackend",
    "Insight",
    "JournalError",
    "JournalService",
    "Mode",
    "Path",
    "PersistenceReadError",
    "PromptBuilderError",
    "Question",
    "Session",
    "SessionStore",
    "StorageBackend",
    "ThreadSummary",
    "ValidationError",
    "banner_for",
    "create_journal_service",
    "decide_turn",
    "detect_paths",
    "next_mode",
]
