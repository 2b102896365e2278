"""Thread topic tags.

Every thread is tagged with DEFAULT_PATH. detect_paths() is the keyword fallback
used when a caller wants to offer topic suggestions for a brain dump.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

from backend.app.journal.schema import Path

MAX_DETECTED_PATHS = 4

DEFAULT_PATH = Path(
    id="exploration",
    label="Exploration",
    description="A thoughtful exploration of what's on your mind",
)


@dataclass(frozen=True)
class KeywordTheme:
    keywords: Tuple[str, ...]
    path: Path


THEMES: Tuple[KeywordTheme, ...] = (
    KeywordTheme(
        keywords=("future", "job", "school", "career", "move", "moving", "decision", "decide",
                  "choice", "choices", "next", "plan", "plans"),
        path=Path(id="future", label="Fear of the Future",
                  description="Uncertainty about what's next and the choices ahead"),
    ),
    KeywordTheme(
        keywords=("friend", "girlfriend", "boyfriend", "partner", "relationship", "alone", "people",
                  "connection", "social", "family", "parent", "parents", "sibling"),
        path=Path(id="relationships", label="Connection & Relationships",
                  description="Thoughts about your connections with others"),
    ),
    KeywordTheme(
        keywords=("perfect", "enough", "should", "have to", "pressure", "expectations", "fail",
                  "failure", "wrong", "mistake", "anxious", "worry", "stress"),
        path=Path(id="pressure", label="Pressure to Get It Right",
                  description="The weight of expectations and perfectionism"),
    ),
    KeywordTheme(
        keywords=("who i am", "myself", "identity", "purpose", "meaning", "value", "worth", "lost",
                  "direction", "know who", "become", "becoming"),
        path=Path(id="identity", label="Who Am I Becoming?",
                  description="Questions about your sense of self and purpose"),
    ),
    KeywordTheme(
        keywords=("overwhelmed", "tired", "exhausted", "stuck", "trapped", "helpless", "hopeless",
                  "nothing", "pointless"),
        path=Path(id="overwhelm", label="Feeling Overwhelmed",
                  description="When everything feels like too much"),
    ),
    KeywordTheme(
        keywords=("sad", "depressed", "down", "lonely", "empty", "numb", "feel nothing", "dark", "bad"),
        path=Path(id="emotions", label="Emotional Weight",
                  description="The feelings that are sitting with you"),
    ),
)

DEFAULT_PATHS: Tuple[Path, ...] = (
    Path(id="overwhelm", label="Feeling Overwhelmed", description="When everything feels like too much"),
    Path(id="uncertainty", label="Not Sure What's Wrong",
         description="A sense that something's off, but unclear what"),
    Path(id="fear", label="Fear and Uncertainty", description="Anxiety about the unknown"),
    Path(id="clarity", label="Wanting Clarity", description="A desire to understand yourself better"),
)


def _keyword_pattern(keyword: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(keyword)}\w*\b", re.IGNORECASE)


_THEME_PATTERNS: Tuple[Tuple[KeywordTheme, Tuple[re.Pattern, ...]], ...] = tuple(
    (theme, tuple(_keyword_pattern(k) for k in theme.keywords)) for theme in THEMES
)


def score_themes(brain_dump: str) -> Dict[str, int]:
    scores: Dict[str, int] = {}
    for theme, patterns in _THEME_PATTERNS:
        score = sum(len(p.findall(brain_dump)) for p in patterns)
        if score > 0:
            scores[theme.path.id] = score
    return scores


def detect_paths(brain_dump: str) -> List[Path]:
    if not isinstance(brain_dump, str) or not brain_dump.strip():
        return list(DEFAULT_PATHS)

    scores = score_themes(brain_dump)
    ranked = [theme.path for theme in THEMES if theme.path.id in scores]
    # sorted() is stable, so equal scores keep theme order
    ranked = sorted(ranked, key=lambda p: scores[p.id], reverse=True)[:MAX_DETECTED_PATHS]
    return ranked or list(DEFAULT_PATHS)


__all__ = ["DEFAULT_PATH", "DEFAULT_PATHS", "THEMES", "KeywordTheme", "detect_paths", "score_themes"]
