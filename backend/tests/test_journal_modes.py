import pytest

from backend.app.journal.modes import (
    AFFIRMATIONS,
    Mode,
    TurnDecision,
    affirmation_triggered,
    decide_turn,
    mode_probe_requested,
    next_mode,
    pick_affirmation,
)
from backend.app.journal.schema import Answer


def _answers(*texts):
    return tuple(
        Answer(question_id=f"q_{i}", question_text=f"Question {i}?", answer=text, layer=1)
        for i, text in enumerate(texts)
    )


@pytest.mark.parametrize("turns", [0, 1, 2])
def test_early_turns_are_understanding(turns):
    assert next_mode(turns, False) is Mode.UNDERSTANDING


@pytest.mark.parametrize("turns", [3, 4, 10, 500])
def test_later_turns_are_depth(turns):
    assert next_mode(turns, False) is Mode.DEPTH


@pytest.mark.parametrize("turns", [0, 2, 3, 99])
def test_root_request_wins_regardless_of_turns(turns):
    assert next_mode(turns, True) is Mode.ROOT_CHALLENGE


def test_mode_labels():
    assert Mode.UNDERSTANDING.label == "UNDERSTANDING_MODE"
    assert Mode.DEPTH.label == "DEPTH_MODE"
    assert Mode.ROOT_CHALLENGE.label == "ROOT_CHALLENGE_MODE"


def test_affirmation_trigger_in_brain_dump_or_any_answer():
    assert affirmation_triggered("hello, I am   Olivia and things are hard", ())
    assert affirmation_triggered("things are hard", _answers("fine", "well i am olivia"))
    assert not affirmation_triggered("things are hard", _answers("olivia is my friend"))


def test_affirmations_cycle_by_answer_count():
    assert pick_affirmation(0) == AFFIRMATIONS[0]
    assert pick_affirmation(3) == AFFIRMATIONS[3]
    assert pick_affirmation(len(AFFIRMATIONS)) == AFFIRMATIONS[0]
    assert pick_affirmation(len(AFFIRMATIONS) + 2) == AFFIRMATIONS[2]


def test_decide_turn_without_bypass_needs_model():
    decision = decide_turn("work has been heavy lately", _answers("a", "b", "c"), False)
    assert decision == TurnDecision(mode=Mode.DEPTH)
    assert decision.needs_model


def test_decide_turn_affirmation_short_circuits():
    decision = decide_turn("I am Olivia and I feel stuck", _answers("x"), True)
    assert not decision.needs_model
    assert decision.bypass_text == AFFIRMATIONS[1]


def test_mode_probe_only_when_enabled():
    answers = _answers("something", " Q ")
    assert mode_probe_requested(answers)
    assert decide_turn("work has been heavy", answers, False).needs_model

    decision = decide_turn("work has been heavy", answers, False, probe_enabled=True)
    assert decision.bypass_text == "MODE: UNDERSTANDING_MODE"


def test_mode_probe_ignores_other_answers():
    assert not mode_probe_requested(())
    assert not mode_probe_requested(_answers("q is a letter"))
