import json
import logging

from backend.app.observability import hash_thread_id, safe_redact, structured_log


def test_hash_thread_id_is_stable_and_opaque():
    first = hash_thread_id("session_1700000000000_abc123def")
    assert first == hash_thread_id("session_1700000000000_abc123def")
    assert len(first) == 16
    assert "session" not in first
    assert hash_thread_id(None) == hash_thread_id("none")


def test_safe_redact_drops_free_text():
    event = {"event": "x", "prompt": "p", "brain_dump": "b", "answer": "a", "text": "t", "body": "y", "turn": 3}
    assert safe_redact(event) == {"event": "x", "turn": 3}
    assert safe_redact(None) == {}


def test_structured_log_writes_one_json_line(caplog):
    with caplog.at_level(logging.INFO, logger="backend.app.observability.logging"):
        structured_log({"event": "relay.completed", "prompt": "secret words", "latency_ms": 12})
    line = caplog.records[-1].getMessage()
    assert json.loads(line) == {"event": "relay.completed", "latency_ms": 12}


def test_structured_log_never_raises():
    structured_log({"event": "odd", "value": object()})
    structured_log("not a dict")
