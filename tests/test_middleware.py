"""Tests for the gateway middleware and the streaming restorer."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import copy
import logging
import pickle

import pytest

from pii_engine import (
    ComplianceViolationError, PiiCategory, RedactionContext, RedactMiddleware,
    StreamingRestorer, redact_input, restore_output,
)
from pii_engine import middleware
from pii_engine.middleware import NoopMiddleware


# ── redact_input() / restore_output() ────────────────────────────────

def test_redact_text_input():
    redacted, ctx = redact_input("Contact Jean Dupont at jean@example.com", tenant_id="t1")
    assert redacted == "Contact [PERSON_1] at [EMAIL_1]"
    assert ctx.tenant_id == "t1"
    assert ctx.pii_detected
    assert len(ctx.mappings) == 2


def test_restore_output_roundtrip():
    _, ctx = redact_input("Contact Jean Dupont at jean@example.com")
    restored = restore_output("I will contact [PERSON_1] at [EMAIL_1]", ctx)
    assert restored == "I will contact Jean Dupont at jean@example.com"


def test_redacts_last_user_message_only():
    messages = [
        {"role": "system", "content": "You are a helpful assistant."},
        {"role": "user", "content": "I'm bob@example.com"},
        {"role": "assistant", "content": "Hello!"},
        {"role": "user", "content": "Write to alice@example.com"},
    ]
    original = copy.deepcopy(messages)
    redacted, ctx = redact_input(messages)

    assert redacted[0] == messages[0]
    assert redacted[1]["content"] == "I'm bob@example.com"
    assert redacted[3] == {"role": "user", "content": "Write to [EMAIL_1]"}
    assert messages == original  # caller's list untouched
    assert ctx.mappings[0].original_value == "alice@example.com"


def test_no_pii_passes_input_through():
    text = "What is the weather like?"
    redacted, ctx = redact_input(text)
    assert redacted is text
    assert not ctx.pii_detected
    assert restore_output("Sunny [PERSON_1]", ctx) == "Sunny [PERSON_1]"


def test_no_user_message():
    messages = [{"role": "system", "content": "jean@example.com"}]
    redacted, ctx = redact_input(messages)
    assert redacted is messages
    assert not ctx.pii_detected


def test_skip_categories():
    redacted, ctx = redact_input(
        "Contact Jean Dupont at jean@example.com",
        skip_categories=frozenset({PiiCategory.EMAIL}),
    )
    assert redacted == "Contact [PERSON_1] at jean@example.com"
    assert {m.category for m in ctx.mappings} == {PiiCategory.PERSON}


def test_leak_blocks_request(monkeypatch):
    monkeypatch.setattr(middleware, "validate_masked_text", lambda text, mappings: False)
    with pytest.raises(ComplianceViolationError):
        redact_input("Contact Jean Dupont")


def test_detector_error_propagates_by_default(monkeypatch):
    def broken(text):
        raise RuntimeError("boom")

    monkeypatch.setattr(middleware, "detect", broken)
    with pytest.raises(RuntimeError):
        redact_input("Contact Jean Dupont")


def test_fail_open_passes_input_through(monkeypatch):
    def broken(text):
        raise RuntimeError("boom")

    monkeypatch.setattr(middleware, "detect", broken)
    redacted, ctx = redact_input("Contact Jean Dupont", fail_open=True)
    assert redacted == "Contact Jean Dupont"
    assert not ctx.pii_detected


def test_audit_log_has_no_values(caplog):
    with caplog.at_level(logging.INFO, logger="pii_engine.middleware"):
        redact_input("Contact Jean Dupont at jean@example.com", tenant_id="t1")
    assert "llm.pii_detected" in caplog.text
    assert "EMAIL,PERSON" in caplog.text
    assert "Jean Dupont" not in caplog.text
    assert "jean@example.com" not in caplog.text


def test_detection_and_completion_events(caplog):
    with caplog.at_level(logging.INFO, logger="pii_engine.middleware"):
        redact_input("Contact Jean Dupont at jean@example.com", tenant_id="t1", actor_id="u1")
    records = [r for r in caplog.records if r.name == "pii_engine.middleware"]
    messages = [r.getMessage() for r in records]
    assert messages[0] == "llm.pii_detected types=EMAIL,PERSON count=2"
    assert messages[1].startswith("llm.pii_redaction_completed count=2 duration_ms=")
    assert all(r.tenant_id == "t1" and r.actor_id == "u1" for r in records)


def test_no_events_without_pii(caplog):
    with caplog.at_level(logging.INFO, logger="pii_engine.middleware"):
        redact_input("What is the weather like?")
    assert not [r for r in caplog.records if r.name == "pii_engine.middleware"]


# ── RedactionContext ─────────────────────────────────────────────────

def test_context_cannot_be_pickled():
    _, ctx = redact_input("Contact Jean Dupont")
    with pytest.raises(TypeError):
        pickle.dumps(ctx)


def test_context_repr_hides_values():
    _, ctx = redact_input("Contact Jean Dupont at jean@example.com")
    assert "Jean Dupont" not in repr(ctx)
    assert "jean@example.com" not in repr(ctx)


def test_contexts_are_per_request():
    _, ctx1 = redact_input("a@example.com")
    _, ctx2 = redact_input("b@example.com")
    assert ctx1.mappings[0].token == ctx2.mappings[0].token == "[EMAIL_1]"
    assert restore_output("[EMAIL_1]", ctx1) == "a@example.com"
    assert restore_output("[EMAIL_1]", ctx2) == "b@example.com"


# ── RedactMiddleware ─────────────────────────────────────────────────

def test_middleware_roundtrip():
    mw = RedactMiddleware()
    safe, ctx = mw.pre_send([{"role": "user", "content": "My email is bob@test.com"}])
    assert "bob@test.com" not in safe[0]["content"]
    assert mw.post_receive("Noted: [EMAIL_1]", ctx) == "Noted: bob@test.com"


def test_noop_middleware():
    mw = NoopMiddleware()
    messages = [{"role": "user", "content": "My email is bob@test.com"}]
    safe, ctx = mw.pre_send(messages, tenant_id="t1")
    assert safe is messages
    assert ctx == RedactionContext(tenant_id="t1")
    assert mw.post_receive("[EMAIL_1]", ctx) == "[EMAIL_1]"


# ── StreamingRestorer ────────────────────────────────────────────────

def _ctx():
    _, ctx = redact_input("Contact Jean Dupont at jean@example.com")
    return ctx


def test_streaming_tokens_split_across_chunks():
    restorer = StreamingRestorer(_ctx().mappings)
    out = restorer.feed("Hello [PER")
    out += restorer.feed("SON_1], mail ")
    out += restorer.feed("[EMA")
    out += restorer.feed("IL_")
    out += restorer.feed("1] done")
    out += restorer.flush()
    assert out == "Hello Jean Dupont, mail jean@example.com done"


def test_streaming_emits_plain_text_immediately():
    restorer = StreamingRestorer(_ctx().mappings)
    assert restorer.feed("Hello ") == "Hello "
    assert restorer.feed("[PERSON") == ""


def test_streaming_non_token_brackets():
    restorer = StreamingRestorer(_ctx().mappings)
    assert restorer.feed("see [note] and [1]") == "see [note] and [1]"


def test_streaming_unknown_token_kept():
    restorer = StreamingRestorer(_ctx().mappings)
    assert restorer.feed("[PHONE_9]!") == "[PHONE_9]!"


def test_streaming_flush_partial():
    restorer = StreamingRestorer(_ctx().mappings)
    assert restorer.feed("end [EMA") == "end "
    assert restorer.flush() == "[EMA"


def test_streaming_gives_up_on_long_prefix():
    restorer = StreamingRestorer(_ctx().mappings, max_token_len=8)
    assert restorer.feed("[ABCDEFGHIJKL") == "[ABCDEFGHIJKL"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
