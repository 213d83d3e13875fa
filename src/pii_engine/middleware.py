"""LLM gateway middleware: mask PII before a request leaves the trust
boundary, restore it in the model's answer.

Usage as functions:

    redacted, ctx = redact_input(messages, tenant_id="t1")
    answer = provider.complete(redacted)
    real_answer = restore_output(answer, ctx)

Usage as an object:

    mw = RedactMiddleware()
    safe_messages, ctx = mw.pre_send(messages, tenant_id="t1")
    real_text = mw.post_receive(response_text, ctx)

The context holds the token mappings for one request.  It lives in
memory only: it cannot be pickled and its repr never shows a value.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field

from .detector import detect
from .exceptions import ComplianceViolationError
from .masker import mask, restore, summarize, validate_masked_text
from .types import PiiCategory, PiiMapping

logger = logging.getLogger(__name__)

Messages = list[dict]
LlmInput = str | Messages


@dataclass(frozen=True)
class RedactionContext:
    """Mappings needed to restore one request's model output."""

    tenant_id: str | None
    mappings: tuple[PiiMapping, ...] = field(default=(), repr=False)

    @property
    def pii_detected(self) -> bool:
        return len(self.mappings) > 0

    def __getstate__(self) -> dict:
        raise TypeError("RedactionContext holds PII mappings and cannot be serialized")

    def __reduce_ex__(self, protocol: object) -> tuple:
        raise TypeError("RedactionContext holds PII mappings and cannot be serialized")


def redact_input(
    llm_input: LlmInput,
    *,
    tenant_id: str | None = None,
    actor_id: str | None = None,
    skip_categories: frozenset[PiiCategory] = frozenset(),
    fail_open: bool = False,
    content_key: str = "content",
) -> tuple[LlmInput, RedactionContext]:
    """Mask PII in a prompt string or in the last user message.

    Raises:
        ComplianceViolationError: If the masked text still contains an
            original value.  The input must not be forwarded.
    """
    started = time.perf_counter()
    log_ctx = {"tenant_id": tenant_id, "actor_id": actor_id}
    empty = RedactionContext(tenant_id=tenant_id)

    text, msg_index = _extract_text(llm_input, content_key)
    if not text or not text.strip():
        return llm_input, empty

    try:
        detection = detect(text)
        entities = [e for e in detection.entities if e.category not in skip_categories]
        if not entities:
            return llm_input, empty
        result = mask(text, entities)
    except Exception:
        if not fail_open:
            raise
        logger.warning("llm.pii_redaction_error", extra=log_ctx, exc_info=True)
        return llm_input, empty

    if not validate_masked_text(result.masked_text, result.mappings):
        logger.error("llm.pii_redaction_leak", extra=log_ctx)
        raise ComplianceViolationError("masked text still contains PII; request blocked")

    summary = summarize(result.mappings)
    logger.info(
        "llm.pii_detected types=%s count=%d",
        ",".join(sorted(c.value for c in summary.categories)),
        summary.count,
        extra=log_ctx,
    )

    redacted = _replace_text(llm_input, msg_index, result.masked_text, content_key)
    context = RedactionContext(tenant_id=tenant_id, mappings=result.mappings)
    logger.info(
        "llm.pii_redaction_completed count=%d duration_ms=%d",
        result.mask_count,
        round((time.perf_counter() - started) * 1000),
        extra=log_ctx,
    )
    return redacted, context


def restore_output(text: str, context: RedactionContext) -> str:
    """Put the original values back into the model's output."""
    if not context.pii_detected:
        return text
    return restore(text, context.mappings)


def _extract_text(llm_input: LlmInput, content_key: str) -> tuple[str, int | None]:
    """Return the text to analyse and, for message lists, its index."""
    if isinstance(llm_input, str):
        return llm_input, None
    for idx in range(len(llm_input) - 1, -1, -1):
        msg = llm_input[idx]
        content = msg.get(content_key)
        if msg.get("role") == "user" and isinstance(content, str):
            return content, idx
    return "", None


def _replace_text(
    llm_input: LlmInput,
    msg_index: int | None,
    masked: str,
    content_key: str,
) -> LlmInput:
    """Swap in the masked text without mutating the caller's input."""
    if isinstance(llm_input, str):
        return masked
    out = list(llm_input)
    out[msg_index] = {**out[msg_index], content_key: masked}
    return out


@dataclass
class RedactMiddleware:
    """Middleware that sits between client and LLM provider.

    Holds configuration only; every call gets its own context.
    """

    skip_categories: frozenset[PiiCategory] = frozenset()
    fail_open: bool = False

    def pre_send(
        self,
        messages: LlmInput,
        *,
        tenant_id: str | None = None,
        actor_id: str | None = None,
    ) -> tuple[LlmInput, RedactionContext]:
        """Redact PII from an outbound prompt."""
        return redact_input(
            messages,
            tenant_id=tenant_id,
            actor_id=actor_id,
            skip_categories=self.skip_categories,
            fail_open=self.fail_open,
        )

    def post_receive(self, text: str, context: RedactionContext) -> str:
        """Restore tokens in the model's response."""
        return restore_output(text, context)


class NoopMiddleware:
    """Pass-through middleware when redaction is disabled."""

    def pre_send(
        self,
        messages: LlmInput,
        *,
        tenant_id: str | None = None,
        actor_id: str | None = None,
    ) -> tuple[LlmInput, RedactionContext]:
        return messages, RedactionContext(tenant_id=tenant_id)

    def post_receive(self, text: str, context: RedactionContext) -> str:
        return text
