"""Masker / Restorer: reversible token substitution for detected PII.

Usage:
    from pii_engine import detect, mask, restore

    text = "Contact Jean Dupont at jean@example.com"
    result = mask(text, detect(text).entities)
    result.masked_text     # "Contact [PERSON_1] at [EMAIL_1]"

    reply = "I will write to [EMAIL_1]."
    restore(reply, result.mappings)   # "I will write to jean@example.com."

Mappings live in memory for the duration of one request.  They must never
be written to storage, logs or caches; ``summarize`` is the only view of
masking activity that is safe to audit.
"""

from __future__ import annotations
import re
from collections import defaultdict
from typing import Iterable, Sequence

from .types import PiiCategory, PiiEntity, PiiMapping, PiiMaskingResult, PiiSummary


# Token format: [TYPE_N]. The closing bracket keeps [EMAIL_1] from being
# a prefix of [EMAIL_10]
_TOKEN_FMT = "[{type}_{idx}]"
TOKEN_RE = re.compile(r"\[([A-Z]+)_(\d+)\]")


class _TokenTable:
    """Value -> token table for a single ``mask`` call.

    Created inside ``mask`` and dropped when it returns; never stored on a
    module, class or caller object.
    """

    __slots__ = ("_value_to_token", "_counters", "mappings")

    def __init__(self) -> None:
        self._value_to_token: dict[str, str] = {}   # "john@x.com" -> [EMAIL_1]
        self._counters: dict[PiiCategory, int] = defaultdict(int)
        self.mappings: list[PiiMapping] = []

    def get_or_create_token(self, category: PiiCategory, original: str) -> str:
        """Return the existing token for this value or mint the next one."""
        token = self._value_to_token.get(original)
        if token is not None:
            return token

        self._counters[category] += 1
        token = _TOKEN_FMT.format(type=category.value, idx=self._counters[category])

        self._value_to_token[original] = token
        self.mappings.append(PiiMapping(
            token=token,
            original_value=original,
            category=category,
        ))
        return token


def mask(text: str, entities: Sequence[PiiEntity]) -> PiiMaskingResult:
    """Replace each entity span with a token.

    Args:
        text: The original text.
        entities: Detected entities sorted by start offset (ascending).

    Returns:
        A ``PiiMaskingResult``; identical values share one token.
    """
    if not text or not entities:
        return PiiMaskingResult(masked_text=text, original_text=text)

    table = _TokenTable()
    chunks: list[str] = []
    cursor = 0
    for ent in entities:
        if ent.start < cursor:
            # Region already consumed by a previous entity.
            continue
        token = table.get_or_create_token(ent.category, ent.value)
        chunks.append(text[cursor:ent.start])
        chunks.append(token)
        cursor = ent.end
    chunks.append(text[cursor:])

    return PiiMaskingResult(
        masked_text="".join(chunks),
        original_text=text,
        mappings=tuple(table.mappings),
    )


def restore(masked_text: str, mappings: Iterable[PiiMapping]) -> str:
    """Replace every known token in text with its original value.

    Tokens are matched whole, in a single pass, so replacement order does
    not matter and restored values are never re-scanned.  Tokens with no
    mapping are left as-is.
    """
    lookup = {m.token: m.original_value for m in mappings}
    if not masked_text or not lookup:
        return masked_text

    return TOKEN_RE.sub(lambda m: lookup.get(m.group(), m.group()), masked_text)


def validate_masked_text(masked_text: str, mappings: Iterable[PiiMapping]) -> bool:
    """False if any original value still appears verbatim in the masked text.

    This is the last check before text crosses the trust boundary; callers
    must treat False as a hard stop.
    """
    return not any(m.original_value in masked_text for m in mappings)


def summarize(mappings: Iterable[PiiMapping]) -> PiiSummary:
    """Categories and count of masked values, never the values themselves."""
    mappings = list(mappings)
    return PiiSummary(
        categories=frozenset(m.category for m in mappings),
        count=len(mappings),
    )


get_summary = summarize
