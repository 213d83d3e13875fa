"""Detector: scans text against the pattern registry.

Usage:
    from pii_engine import detect

    result = detect("Contact Jean Dupont at jean@example.com")
    [(e.category, e.value) for e in result.entities]
    # [(PERSON, "Jean Dupont"), (EMAIL, "jean@example.com")]

Detection is deterministic and never raises on text input: anything a
pattern does not recognise simply yields no entity.
"""

from __future__ import annotations
import logging
import re

from .patterns import PATTERNS, is_whitelisted
from .types import PiiCategory, PiiDetectionResult, PiiEntity

logger = logging.getLogger(__name__)


def detect(text: str) -> PiiDetectionResult:
    """Detect every PII entity in text.

    Entities are sorted by start offset.  Same-offset ties keep registry
    order.  When spans from different categories overlap, the wider span
    is kept (first in registry order on equal width), so the result can be
    masked left to right without ambiguity.
    """
    if not _is_scannable(text):
        return _empty_result(text)

    entities: list[PiiEntity] = []
    for category, pattern in PATTERNS.items():
        entities.extend(_scan_category(text, category, pattern))

    entities.sort(key=lambda e: e.start)
    return PiiDetectionResult(original_text=text, entities=tuple(_drop_overlaps(entities)))


def detect_by_category(text: str, category: PiiCategory) -> PiiDetectionResult:
    """Detect entities of a single category only."""
    if not _is_scannable(text):
        return _empty_result(text)

    entities = _scan_category(text, category, PATTERNS[category])
    return PiiDetectionResult(original_text=text, entities=tuple(entities))


def contains_pii(text: str) -> bool:
    """Cheap pre-check: True as soon as any category matches."""
    if not _is_scannable(text):
        return False

    for category, pattern in PATTERNS.items():
        if category is PiiCategory.PERSON:
            # Only whitelisted runs may be skipped; stop at the first real one.
            for m in pattern.finditer(text):
                value, _, _ = _trim_person(m)
                if value and not is_whitelisted(value):
                    return True
        elif pattern.search(text) is not None:
            return True
    return False


# ----------------------------------------------------------------------
# Internals
# ----------------------------------------------------------------------

def _is_scannable(text: object) -> bool:
    return isinstance(text, str) and bool(text.strip())


def _empty_result(text: object) -> PiiDetectionResult:
    return PiiDetectionResult(original_text=text if isinstance(text, str) else "")


def _scan_category(
    text: str,
    category: PiiCategory,
    pattern: re.Pattern[str],
) -> list[PiiEntity]:
    """All non-overlapping matches of one pattern, whitelist applied."""
    entities: list[PiiEntity] = []
    for m in pattern.finditer(text):
        if category is PiiCategory.PERSON:
            value, start, end = _trim_person(m)
            if not value or is_whitelisted(value):
                continue
        else:
            value, start, end = m.group(), m.start(), m.end()

        entities.append(PiiEntity(
            category=category,
            value=value,
            start=start,
            end=end,
        ))
    return entities


def _trim_person(m: re.Match[str]) -> tuple[str, int, int]:
    """Strip leading/trailing non-letters from a PERSON match and shift the span."""
    raw = m.group()
    lead = 0
    while lead < len(raw) and not raw[lead].isalpha():
        lead += 1
    trail = len(raw)
    while trail > lead and not raw[trail - 1].isalpha():
        trail -= 1
    return raw[lead:trail], m.start() + lead, m.start() + trail


def _drop_overlaps(entities: list[PiiEntity]) -> list[PiiEntity]:
    """Remove overlapping entities, keeping the wider span.

    Args:
        entities: Sorted by start offset.
    """
    if len(entities) <= 1:
        return entities

    result: list[PiiEntity] = []
    for ent in entities:
        if result and ent.start < result[-1].end:
            prev = result[-1]
            if ent.end - ent.start > prev.end - prev.start:
                logger.debug(
                    "overlap: %s span replaces %s span at offset %d",
                    ent.category.value, prev.category.value, prev.start,
                )
                result[-1] = ent
        else:
            result.append(ent)
    return result
