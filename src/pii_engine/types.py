"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class PiiCategory(str, Enum):
    """Categories of PII the engine can detect."""

    EMAIL = "EMAIL"
    PHONE = "PHONE"
    PERSON = "PERSON"
    ADDRESS = "ADDRESS"
    SSN = "SSN"
    IBAN = "IBAN"


class Severity(str, Enum):
    """Leak severity, ordered INFO < WARNING < CRITICAL."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {Severity.INFO: 0, Severity.WARNING: 1, Severity.CRITICAL: 2}


@dataclass(frozen=True, slots=True)
class PiiEntity:
    """A single detected PII entity."""
    category: PiiCategory
    value: str
    start: int
    end: int               # exclusive
    confidence: float = 1.0  # regex matches are deterministic


@dataclass(frozen=True, slots=True)
class PiiDetectionResult:
    """Entities found in one scan of one text, ascending by start offset."""
    original_text: str
    entities: tuple[PiiEntity, ...] = ()

    @property
    def total_count(self) -> int:
        return len(self.entities)

    @property
    def has_pii(self) -> bool:
        return bool(self.entities)

    @property
    def detected_categories(self) -> list[PiiCategory]:
        """Distinct categories, in order of first appearance."""
        return list(dict.fromkeys(e.category for e in self.entities))


@dataclass(frozen=True, slots=True)
class PiiMapping:
    """Pairing of a token with the value it replaced.

    Held in memory for one request only.  ``original_value`` is kept out
    of ``repr()`` so a stray debug print or log call cannot leak it.
    """
    token: str                                   # e.g. "[EMAIL_1]"
    original_value: str = field(repr=False)
    category: PiiCategory


@dataclass(frozen=True, slots=True)
class PiiMaskingResult:
    """Result of masking a text."""
    masked_text: str
    original_text: str = field(repr=False)
    mappings: tuple[PiiMapping, ...] = ()

    @property
    def mask_count(self) -> int:
        return len(self.mappings)


@dataclass(frozen=True, slots=True)
class PiiSummary:
    """Audit-safe view of masking activity: categories and count, no values."""
    categories: frozenset[PiiCategory]
    count: int

    def as_dict(self) -> dict[str, object]:
        return {
            "pii_types": sorted(c.value for c in self.categories),
            "pii_count": self.count,
        }


@dataclass(frozen=True, slots=True)
class LogLine:
    """One line of an application log, supplied by the caller."""
    content: str
    line_number: int
    timestamp: datetime | None = None
    level: str | None = None


@dataclass(frozen=True, slots=True)
class PiiLeakResult:
    """PII found in a single log line."""
    log_line: LogLine
    pii_types: frozenset[PiiCategory]
    pii_count: int
    severity: Severity


@dataclass(frozen=True, slots=True)
class PiiScanResult:
    """Aggregate result of scanning a batch of log lines."""
    total_lines: int
    leak_count: int
    leaks: tuple[PiiLeakResult, ...] = ()
    duration_ms: int = 0

    def count_by_severity(self) -> dict[Severity, int]:
        counts = {s: 0 for s in Severity}
        for leak in self.leaks:
            counts[leak.severity] += 1
        return counts
