"""Pattern registry: one compiled regex per PII category, plus the
PERSON whitelist.

Patterns are compiled once at import and never mutated.  Python's
``re.Pattern`` carries no scan cursor between calls, so every scan goes
through ``finditer``/``search`` and the same objects are safe to share
across threads.

PERSON detection is a heuristic (runs of capitalised words).  It has a
known false-positive rate on sentence openers, place names and titles;
the whitelist below mitigates the worst offenders but does not remove
the trade-off.
"""

from __future__ import annotations
import re
from types import MappingProxyType
from typing import Mapping

from .types import PiiCategory

# Known non-PII capitalised tokens: cities, acronyms, honorifics and the
# sentence openers that most often precede a name.
WHITELIST: frozenset[str] = frozenset({
    # Cities / places
    "Paris", "Lyon", "Marseille", "Toulouse", "Nice", "Nantes", "Strasbourg",
    "Montpellier", "Bordeaux", "Lille", "Rennes", "Reims", "Grenoble",
    "France", "Europe", "Bruxelles", "Genève",
    "Champs-Élysées", "Saint-Denis", "Saint-Étienne", "Île-de-France",
    # Protocols / acronyms
    "API", "REST", "HTTP", "HTTPS", "JSON", "RGPD", "GDPR", "CNIL", "DPIA",
    "Json", "Http", "Api",
    # Honorifics
    "Monsieur", "Madame", "Mademoiselle", "Docteur", "Maître", "Professeur",
    "Mr", "Mrs", "Ms", "Dr",
    # Sentence openers
    "Contact", "Contacter", "Bonjour", "Bonsoir", "Salut", "Merci", "Cher",
    "Chère", "Dear", "Hello", "Cordialement", "Objet",
})

# Name token: one capital (accented Latin aware) + 1-20 lowercase letters.
_UPPER = "A-ZÀ-ÖØ-Þ"
_LOWER = "a-zß-öø-ÿ"
_NAME_TOKEN = rf"[{_UPPER}][{_LOWER}]{{1,20}}"
_NAME_TOKEN_RE = re.compile(_NAME_TOKEN)

# Whitelisted single words can never serve as a name token, so
# "Contact Jean Dupont" yields "Jean Dupont" rather than the whole run.
_STOPWORDS = sorted(w for w in WHITELIST if _NAME_TOKEN_RE.fullmatch(w))
_NOT_STOPWORD = rf"(?!(?:{'|'.join(map(re.escape, _STOPWORDS))})(?![{_LOWER}]))"

_STREET_TYPES = r"rue|avenue|boulevard|bd|place|all[ée]e|impasse|chemin"

_PATTERNS: dict[PiiCategory, re.Pattern[str]] = {
    # Email: local@domain.tld, TLD of 2+ letters; starts only where a local-part run starts
    PiiCategory.EMAIL: re.compile(
        r"(?<![\w.%+\-])[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}\b"
    ),

    # French phone: 0X XX XX XX XX or +33 X XX XX XX XX, any separator
    PiiCategory.PHONE: re.compile(
        r"(?<![\d+])"
        r"(?:(?:\+|00)33[\s.\-]?[1-9]|0[1-9])"
        r"(?:[\s.\-]?\d{2}){4}"
        r"(?!\d)"
    ),

    # Person: 2 to 4 capitalised tokens joined by space or hyphen
    PiiCategory.PERSON: re.compile(
        rf"(?<!\w){_NOT_STOPWORD}{_NAME_TOKEN}"
        rf"(?:[ \-]{_NOT_STOPWORD}{_NAME_TOKEN}){{1,3}}"
        r"(?!\w)"
    ),

    # French postal address: 12 rue de la Paix, 75001 Paris
    PiiCategory.ADDRESS: re.compile(
        r"(?<![\w])\d{1,4}(?:\s?(?:bis|ter))?,?\s+"
        rf"(?i:{_STREET_TYPES})\s+"
        r"[^\n,]{1,80}?,\s*"
        r"\d{5}(?!\d)\s+"
        rf"[{_UPPER}][{_LOWER}]+(?:[\s\-][{_UPPER}][{_LOWER}]+)*"
    ),

    # French social security number (NIR): 13 digits + optional 2-digit key
    PiiCategory.SSN: re.compile(
        r"(?<![\w])[12]\s?\d{2}\s?\d{2}\s?\d{2}\s?\d{3}\s?\d{3}(?:\s?\d{2})?"
    ),

    # IBAN: country code, check digits, grouped alphanumeric blocks
    PiiCategory.IBAN: re.compile(
        r"\b[A-Z]{2}\d{2}(?:\s?[A-Z0-9]{4}){2,7}(?:\s?[A-Z0-9]{1,3})?\b"
    ),
}

# Registry iteration order is the tie-break order used by the detector.
PATTERNS: Mapping[PiiCategory, re.Pattern[str]] = MappingProxyType(_PATTERNS)


def get_pattern(category: PiiCategory) -> re.Pattern[str]:
    """Return the compiled pattern for a category."""
    return PATTERNS[category]


def is_whitelisted(candidate: str) -> bool:
    """Exact, trimmed, case-sensitive whitelist lookup."""
    return candidate.strip() in WHITELIST
