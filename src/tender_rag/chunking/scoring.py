"""Chunk tagging heuristics for tender text.

Infers a section category from a title, detects procurement key-terms, and
assigns each chunk an importance score used when ranking context.
"""

from __future__ import annotations

import re

from tender_rag.chunking.schemas import Category

BASE_IMPORTANCE = 5
MAX_IMPORTANCE = 10

# ---------------------------------------------------------------------------
# Category keywords, checked in order
# ---------------------------------------------------------------------------

_CATEGORY_KEYWORDS: list[tuple[Category, tuple[str, ...]]] = [
    (Category.ELIGIBILITY, ("eligib", "qualif", "pre-qualification")),
    (Category.TECHNICAL, ("technic", "method", "scope", "specification")),
    (Category.FINANCIAL, ("financ", "price", "cost", "payment", "emd")),
    (Category.EVALUATION, ("evalua", "criteria", "score", "marking")),
    (Category.TERMS, ("term", "condition", "legal", "general")),
    (Category.OVERVIEW, ("intro", "about", "overview")),
]

# ---------------------------------------------------------------------------
# Key-term detectors
# ---------------------------------------------------------------------------

_KEY_TERMS: list[tuple[str, re.Pattern[str]]] = [
    ("experience", re.compile(r"experience|years?\s+of|track\s+record", re.IGNORECASE)),
    ("certification", re.compile(r"iso|certification|certified|registration", re.IGNORECASE)),
    ("financial", re.compile(r"turnover|financial|revenue|capital", re.IGNORECASE)),
    ("emd", re.compile(r"emd|earnest\s+money|security\s+deposit", re.IGNORECASE)),
    ("penalty", re.compile(r"penalty|liquidated|damages", re.IGNORECASE)),
    ("warranty", re.compile(r"warranty|guarantee|defect", re.IGNORECASE)),
    ("payment", re.compile(r"payment|milestone|installment", re.IGNORECASE)),
    ("deadline", re.compile(r"deadline|submission|last\s+date", re.IGNORECASE)),
    ("technical", re.compile(r"technical|specification|methodology", re.IGNORECASE)),
    ("evaluation", re.compile(r"evaluation|scoring|marks", re.IGNORECASE)),
]

_OBLIGATION = re.compile(r"must|shall|mandatory|required|essential", re.IGNORECASE)
_CURRENCY = re.compile(
    r"₹|(?:(?<![a-z])(?:rs\.?|inr|usd)(?![a-z])|\$|€|£)\s*\d|crore|lakh",
    re.IGNORECASE,
)
_DURATION = re.compile(r"\d+\s*(?:days?|months?|years?)", re.IGNORECASE)


def infer_category(title: str | None) -> Category:
    """Map a section or document title to the category taxonomy."""
    lowered = (title or "").lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(k in lowered for k in keywords):
            return category
    return Category.GENERAL


def extract_key_terms(text: str | None) -> tuple[str, ...]:
    """Return the key-term categories detected in ``text``, in fixed order."""
    if not text:
        return ()
    return tuple(name for name, pattern in _KEY_TERMS if pattern.search(text))


def score_importance(text: str, is_mandatory: bool = False) -> int:
    """Score a chunk for importance on a 1-10 scale.

    Scoring rules:
        5   base
        +2  chunk comes from a mandatory section
        +1  per distinct key-term category detected
        +1  obligation language (must / shall / mandatory ...)
        +1  currency amount
        +1  duration in days / months / years
    """
    score = BASE_IMPORTANCE

    if is_mandatory:
        score += 2

    score += len(extract_key_terms(text))

    if _OBLIGATION.search(text):
        score += 1
    if _CURRENCY.search(text):
        score += 1
    if _DURATION.search(text):
        score += 1

    return min(score, MAX_IMPORTANCE)
