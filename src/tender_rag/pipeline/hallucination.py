"""Heuristic check that formatting did not invent amounts or dates.

Amounts and dates found in the formatted output must also appear in the
extracted facts. The check is advisory: it reports, it never blocks.
"""

from __future__ import annotations

import json
import re

from tender_rag.pipeline.schemas import (
    ExtractedFactSet,
    FormattedPresentation,
    HallucinationReport,
)

_AMOUNT = re.compile(
    r"(?:₹|(?<![a-z])(?:rs\.?|inr)(?![a-z])|\$|€|£)\s*\d[\d,]*(?:\.\d+)?"
    r"(?:\s*(?:lakhs?|crores?|million|billion))?",
    re.IGNORECASE,
)

_MONTHS = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*"
_DATES = (
    re.compile(r"\d{2}[/-]\d{2}[/-]\d{4}"),
    re.compile(r"\d{4}[/-]\d{2}[/-]\d{2}"),
    re.compile(rf"\d{{1,2}}\s+{_MONTHS}\s+\d{{4}}", re.IGNORECASE),
)

_AMOUNT_NOISE = re.compile(r"[\s,]")


def _normalize_amount(amount: str) -> str:
    return _AMOUNT_NOISE.sub("", amount.lower())


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def _confidence(issue_count: int) -> str:
    if issue_count == 0:
        return "high"
    if issue_count < 3:
        return "medium"
    return "low"


def validate_no_hallucination(
    facts: ExtractedFactSet,
    presentation: FormattedPresentation,
) -> HallucinationReport:
    """Flag amounts and dates present in ``presentation`` but not in ``facts``.

    Comparison is case-insensitive; amounts also ignore spaces and commas,
    so ``₹5,00,000`` matches ``₹ 500000``.
    """
    source = json.dumps(facts.to_dict(), ensure_ascii=False).lower()
    output = json.dumps(presentation.to_dict(), ensure_ascii=False).lower()

    issues: list[str] = []

    known_amounts = {_normalize_amount(a) for a in _AMOUNT.findall(source)}
    for amount in _unique(_AMOUNT.findall(output)):
        if _normalize_amount(amount) not in known_amounts:
            issues.append(f"Potential hallucinated amount: {amount.strip()}")

    for pattern in _DATES:
        known_dates = set(pattern.findall(source))
        for date in _unique(pattern.findall(output)):
            if date not in known_dates:
                issues.append(f"Potential hallucinated date: {date}")

    return HallucinationReport(
        is_valid=not issues,
        issues=issues,
        confidence=_confidence(len(issues)),
    )
