"""Grading normalization and grade-score parsing."""
import re
from typing import Any, Mapping, Optional, Sequence

from pokefolio.core.constants import GradingConstants

COMPANY_KEYS = ("company", "provider")
GRADE_KEYS = ("grade", "score", "value", "note", "rating")
CERTIFICATION_KEYS = ("certificationNumber", "certification_number", "certNumber", "certId")

_NUMBER_PATTERN = re.compile(r"\d+(?:[.,]\d+)?")


def _first_value(raw: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    """First non-empty value among ``keys``, coerced to a string."""
    for key in keys:
        value = raw.get(key)
        if value is None or isinstance(value, bool):
            continue
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def normalize_grading(raw: Any) -> Optional[dict]:
    """
    Normalize caller-supplied grading into ``{company, grade, certification_number}``.

    Callers send heterogeneous shapes (``provider`` instead of ``company``,
    ``score``/``value``/``note``/``rating`` instead of ``grade``, numeric grades,
    several certification key spellings). Keys are looked up in the priority
    order of ``COMPANY_KEYS``, ``GRADE_KEYS`` and ``CERTIFICATION_KEYS``.

    Returns:
        Canonical grading dict, or None when neither company nor grade resolves
    """
    if raw is None:
        return None
    if hasattr(raw, "model_dump"):
        raw = raw.model_dump(by_alias=True, exclude_none=True)
    if not isinstance(raw, Mapping):
        return None

    company = _first_value(raw, COMPANY_KEYS)
    grade = _first_value(raw, GRADE_KEYS)
    if not company and not grade:
        return None

    return {
        "company": company,
        "grade": grade,
        "certification_number": _first_value(raw, CERTIFICATION_KEYS),
    }


def parse_grade_score(grade: Optional[str]) -> float:
    """
    Numeric score of a free-form grade.

    "PSA 10" -> 10, "9.5" -> 9.5, "NEAR MINT" -> 8, unknown or empty -> 0.
    """
    if grade is None:
        return 0.0
    text = str(grade).strip()
    if not text:
        return 0.0

    match = _NUMBER_PATTERN.search(text)
    if match:
        return float(match.group(0).replace(",", "."))

    upper = text.upper()
    for phrase, score in GradingConstants.TEXTUAL_GRADE_SCORES:
        if phrase in upper:
            return score
    return 0.0


def best_graded_variant(variants: Optional[Sequence[dict]]) -> Optional[dict]:
    """Graded variant with the highest grade score; the first one seen wins ties."""
    best = None
    best_score = None
    for variant in variants or []:
        if not variant.get("graded") or not variant.get("grading"):
            continue
        score = parse_grade_score(variant["grading"].get("grade"))
        if best is None or score > best_score:
            best, best_score = variant, score
    return best
