"""
Issue Parser
============
Turns raw Gemini text output into a validated, ordered list of Issue records.

Parsing Strategy:
    1. Strip ```json / ``` fence markers anywhere in the text
    2. Direct json.loads — accepted only if it yields a list
    3. Greedy regex for the first bracket-delimited array (handles prose
       around the JSON), json.loads on that substring — list only
    4. Otherwise (or when the array is empty) return the fixed six-issue
       fallback set

Normalisation (per array element, never drops an element):
    id                      → index + 1 (any incoming id is ignored)
    title                   → string, "Untitled issue" when absent/unusable
    explanation / howToFix
    / suggestion            → string, "" when absent/unusable
    category                → one of CATEGORIES, else "UI"
    severity                → one of SEVERITIES, else "Medium"
    status                  → always "open"
    x / y                   → number clamped to [5, 95], 50 when absent or
                              non-numeric; integers too large for a float
                              clamp by sign

"Unusable" means None, a bool, a list or an object. Numbers are rendered
with str() so a numeric title survives. Numeric strings count as numbers
for x/y. Text nested too deeply for the JSON decoder yields the fallback set.

The parser is pure: same input, same output, no randomness or clock.
"""
import json
import logging
import math
import re
from typing import Any, List, Optional

from auditwise.core.constants import (
    CATEGORIES,
    DEFAULT_CATEGORY,
    DEFAULT_SEVERITY,
    DEFAULT_TITLE,
    POSITION_DEFAULT,
    POSITION_MAX,
    POSITION_MIN,
    SEVERITIES,
)
from auditwise.models.issue import Issue

logger = logging.getLogger(__name__)

_FENCE_JSON = re.compile(r"```json\s*", re.IGNORECASE)
_FENCE = re.compile(r"```\s*")
_ARRAY = re.compile(r"\[[\s\S]*\]")


# ---------------------------------------------------------------------------
# Fallback issue set
# ---------------------------------------------------------------------------
_FALLBACK_ISSUES: List[dict] = [
    {
        "title": "Low contrast body text",
        "category": "Accessibility",
        "severity": "High",
        "explanation": "The body text may not meet WCAG AA contrast requirements. "
                       "Ensure a minimum contrast ratio of 4.5:1 for normal text.",
        "howToFix": "Darken the text color or lighten the background to achieve the required contrast.",
        "suggestion": "Use #595959 or darker for body text on white backgrounds.",
        "x": 70, "y": 20,
    },
    {
        "title": "Inconsistent spacing",
        "category": "Layout",
        "severity": "Medium",
        "explanation": "Multiple spacing values detected that fall outside an 8px base grid. "
                       "This creates visual inconsistency.",
        "howToFix": "Audit all margin and padding values and align them to the 8px scale.",
        "suggestion": "Replace non-standard gaps (10px, 14px) with 8px or 16px values.",
        "x": 30, "y": 45,
    },
    {
        "title": "Missing focus indicators",
        "category": "UX",
        "severity": "Medium",
        "explanation": "Interactive elements may lack visible focus rings for keyboard navigation.",
        "howToFix": "Add focus-visible styles using outline or box-shadow.",
        "suggestion": "Add .focus-visible:ring-2 to all interactive elements.",
        "x": 55, "y": 65,
    },
    {
        "title": "Icon-only buttons without labels",
        "category": "Accessibility",
        "severity": "High",
        "explanation": "Icon-only buttons lack accessible text for screen readers.",
        "howToFix": "Add aria-label attributes to all icon-only interactive elements.",
        "suggestion": "Add aria-label='Action name' to all icon buttons.",
        "x": 80, "y": 15,
    },
    {
        "title": "Heading hierarchy skip",
        "category": "Content",
        "severity": "Medium",
        "explanation": "The page skips heading levels, breaking semantic document structure.",
        "howToFix": "Restructure headings to follow logical H1 → H2 → H3 sequence.",
        "suggestion": "Use CSS for visual sizing, not semantic heading levels.",
        "x": 40, "y": 30,
    },
    {
        "title": "Touch targets too small",
        "category": "UX",
        "severity": "Low",
        "explanation": "Some interactive elements may be smaller than the recommended "
                       "44×44px touch target.",
        "howToFix": "Increase the clickable area of small buttons and links.",
        "suggestion": "Use min-width: 44px; min-height: 44px for all interactive elements.",
        "x": 60, "y": 80,
    },
]


def fallback_issues() -> List[Issue]:
    """Return a fresh copy of the six canned issues."""
    return [normalize_issue(item, idx) for idx, item in enumerate(_FALLBACK_ISSUES)]


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------
def _as_text(value: Any, default: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _as_choice(value: Any, allowed: tuple, default: str) -> str:
    return value if isinstance(value, str) and value in allowed else default


def clamp_position(number: float) -> float:
    """Clamp a coordinate into the pin frame; NaN maps to the centre."""
    if math.isnan(number):
        return POSITION_DEFAULT
    return min(POSITION_MAX, max(POSITION_MIN, number))


def _as_position(value: Any) -> float:
    number: Optional[float] = None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            number = float(value)
        except OverflowError:
            # integer beyond float range: clamp by sign
            return POSITION_MAX if value > 0 else POSITION_MIN
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            number = None
    if number is None:
        return POSITION_DEFAULT
    return clamp_position(number)


def normalize_issue(item: Any, index: int) -> Issue:
    """
    Repair one array element into an Issue.

    Parameters
    ----------
    item : Any
        Decoded JSON element; anything other than an object is treated as
        an object with no fields.
    index : int
        0-based position in the array; the issue id becomes ``index + 1``.
    """
    if not isinstance(item, dict):
        item = {}
    return Issue(
        id=index + 1,
        title=_as_text(item.get("title"), DEFAULT_TITLE),
        category=_as_choice(item.get("category"), CATEGORIES, DEFAULT_CATEGORY),
        severity=_as_choice(item.get("severity"), SEVERITIES, DEFAULT_SEVERITY),
        status="open",
        explanation=_as_text(item.get("explanation"), ""),
        how_to_fix=_as_text(item.get("howToFix"), ""),
        suggestion=_as_text(item.get("suggestion"), ""),
        x=_as_position(item.get("x")),
        y=_as_position(item.get("y")),
    )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------
def _load_array(text: str) -> Optional[list]:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError, TypeError, RecursionError):
        return None
    return data if isinstance(data, list) else None


def parse_issues(raw: str) -> List[Issue]:
    """
    Parse raw AI output into issues, falling back to the canned set.

    Returns
    -------
    list[Issue]
        Never empty: an empty array is replaced by the fallback set too.
    """
    cleaned = _FENCE.sub("", _FENCE_JSON.sub("", raw or "")).strip()

    items = _load_array(cleaned)
    if items is None:
        match = _ARRAY.search(cleaned)
        if match:
            items = _load_array(match.group(0))

    if items is None:
        logger.warning("Could not parse AI response as an issue array, using fallback issues")
        return fallback_issues()
    if not items:
        logger.warning("AI response was an empty issue array, using fallback issues")
        return fallback_issues()

    return [normalize_issue(item, idx) for idx, item in enumerate(items)]
