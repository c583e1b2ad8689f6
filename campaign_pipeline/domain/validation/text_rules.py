"""Text matching rules for placeholder and template-text detection.

Matching is plain substring search; placeholder patterns are matched
case-insensitively, generic phrases case-sensitively.
"""

import re
from typing import List, Optional

PLACEHOLDER_PATTERNS: List[str] = [
    "lorem ipsum",
    "placeholder",
    "todo",
    "tbd",
    "example text",
    "sample content",
    "default value",
]

# Longest first, so "Unknown Destination" wins over "Unknown"
GENERIC_PHRASES: List[str] = [
    "Travel market competition",
    "Advanced booking recommended",
    "Autumn travel trends",
    "Unknown Destination",
    "Travel industry",
    "Unknown",
]

_TEMPLATE_BRACES = re.compile(r"\{\{.*?\}\}|\{\{|\}\}", re.DOTALL)
_INSERT_MARKER = re.compile(r"\[\s*INSERT[^\]]*\]", re.IGNORECASE)
_ELLIPSIS_ONLY = re.compile(r"^[\s.…]+$")

SHORT_TEXT_LENGTH = 10


def find_placeholders(text: Optional[str]) -> List[str]:
    """Placeholder patterns contained in ``text``."""
    if not text:
        return []
    lowered = text.lower()
    return [pattern for pattern in PLACEHOLDER_PATTERNS if pattern in lowered]


def find_template_marker(text: Optional[str]) -> Optional[str]:
    """First template marker in ``text``: braces, [INSERT ...], or ellipsis-only."""
    if not text:
        return None
    for pattern in (_TEMPLATE_BRACES, _INSERT_MARKER):
        match = pattern.search(text)
        if match:
            return match.group(0)
    if _ELLIPSIS_ONLY.match(text) and any(c in text for c in ".…"):
        return text.strip()
    return None


def find_generic_phrase(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    for phrase in GENERIC_PHRASES:
        if phrase in text:
            return phrase
    return None


def is_short(text: Optional[str], minimum: int = SHORT_TEXT_LENGTH) -> bool:
    return text is not None and len(text.strip()) < minimum


def mentions(text: Optional[str], needle: Optional[str]) -> bool:
    """Case-insensitive containment; False when either side is empty."""
    if not text or not needle:
        return False
    return needle.strip().lower() in text.lower()
