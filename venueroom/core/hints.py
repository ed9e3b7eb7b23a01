"""Quick hint validation.

A quick hint is the only free text the protocol allows, so it is filtered
for anything that looks like contact details. Every rejection returns the
same generic message.
"""

from __future__ import annotations

import re

from .constants import (
    BLOCKED_KEYWORDS,
    HINT_EMPTY_MESSAGE,
    HINT_REJECTION_MESSAGE,
    HINT_TOO_LONG_MESSAGE,
    MIN_DIGIT_RUN,
    QUICK_HINT_MAX_LENGTH,
    URL_MARKERS,
)

_SEPARATORS = re.compile(r"[\s\-.]")
_DIGIT_RUN = re.compile(rf"\d{{{MIN_DIGIT_RUN},}}")


def validate_quick_hint(text: str) -> str | None:
    """Check hint text for contact information.

    Args:
        text: Hint text, already trimmed by the caller

    Returns:
        The rejection message if the text could leak contact details,
        None otherwise. Empty text is not this function's concern.
    """
    if not text:
        return None

    lower = text.lower()

    if "@" in lower:
        return HINT_REJECTION_MESSAGE

    if any(marker in lower for marker in URL_MARKERS):
        return HINT_REJECTION_MESSAGE

    if any(keyword in lower for keyword in BLOCKED_KEYWORDS):
        return HINT_REJECTION_MESSAGE

    if _DIGIT_RUN.search(_SEPARATORS.sub("", lower)):
        return HINT_REJECTION_MESSAGE

    return None


def check_quick_hint(text: str) -> str | None:
    """Apply the length rule and the contact filter to a hint.

    Returns:
        A user-facing message if the hint cannot be sent, None if it can.
    """
    trimmed = text.strip()
    if not trimmed:
        return HINT_EMPTY_MESSAGE
    if len(trimmed) > QUICK_HINT_MAX_LENGTH:
        return HINT_TOO_LONG_MESSAGE
    return validate_quick_hint(trimmed)
