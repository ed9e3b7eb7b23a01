"""Shared constants for venueroom.

Centralizes the protocol limits and the static option sets so the
transition rules, the UI derivation and the hint validator agree.
"""

from typing import Literal, get_args

# Dialog limits
MAX_EXCHANGES = 5  # Dialog turns, both directions combined
STARTER_MEETUP_MIN_EXCHANGES = 3  # Whoever signalled first must build more rapport
RESPONDER_MEETUP_MIN_EXCHANGES = 1

# Quick hint limits
QUICK_HINT_MAX_LENGTH = 120
MIN_DIGIT_RUN = 6  # Phone numbers, even with separators

# Dialog replies are canned; free-form messaging is not offered
DialogReply = Literal[
    "I'm here with friends",
    "I'm just observing tonight",
    "Open to meeting new people",
    "Taking it easy tonight",
    "I'll be here for a while",
    "I might head home soon",
    "Happy to keep it light",
    "Let me buy you a drink",
]
DIALOG_REPLY_OPTIONS: tuple[str, ...] = get_args(DialogReply)

# Quick hint rejection copy. One generic message so the filter cannot be probed.
HINT_REJECTION_MESSAGE = "Please keep it to a visual clue (no contact details)."
HINT_EMPTY_MESSAGE = "Add a short visual clue first."
HINT_TOO_LONG_MESSAGE = f"Keep it under {QUICK_HINT_MAX_LENGTH} characters."

URL_MARKERS: tuple[str, ...] = ("http", "://", "www.", ".com", ".no")

# Matched anywhere in the lowercased text
BLOCKED_KEYWORDS: tuple[str, ...] = (
    "snap",
    "snapchat",
    "instagram",
    "insta",
    "ig",
    "phone",
    "number",
    "whatsapp",
    "telegram",
    "facebook",
    "fb",
    "twitter",
    "x.com",
    "tiktok",
    "email",
    "mail",
)
