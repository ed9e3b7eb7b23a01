"""Foundational types for venueroom.

This module defines the closed vocabularies the protocol is built from:
- ConversationPhase: The discrete state of one peer's conversation
- Actor: Who performed an event (the local user or the peer)
- SignalType, MeetupAnswer, LocationHint: Preset payload choices
- Type aliases for identifiers
"""

from __future__ import annotations

from enum import Enum
from typing import NewType

# Type aliases for identifiers
PeerId = NewType("PeerId", str)
VenueId = NewType("VenueId", str)
EventId = NewType("EventId", str)


class ConversationPhase(Enum):
    """Phase of a single peer's conversation.

    Exactly one phase holds at a time. CLOSED is terminal: only a full
    reset leaves it.
    """

    IDLE = "idle"
    SIGNAL_SENT = "signal_sent"
    SIGNAL_RECEIVED = "signal_received"
    DIALOG = "dialog"
    MEETUP_INTENT_SENT = "meetup_intent_sent"
    MEETUP_ACCEPTED = "meetup_accepted"
    LOCATION_SHARED = "location_shared"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        """Check if no action other than a reset can leave this phase."""
        return self is ConversationPhase.CLOSED


class Actor(Enum):
    """Who performed an event."""

    YOU = "you"
    THEM = "them"


class SignalType(Enum):
    """Low-commitment gestures used to open contact."""

    WAVE = "wave"
    WINK = "wink"
    POKE = "poke"

    @property
    def label(self) -> str:
        """Display label for this signal."""
        return _SIGNAL_LABELS[self]

    @property
    def emoji(self) -> str:
        """Display emoji for this signal."""
        return _SIGNAL_EMOJI[self]


class MeetupAnswer(Enum):
    """Peer's answer to a request to meet in person."""

    YES = "yes"
    MAYBE = "maybe"
    NOT_TONIGHT = "not_tonight"

    @property
    def closes_conversation(self) -> bool:
        """Check if this answer ends the conversation for the night."""
        return self is not MeetupAnswer.YES


class LocationHint(Enum):
    """Coarse, preset location phrases shared after mutual meetup consent."""

    NEAR_BAR = "near_bar"
    NEAR_ENTRANCE = "near_entrance"
    BY_COUNTER = "by_counter"

    @property
    def label(self) -> str:
        """Display label for this hint."""
        return _LOCATION_LABELS[self]


# Lookup tables for display properties
_SIGNAL_LABELS: dict[SignalType, str] = {
    SignalType.WAVE: "Wave",
    SignalType.WINK: "Wink",
    SignalType.POKE: "Poke",
}

_SIGNAL_EMOJI: dict[SignalType, str] = {
    SignalType.WAVE: "\U0001F44B",
    SignalType.WINK: "\U0001F609",
    SignalType.POKE: "\U0001F449",
}

_LOCATION_LABELS: dict[LocationHint, str] = {
    LocationHint.NEAR_BAR: "I'm near the bar",
    LocationHint.NEAR_ENTRANCE: "I'm near the entrance",
    LocationHint.BY_COUNTER: "I'm by the counter",
}
