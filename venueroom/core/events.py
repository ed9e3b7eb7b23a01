"""Event types for venueroom.

Events are the append-only history of a conversation with one peer. The
history is the sole source of truth for rendering what happened, and it
can be replayed through the transition function to rebuild the state.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator

from .constants import DialogReply
from .types import Actor, EventId, LocationHint, MeetupAnswer, SignalType


class BaseEvent(BaseModel):
    """Base class for all conversation events.

    All events carry an id, the acting party and a timestamp.
    """

    model_config = ConfigDict(frozen=True)

    id: EventId
    actor: Actor
    timestamp: datetime

    @property
    def payload(self) -> dict[str, Any]:
        """Type-specific fields of this event."""
        return self.model_dump(mode="json", exclude={"id", "type", "actor", "timestamp"})


# --- Signals ---


class SignalSentEvent(BaseEvent):
    """You sent the opening signal."""

    type: Literal["signal_sent"] = "signal_sent"
    signal: SignalType


class SignalReceivedEvent(BaseEvent):
    """The peer sent a signal (opening, or answering yours)."""

    type: Literal["signal_received"] = "signal_received"
    signal: SignalType


# --- Dialog ---


class DialogSentEvent(BaseEvent):
    """You sent a canned dialog reply."""

    type: Literal["dialog_sent"] = "dialog_sent"
    reply: DialogReply


class DialogReceivedEvent(BaseEvent):
    """The peer sent a canned dialog reply."""

    type: Literal["dialog_received"] = "dialog_received"
    reply: DialogReply


# --- Meetup ---


class MeetupIntentSentEvent(BaseEvent):
    """You asked to meet in person."""

    type: Literal["meetup_intent_sent"] = "meetup_intent_sent"


class MeetupIntentReceivedEvent(BaseEvent):
    """The peer asked to meet in person.

    Reserved for a peer-synchronized session. No local action produces it,
    so a history containing it cannot be replayed locally.
    """

    type: Literal["meetup_intent_received"] = "meetup_intent_received"


class MeetupResponseEvent(BaseEvent):
    """The peer answered your request to meet."""

    type: Literal["meetup_response"] = "meetup_response"
    answer: MeetupAnswer


class MeetupDeclinedEvent(BaseEvent):
    """You chose not to ask to meet, closing the conversation."""

    type: Literal["meetup_declined"] = "meetup_declined"


# --- Coordination ---


class LocationSharedEvent(BaseEvent):
    """You shared a coarse location hint."""

    type: Literal["location_shared"] = "location_shared"
    location: LocationHint


class QuickHintSentEvent(BaseEvent):
    """You sent the one-time free-text hint."""

    type: Literal["quick_hint_sent"] = "quick_hint_sent"
    text: str


class CoordinationExpiredEvent(BaseEvent):
    """The window for finding each other ran out."""

    type: Literal["coordination_expired"] = "coordination_expired"


# --- Discriminated Union ---


ConversationEvent = Annotated[
    Union[
        # Signals
        SignalSentEvent,
        SignalReceivedEvent,
        # Dialog
        DialogSentEvent,
        DialogReceivedEvent,
        # Meetup
        MeetupIntentSentEvent,
        MeetupIntentReceivedEvent,
        MeetupResponseEvent,
        MeetupDeclinedEvent,
        # Coordination
        LocationSharedEvent,
        QuickHintSentEvent,
        CoordinationExpiredEvent,
    ],
    Discriminator("type"),
]
