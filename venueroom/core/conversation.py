"""Conversation state for venueroom.

Defines the per-peer record the protocol operates on:
- MeetupState: Consent artifacts of the meetup step
- ConversationState: Phase, starter, exchange count, history, meetup

Key design decisions:
- Immutable: every transition returns a new state via model_copy
- Ephemeral: states live only as long as the venue session
- Gating predicates live here so transitions and UI derivation share them
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .constants import (
    MAX_EXCHANGES,
    RESPONDER_MEETUP_MIN_EXCHANGES,
    STARTER_MEETUP_MIN_EXCHANGES,
)
from .events import ConversationEvent
from .types import Actor, ConversationPhase, LocationHint, MeetupAnswer


class MeetupState(BaseModel):
    """Meetup consent artifacts.

    Each field is written at most once per conversation.
    """

    model_config = ConfigDict(frozen=True)

    intent_asked_by: Actor | None = None
    intent_answer: MeetupAnswer | None = None
    location: LocationHint | None = None
    quick_hint: str | None = None

    @property
    def was_asked(self) -> bool:
        """Check if the one-shot meetup intent has been used."""
        return self.intent_asked_by is not None


class ConversationState(BaseModel):
    """Conversation with one peer, as seen by the local user."""

    model_config = ConfigDict(frozen=True)

    phase: ConversationPhase = ConversationPhase.IDLE
    starter: Actor | None = None  # Who sent the very first signal
    exchanges_count: int = Field(default=0, ge=0, le=MAX_EXCHANGES)
    history: tuple[ConversationEvent, ...] = Field(default_factory=tuple)
    meetup: MeetupState = Field(default_factory=MeetupState)

    @classmethod
    def initial(cls) -> ConversationState:
        """Create a fresh idle state."""
        return cls()

    @property
    def is_closed(self) -> bool:
        """Check if the conversation is over for the night."""
        return self.phase.is_terminal

    @property
    def last_event(self) -> ConversationEvent | None:
        """Most recent event, if any."""
        return self.history[-1] if self.history else None

    @property
    def last_actor(self) -> Actor | None:
        """Who acted last, if anyone."""
        last = self.last_event
        return last.actor if last is not None else None

    @property
    def is_your_turn(self) -> bool:
        """Check if the local user may send the next dialog reply.

        The turn passes on every event, so it belongs to you unless you
        performed the last one.
        """
        return self.last_actor is not Actor.YOU

    @property
    def dialog_complete(self) -> bool:
        """Check if the exchange cap has been reached."""
        return self.exchanges_count >= MAX_EXCHANGES

    @property
    def meetup_min_exchanges(self) -> int:
        """Exchanges required before you may ask to meet."""
        if self.starter is Actor.YOU:
            return STARTER_MEETUP_MIN_EXCHANGES
        return RESPONDER_MEETUP_MIN_EXCHANGES

    def can_send_dialog_reply(self) -> bool:
        """Check the gating rule for sending a dialog reply."""
        if self.phase is ConversationPhase.SIGNAL_RECEIVED:
            return not self.dialog_complete
        if self.phase is ConversationPhase.DIALOG:
            return not self.dialog_complete and self.is_your_turn
        return False

    def can_receive_dialog_reply(self) -> bool:
        """Check the gating rule for receiving a dialog reply."""
        return self.phase is ConversationPhase.DIALOG and not self.dialog_complete

    def can_propose_meetup(self) -> bool:
        """Check the gating rule for asking to meet.

        The starter needs STARTER_MEETUP_MIN_EXCHANGES, the other party only
        RESPONDER_MEETUP_MIN_EXCHANGES. The ask is one-shot.
        """
        if self.phase is not ConversationPhase.DIALOG or self.meetup.was_asked:
            return False
        return self.exchanges_count >= self.meetup_min_exchanges

    def can_share_location(self) -> bool:
        """Check if a location hint may be shared."""
        return (
            self.phase is ConversationPhase.MEETUP_ACCEPTED
            and self.meetup.location is None
        )

    def can_send_quick_hint(self) -> bool:
        """Check if the one-time quick hint is still available."""
        return (
            self.phase is ConversationPhase.LOCATION_SHARED
            and self.meetup.quick_hint is None
        )

    def with_event(self, event: ConversationEvent, **updates) -> ConversationState:
        """Return a new state with the event appended and fields updated."""
        return self.model_copy(
            update={"history": self.history + (event,), **updates}
        )

    def with_meetup(self, **updates) -> MeetupState:
        """Return the meetup record with the given fields updated."""
        return self.meetup.model_copy(update=updates)
