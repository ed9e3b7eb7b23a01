"""History replay for venueroom conversations.

A conversation's history is an auditable record: every event maps back to
the action that produced it, so feeding those actions through the
transition function (with the recorded timestamps) rebuilds the exact
state. Replay is how an exported history is verified.

Histories serialize to JSON through a TypeAdapter over the event union.
"""

from __future__ import annotations

import logging
from typing import Sequence

from pydantic import TypeAdapter

from venueroom.core.conversation import ConversationState
from venueroom.core.events import (
    ConversationEvent,
    SignalSentEvent,
    SignalReceivedEvent,
    DialogSentEvent,
    DialogReceivedEvent,
    MeetupIntentSentEvent,
    MeetupResponseEvent,
    MeetupDeclinedEvent,
    LocationSharedEvent,
    QuickHintSentEvent,
    CoordinationExpiredEvent,
)
from venueroom.core.actions import (
    ConversationAction,
    SendSignalAction,
    ReceiveSignalAction,
    SendDialogReplyAction,
    ReceiveDialogReplyAction,
    SendMeetupIntentAction,
    ReceiveMeetupResponseAction,
    DeclineMeetupAction,
    ShareLocationAction,
    SendQuickHintAction,
    ExpireCoordinationAction,
)
from .transitions import transition

logger = logging.getLogger(__name__)

# TypeAdapter for serializing/deserializing a whole history
HistoryAdapter: TypeAdapter[tuple[ConversationEvent, ...]] = TypeAdapter(
    tuple[ConversationEvent, ...]
)


class ReplayError(Exception):
    """Raised when a history cannot be reproduced by the transition function."""

    def __init__(self, message: str, index: int):
        super().__init__(message)
        self.index = index


def action_for_event(event: ConversationEvent) -> ConversationAction | None:
    """Get the action that produces an event.

    Returns:
        The action, or None for events no local action produces.
    """
    match event:
        case SignalSentEvent():
            return SendSignalAction(signal=event.signal)
        case SignalReceivedEvent():
            return ReceiveSignalAction(signal=event.signal)
        case DialogSentEvent():
            return SendDialogReplyAction(reply=event.reply)
        case DialogReceivedEvent():
            return ReceiveDialogReplyAction(reply=event.reply)
        case MeetupIntentSentEvent():
            return SendMeetupIntentAction()
        case MeetupResponseEvent():
            return ReceiveMeetupResponseAction(answer=event.answer)
        case MeetupDeclinedEvent():
            return DeclineMeetupAction()
        case LocationSharedEvent():
            return ShareLocationAction(location=event.location)
        case QuickHintSentEvent():
            return SendQuickHintAction(text=event.text)
        case CoordinationExpiredEvent():
            return ExpireCoordinationAction()
        case _:
            return None


def replay(history: Sequence[ConversationEvent]) -> ConversationState:
    """Rebuild a conversation state from its history.

    Args:
        history: Events in the order they were appended

    Returns:
        The state the history leads to

    Raises:
        ReplayError: If an event has no local action, is rejected, or the
            rebuilt event differs from the recorded one
    """
    state = ConversationState.initial()
    for index, event in enumerate(history):
        action = action_for_event(event)
        if action is None:
            raise ReplayError(f"Event {event.id} ({event.type}) has no local action", index)

        result = transition(state, action, now=event.timestamp)
        if not result.accepted:
            raise ReplayError(f"Event {event.id} rejected on replay: {result.reason}", index)
        if result.event != event:
            raise ReplayError(f"Event {event.id} does not match its replay", index)

        state = result.state

    logger.debug(f"Replayed {len(history)} event(s) to phase {state.phase.value}")
    return state


def history_to_json(history: Sequence[ConversationEvent]) -> str:
    """Serialize a history to a JSON array."""
    return HistoryAdapter.dump_json(tuple(history)).decode("utf-8")


def history_from_json(data: str | bytes) -> tuple[ConversationEvent, ...]:
    """Parse a JSON array back into events."""
    return HistoryAdapter.validate_json(data)
