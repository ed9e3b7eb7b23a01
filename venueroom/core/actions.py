"""Action types for venueroom.

Actions are discrete requests against one peer's conversation: gestures of
the local user, or events originating from the peer. Each action type is a
frozen Pydantic model with a type discriminator. The transition function
validates and applies them, producing a TransitionResult.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator

from .constants import DialogReply
from .conversation import ConversationState
from .events import ConversationEvent
from .types import LocationHint, MeetupAnswer, SignalType


class BaseAction(BaseModel):
    """Base class for all actions.

    All actions have a type discriminator field.
    """

    model_config = ConfigDict(frozen=True)

    # True for actions that only ever come from the peer side
    peer_originated: ClassVar[bool] = False


# --- Signals ---


class SendSignalAction(BaseAction):
    """Open contact with a gesture."""

    type: Literal["send_signal"] = "send_signal"
    signal: SignalType


class ReceiveSignalAction(BaseAction):
    """The peer signalled, either first or in answer to your signal."""

    type: Literal["receive_signal"] = "receive_signal"
    peer_originated: ClassVar[bool] = True
    signal: SignalType


# --- Dialog ---


class SendDialogReplyAction(BaseAction):
    """Send one of the canned dialog replies."""

    type: Literal["send_dialog_reply"] = "send_dialog_reply"
    reply: DialogReply


class ReceiveDialogReplyAction(BaseAction):
    """The peer sent a canned dialog reply."""

    type: Literal["receive_dialog_reply"] = "receive_dialog_reply"
    peer_originated: ClassVar[bool] = True
    reply: DialogReply


# --- Meetup ---


class SendMeetupIntentAction(BaseAction):
    """Ask, once, to meet in person."""

    type: Literal["send_meetup_intent"] = "send_meetup_intent"


class ReceiveMeetupResponseAction(BaseAction):
    """The peer answered the meetup request."""

    type: Literal["receive_meetup_response"] = "receive_meetup_response"
    peer_originated: ClassVar[bool] = True
    answer: MeetupAnswer


class DeclineMeetupAction(BaseAction):
    """Opt out before asking to meet. Closes the conversation."""

    type: Literal["decline_meetup"] = "decline_meetup"


# --- Coordination ---


class ShareLocationAction(BaseAction):
    """Share a coarse location hint after mutual consent."""

    type: Literal["share_location"] = "share_location"
    location: LocationHint


class SendQuickHintAction(BaseAction):
    """Send the one-time free-text visual clue."""

    type: Literal["send_quick_hint"] = "send_quick_hint"
    text: str


class ExpireCoordinationAction(BaseAction):
    """The find-each-other window ran out."""

    type: Literal["expire_coordination"] = "expire_coordination"
    peer_originated: ClassVar[bool] = True


# --- State ---


class ResetAction(BaseAction):
    """Discard the conversation and start over from idle."""

    type: Literal["reset"] = "reset"


# --- Discriminated Union ---


ConversationAction = Annotated[
    Union[
        # Signals
        SendSignalAction,
        ReceiveSignalAction,
        # Dialog
        SendDialogReplyAction,
        ReceiveDialogReplyAction,
        # Meetup
        SendMeetupIntentAction,
        ReceiveMeetupResponseAction,
        DeclineMeetupAction,
        # Coordination
        ShareLocationAction,
        SendQuickHintAction,
        ExpireCoordinationAction,
        # State
        ResetAction,
    ],
    Discriminator("type"),
]


# --- Transition Result ---


@dataclass(frozen=True)
class TransitionResult:
    """Result of applying an action to a conversation.

    Attributes:
        accepted: Whether the action was legal
        state: The new state, or the unchanged input state on rejection
        event: The event appended to history (None on rejection or reset)
        reason: Why the action was rejected (empty when accepted)
    """

    accepted: bool
    state: ConversationState
    event: ConversationEvent | None = None
    reason: str = ""

    @classmethod
    def ok(
        cls,
        state: ConversationState,
        event: ConversationEvent | None = None,
    ) -> TransitionResult:
        """Create an accepted result."""
        return cls(accepted=True, state=state, event=event)

    @classmethod
    def rejected(cls, state: ConversationState, reason: str) -> TransitionResult:
        """Create a rejected result carrying the untouched state."""
        return cls(accepted=False, state=state, reason=reason)
