"""Core domain models for venueroom.

This module contains pure domain models with no I/O. All models are immutable
(frozen Pydantic models) and use transformation methods for updates.

Usage:
    from venueroom.core import ConversationState, SendSignalAction, SignalType
"""

# Types
from .types import (
    PeerId,
    VenueId,
    EventId,
    ConversationPhase,
    Actor,
    SignalType,
    MeetupAnswer,
    LocationHint,
)

# Constants
from .constants import (
    MAX_EXCHANGES,
    STARTER_MEETUP_MIN_EXCHANGES,
    RESPONDER_MEETUP_MIN_EXCHANGES,
    QUICK_HINT_MAX_LENGTH,
    DIALOG_REPLY_OPTIONS,
    DialogReply,
    HINT_REJECTION_MESSAGE,
)

# Events
from .events import (
    BaseEvent,
    SignalSentEvent,
    SignalReceivedEvent,
    DialogSentEvent,
    DialogReceivedEvent,
    MeetupIntentSentEvent,
    MeetupIntentReceivedEvent,
    MeetupResponseEvent,
    MeetupDeclinedEvent,
    LocationSharedEvent,
    QuickHintSentEvent,
    CoordinationExpiredEvent,
    ConversationEvent,
)

# Conversation
from .conversation import MeetupState, ConversationState

# Actions
from .actions import (
    BaseAction,
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
    ResetAction,
    ConversationAction,
    TransitionResult,
)

# Hints
from .hints import validate_quick_hint, check_quick_hint

__all__ = [
    # Types
    "PeerId",
    "VenueId",
    "EventId",
    "ConversationPhase",
    "Actor",
    "SignalType",
    "MeetupAnswer",
    "LocationHint",
    # Constants
    "MAX_EXCHANGES",
    "STARTER_MEETUP_MIN_EXCHANGES",
    "RESPONDER_MEETUP_MIN_EXCHANGES",
    "QUICK_HINT_MAX_LENGTH",
    "DIALOG_REPLY_OPTIONS",
    "DialogReply",
    "HINT_REJECTION_MESSAGE",
    # Events
    "BaseEvent",
    "SignalSentEvent",
    "SignalReceivedEvent",
    "DialogSentEvent",
    "DialogReceivedEvent",
    "MeetupIntentSentEvent",
    "MeetupIntentReceivedEvent",
    "MeetupResponseEvent",
    "MeetupDeclinedEvent",
    "LocationSharedEvent",
    "QuickHintSentEvent",
    "CoordinationExpiredEvent",
    "ConversationEvent",
    # Conversation
    "MeetupState",
    "ConversationState",
    # Actions
    "BaseAction",
    "SendSignalAction",
    "ReceiveSignalAction",
    "SendDialogReplyAction",
    "ReceiveDialogReplyAction",
    "SendMeetupIntentAction",
    "ReceiveMeetupResponseAction",
    "DeclineMeetupAction",
    "ShareLocationAction",
    "SendQuickHintAction",
    "ExpireCoordinationAction",
    "ResetAction",
    "ConversationAction",
    "TransitionResult",
    # Hints
    "validate_quick_hint",
    "check_quick_hint",
]
