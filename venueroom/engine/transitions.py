"""Transition function for venueroom conversations.

Applies one action to one peer's ConversationState and returns a
TransitionResult. The function is pure: it never mutates its input, never
raises for an illegal action and never logs. Rejections are routine
outcomes (a stale simulated reply, a button tapped twice) that the caller
may log or ignore.

Legality is checked in two steps:
1. ACCEPTING_PHASES: which phases an action kind may be applied in
2. The per-action handler: counters, turn order and one-shot rules
"""

from __future__ import annotations

from datetime import datetime, timedelta

from venueroom.core.types import Actor, ConversationPhase, EventId, MeetupAnswer
from venueroom.core.conversation import ConversationState
from venueroom.core.hints import check_quick_hint
from venueroom.core.events import (
    BaseEvent,
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
    BaseAction,
    ConversationAction,
    TransitionResult,
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
)


# -----------------------------------------------------------------------------
# Legality table
# -----------------------------------------------------------------------------

_P = ConversationPhase

# Phases each action kind may be applied in. Every member of the
# ConversationAction union must have an entry.
ACCEPTING_PHASES: dict[type[BaseAction], frozenset[ConversationPhase]] = {
    SendSignalAction: frozenset({_P.IDLE}),
    ReceiveSignalAction: frozenset({_P.IDLE, _P.SIGNAL_SENT}),
    SendDialogReplyAction: frozenset({_P.SIGNAL_RECEIVED, _P.DIALOG}),
    ReceiveDialogReplyAction: frozenset({_P.DIALOG}),
    SendMeetupIntentAction: frozenset({_P.DIALOG}),
    ReceiveMeetupResponseAction: frozenset({_P.MEETUP_INTENT_SENT}),
    DeclineMeetupAction: frozenset({_P.DIALOG}),
    ShareLocationAction: frozenset({_P.MEETUP_ACCEPTED}),
    SendQuickHintAction: frozenset({_P.LOCATION_SHARED}),
    ExpireCoordinationAction: frozenset({_P.MEETUP_ACCEPTED, _P.LOCATION_SHARED}),
    ResetAction: frozenset(ConversationPhase),
}


# -----------------------------------------------------------------------------
# Transition
# -----------------------------------------------------------------------------


def transition(
    state: ConversationState,
    action: ConversationAction,
    now: datetime | None = None,
) -> TransitionResult:
    """Apply an action to a conversation.

    Args:
        state: Current conversation state
        action: Action to apply
        now: Timestamp for the new event (default: datetime.now()).
            Clamped so history timestamps stay strictly increasing.

    Returns:
        TransitionResult with the new state, or the untouched input state
        and a reason if the action is illegal here.
    """
    # Contact-leaking text is refused in every phase
    if isinstance(action, SendQuickHintAction):
        error = check_quick_hint(action.text)
        if error is not None:
            return TransitionResult.rejected(state, f"Cannot send quick hint: {error}")

    phases = ACCEPTING_PHASES.get(type(action))
    if phases is None:
        return TransitionResult.rejected(state, f"Unknown action: {type(action).__name__}")

    if state.phase not in phases:
        return TransitionResult.rejected(
            state,
            f"Cannot {action.type}: phase is '{state.phase.value}'",
        )

    timestamp = _next_timestamp(state, now)

    match action:
        case ResetAction():
            return TransitionResult.ok(ConversationState.initial())
        case SendSignalAction():
            return _send_signal(state, action, timestamp)
        case ReceiveSignalAction():
            return _receive_signal(state, action, timestamp)
        case SendDialogReplyAction():
            return _send_dialog_reply(state, action, timestamp)
        case ReceiveDialogReplyAction():
            return _receive_dialog_reply(state, action, timestamp)
        case SendMeetupIntentAction():
            return _send_meetup_intent(state, timestamp)
        case ReceiveMeetupResponseAction():
            return _receive_meetup_response(state, action, timestamp)
        case DeclineMeetupAction():
            return _decline_meetup(state, timestamp)
        case ShareLocationAction():
            return _share_location(state, action, timestamp)
        case SendQuickHintAction():
            return _send_quick_hint(state, action, timestamp)
        case ExpireCoordinationAction():
            return _expire_coordination(state, timestamp)
        case _:
            return TransitionResult.rejected(state, f"Unhandled action: {action.type}")


def apply_all(
    state: ConversationState,
    actions: list[ConversationAction],
    now: datetime | None = None,
) -> tuple[ConversationState, list[TransitionResult]]:
    """Apply actions in order, skipping rejected ones.

    Returns:
        (final state, result for each action)
    """
    results: list[TransitionResult] = []
    for action in actions:
        result = transition(state, action, now)
        results.append(result)
        state = result.state
    return state, results


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _next_timestamp(state: ConversationState, now: datetime | None) -> datetime:
    """Pick a timestamp strictly after the last event's."""
    timestamp = now or datetime.now()
    last = state.last_event
    if last is not None and timestamp <= last.timestamp:
        timestamp = last.timestamp + timedelta(microseconds=1)
    return timestamp


def _next_event_id(state: ConversationState, event_type: str) -> EventId:
    """Event ids are the type plus the 1-based history position."""
    return EventId(f"{event_type}-{len(state.history) + 1}")


def _make_event(
    event_cls: type[BaseEvent],
    state: ConversationState,
    actor: Actor,
    timestamp: datetime,
    **payload,
):
    """Build the next event of a conversation."""
    event_type = event_cls.model_fields["type"].default
    return event_cls(
        id=_next_event_id(state, event_type),
        actor=actor,
        timestamp=timestamp,
        **payload,
    )


# -----------------------------------------------------------------------------
# Handlers (phase already checked)
# -----------------------------------------------------------------------------


def _send_signal(
    state: ConversationState, action: SendSignalAction, timestamp: datetime
) -> TransitionResult:
    event = _make_event(SignalSentEvent, state, Actor.YOU, timestamp, signal=action.signal)
    return TransitionResult.ok(
        state.with_event(
            event,
            phase=ConversationPhase.SIGNAL_SENT,
            starter=state.starter or Actor.YOU,
        ),
        event,
    )


def _receive_signal(
    state: ConversationState, action: ReceiveSignalAction, timestamp: datetime
) -> TransitionResult:
    # Both sides have now signalled, so dialog opens immediately
    event = _make_event(SignalReceivedEvent, state, Actor.THEM, timestamp, signal=action.signal)
    return TransitionResult.ok(
        state.with_event(
            event,
            phase=ConversationPhase.DIALOG,
            starter=state.starter or Actor.THEM,
        ),
        event,
    )


def _send_dialog_reply(
    state: ConversationState, action: SendDialogReplyAction, timestamp: datetime
) -> TransitionResult:
    if state.dialog_complete:
        return TransitionResult.rejected(state, "Cannot send dialog reply: exchange limit reached")
    if state.phase is ConversationPhase.DIALOG and not state.is_your_turn:
        return TransitionResult.rejected(state, "Cannot send dialog reply: not your turn")

    event = _make_event(DialogSentEvent, state, Actor.YOU, timestamp, reply=action.reply)
    return TransitionResult.ok(
        state.with_event(
            event,
            phase=ConversationPhase.DIALOG,
            exchanges_count=state.exchanges_count + 1,
        ),
        event,
    )


def _receive_dialog_reply(
    state: ConversationState, action: ReceiveDialogReplyAction, timestamp: datetime
) -> TransitionResult:
    if state.dialog_complete:
        return TransitionResult.rejected(
            state,
            f"Cannot receive dialog reply: exchange limit reached ({state.exchanges_count})",
        )

    event = _make_event(DialogReceivedEvent, state, Actor.THEM, timestamp, reply=action.reply)
    return TransitionResult.ok(
        state.with_event(event, exchanges_count=state.exchanges_count + 1),
        event,
    )


def _send_meetup_intent(state: ConversationState, timestamp: datetime) -> TransitionResult:
    if state.meetup.was_asked:
        return TransitionResult.rejected(state, "Cannot send meetup intent: already asked")
    if not state.can_propose_meetup():
        return TransitionResult.rejected(
            state,
            f"Cannot send meetup intent: needs {state.meetup_min_exchanges} exchanges, "
            f"has {state.exchanges_count}",
        )

    event = _make_event(MeetupIntentSentEvent, state, Actor.YOU, timestamp)
    return TransitionResult.ok(
        state.with_event(
            event,
            phase=ConversationPhase.MEETUP_INTENT_SENT,
            meetup=state.with_meetup(intent_asked_by=Actor.YOU),
        ),
        event,
    )


def _receive_meetup_response(
    state: ConversationState, action: ReceiveMeetupResponseAction, timestamp: datetime
) -> TransitionResult:
    # "maybe" ends the night just like "not tonight"
    if action.answer.closes_conversation:
        phase = ConversationPhase.CLOSED
    else:
        phase = ConversationPhase.MEETUP_ACCEPTED

    event = _make_event(MeetupResponseEvent, state, Actor.THEM, timestamp, answer=action.answer)
    return TransitionResult.ok(
        state.with_event(
            event,
            phase=phase,
            meetup=state.with_meetup(intent_answer=action.answer),
        ),
        event,
    )


def _decline_meetup(state: ConversationState, timestamp: datetime) -> TransitionResult:
    event = _make_event(MeetupDeclinedEvent, state, Actor.YOU, timestamp)
    return TransitionResult.ok(
        state.with_event(
            event,
            phase=ConversationPhase.CLOSED,
            meetup=state.with_meetup(intent_answer=MeetupAnswer.NOT_TONIGHT),
        ),
        event,
    )


def _share_location(
    state: ConversationState, action: ShareLocationAction, timestamp: datetime
) -> TransitionResult:
    if state.meetup.location is not None:
        return TransitionResult.rejected(state, "Cannot share location: already shared")

    event = _make_event(LocationSharedEvent, state, Actor.YOU, timestamp, location=action.location)
    return TransitionResult.ok(
        state.with_event(
            event,
            phase=ConversationPhase.LOCATION_SHARED,
            meetup=state.with_meetup(location=action.location),
        ),
        event,
    )


def _send_quick_hint(
    state: ConversationState, action: SendQuickHintAction, timestamp: datetime
) -> TransitionResult:
    if state.meetup.quick_hint is not None:
        return TransitionResult.rejected(state, "Cannot send quick hint: already sent")

    text = action.text.strip()
    event = _make_event(QuickHintSentEvent, state, Actor.YOU, timestamp, text=text)
    return TransitionResult.ok(
        state.with_event(event, meetup=state.with_meetup(quick_hint=text)),
        event,
    )


def _expire_coordination(state: ConversationState, timestamp: datetime) -> TransitionResult:
    # The expiry timer runs on the local side
    event = _make_event(CoordinationExpiredEvent, state, Actor.YOU, timestamp)
    return TransitionResult.ok(
        state.with_event(event, phase=ConversationPhase.CLOSED),
        event,
    )
