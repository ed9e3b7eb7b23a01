"""UI context derivation for venueroom conversations.

Turns a ConversationState into what the venue room screen shows for one
peer: the primary and secondary call-to-action, a status line and the set
of actions the local user may currently take.

The derivation never decides legality itself. It reads the same gating
predicates on ConversationState that the transition function checks, so a
CTA is offered exactly when the corresponding action would be accepted.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

from venueroom.core.types import Actor, ConversationPhase
from venueroom.core.conversation import ConversationState

CtaAction = Literal[
    "open_signal_sheet",
    "open_dialog_sheet",
    "open_meetup_intent",
    "open_location_sheet",
    "none",
]
SecondaryCtaAction = Literal["open_meetup_intent", "open_quick_hint"]

# Status copy
STATUS_START = "Start the conversation"
STATUS_WAITING_RESPONSE = "Waiting for response"
STATUS_THEY_SAID_HELLO = "They said hello"
STATUS_START_CHATTING = "Start chatting"
STATUS_YOUR_TURN = "Your turn"
STATUS_WAITING_REPLY = "Waiting for reply"
STATUS_EXCHANGES_COMPLETE = "Exchanges complete"
STATUS_THEY_WANT_TO_MEET = "They want to meet too"
STATUS_LOCATION_SHARED = "Location shared"
STATUS_CLOSED = "Closed for tonight"

MEETUP_CTA_LABEL = "Want to say hi in person?"
QUICK_HINT_CTA_LABEL = "Add a quick hint"


class ConversationUIContext(BaseModel):
    """Presentation state for one peer's conversation."""

    model_config = ConfigDict(frozen=True)

    phase: ConversationPhase
    cta_label: str
    cta_disabled: bool
    cta_action: CtaAction
    secondary_cta_label: str | None = None
    secondary_cta_action: SecondaryCtaAction | None = None
    status_hint: str
    is_closed: bool = False
    # Action type discriminators the local user may dispatch right now
    enabled_actions: frozenset[str] = frozenset()

    @property
    def can_send_signal(self) -> bool:
        return "send_signal" in self.enabled_actions

    @property
    def can_send_dialog_reply(self) -> bool:
        return "send_dialog_reply" in self.enabled_actions

    @property
    def can_propose_meetup(self) -> bool:
        return "send_meetup_intent" in self.enabled_actions

    @property
    def can_share_location(self) -> bool:
        return "share_location" in self.enabled_actions

    @property
    def can_send_quick_hint(self) -> bool:
        return "send_quick_hint" in self.enabled_actions


def enabled_actions(state: ConversationState) -> frozenset[str]:
    """Locally initiated actions the transition function would accept.

    Reset is always accepted and is not a CTA, so it is not listed.
    SendQuickHint is listed when a hint that passes validation would be
    accepted.
    """
    enabled: set[str] = set()
    if state.phase is ConversationPhase.IDLE:
        enabled.add("send_signal")
    if state.can_send_dialog_reply():
        enabled.add("send_dialog_reply")
    if state.can_propose_meetup():
        enabled.add("send_meetup_intent")
    if state.phase is ConversationPhase.DIALOG:
        enabled.add("decline_meetup")
    if state.can_share_location():
        enabled.add("share_location")
    if state.can_send_quick_hint():
        enabled.add("send_quick_hint")
    return frozenset(enabled)


def derive_ui_context(state: ConversationState) -> ConversationUIContext:
    """Derive the presentation state for a conversation.

    Args:
        state: Current conversation state

    Returns:
        ConversationUIContext for the peer card and action sheet
    """
    enabled = enabled_actions(state)

    def context(
        cta_label: str,
        status_hint: str,
        cta_action: CtaAction = "none",
        cta_disabled: bool = False,
        secondary_cta_label: str | None = None,
        secondary_cta_action: SecondaryCtaAction | None = None,
    ) -> ConversationUIContext:
        return ConversationUIContext(
            phase=state.phase,
            cta_label=cta_label,
            cta_disabled=cta_disabled,
            cta_action=cta_action,
            secondary_cta_label=secondary_cta_label,
            secondary_cta_action=secondary_cta_action,
            status_hint=status_hint,
            is_closed=state.is_closed,
            enabled_actions=enabled,
        )

    match state.phase:
        case ConversationPhase.IDLE:
            return context("Say hello", STATUS_START, cta_action="open_signal_sheet")

        case ConversationPhase.SIGNAL_SENT | ConversationPhase.MEETUP_INTENT_SENT:
            return context(STATUS_WAITING_RESPONSE, STATUS_WAITING_RESPONSE, cta_disabled=True)

        case ConversationPhase.SIGNAL_RECEIVED:
            return context("Reply", STATUS_THEY_SAID_HELLO, cta_action="open_dialog_sheet")

        case ConversationPhase.DIALOG:
            return _dialog_context(state, context)

        case ConversationPhase.MEETUP_ACCEPTED:
            return context(
                "Share where you are",
                STATUS_THEY_WANT_TO_MEET,
                cta_action="open_location_sheet",
            )

        case ConversationPhase.LOCATION_SHARED:
            # The quick hint CTA disappears for good once the hint is sent
            if state.can_send_quick_hint():
                return context(
                    STATUS_LOCATION_SHARED,
                    STATUS_LOCATION_SHARED,
                    cta_disabled=True,
                    secondary_cta_label=QUICK_HINT_CTA_LABEL,
                    secondary_cta_action="open_quick_hint",
                )
            return context(STATUS_LOCATION_SHARED, STATUS_LOCATION_SHARED, cta_disabled=True)

        case ConversationPhase.CLOSED:
            return context(STATUS_CLOSED, STATUS_CLOSED, cta_disabled=True)


def _dialog_context(state: ConversationState, context) -> ConversationUIContext:
    """Dialog CTA: reply, wait, or (at the cap) the gated meetup ask."""
    if state.dialog_complete:
        if state.can_propose_meetup():
            return context(
                STATUS_EXCHANGES_COMPLETE,
                STATUS_EXCHANGES_COMPLETE,
                cta_disabled=True,
                secondary_cta_label=MEETUP_CTA_LABEL,
                secondary_cta_action="open_meetup_intent",
            )
        return context(STATUS_EXCHANGES_COMPLETE, STATUS_EXCHANGES_COMPLETE, cta_disabled=True)

    if state.is_your_turn:
        status = STATUS_START_CHATTING if state.exchanges_count == 0 else STATUS_YOUR_TURN
        return context("Reply", status, cta_action="open_dialog_sheet")

    return context(STATUS_WAITING_REPLY, STATUS_WAITING_REPLY, cta_disabled=True)


def card_preview_text(state: ConversationState) -> str | None:
    """Short status line for the peer's card in the room list.

    Returns None for untouched conversations.
    """
    match state.phase:
        case ConversationPhase.IDLE:
            return None
        case ConversationPhase.DIALOG:
            if state.dialog_complete:
                return STATUS_EXCHANGES_COMPLETE
            if state.last_actor is Actor.YOU:
                return STATUS_WAITING_REPLY
            return "Your turn to reply"
        case ConversationPhase.MEETUP_ACCEPTED:
            return "They want to meet"
        case _:
            return derive_ui_context(state).status_hint
