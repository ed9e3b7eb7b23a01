"""Session controller for venueroom.

Owns every conversation in the current venue room and is the only writer
of ConversationState. All changes go through the transition function.

Key design decisions:
- Single authoritative store: deferred callbacks re-read it through
  get_current_state instead of capturing a state when scheduled
- One pending simulated response per peer: scheduling a new one cancels
  the previous timer
- Ephemeral: changing venue or closing the screen discards every
  conversation and cancels every timer
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable

from venueroom.core.types import ConversationPhase, PeerId, VenueId
from venueroom.core.conversation import ConversationState
from venueroom.core.events import ConversationEvent
from venueroom.core.actions import (
    ConversationAction,
    ExpireCoordinationAction,
    ReceiveMeetupResponseAction,
    ResetAction,
)
from venueroom.engine.transitions import transition
from venueroom.engine.ui_context import ConversationUIContext, derive_ui_context
from venueroom.logging_config import log_dispatch, log_session, log_timer
from venueroom.settings import SessionConfig
from .simulator import PeerSimulator

logger = logging.getLogger(__name__)

StateListener = Callable[[PeerId, ConversationState], None]


class SessionController:
    """Holds one ConversationState per peer and dispatches actions to them.

    Usage:
        controller = SessionController(SessionConfig())
        controller.change_venue(VenueId("blaa"))
        controller.select_peer(PeerId("avatar-7"))
        controller.dispatch(PeerId("avatar-7"), SendSignalAction(signal=SignalType.WAVE))
        controller.get_ui_context(PeerId("avatar-7")).cta_label
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        simulator: PeerSimulator | None = None,
        clock: Callable[[], datetime] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        """Initialize SessionController.

        Args:
            config: Session configuration (default: SessionConfig())
            simulator: Simulated peer. Built from config when simulate_peer
                is set and none is given.
            clock: Source of event timestamps (default: datetime.now)
            loop: Event loop for timers (default: the running loop at
                scheduling time)
        """
        self._config = config or SessionConfig()
        if simulator is None and self._config.simulate_peer:
            simulator = PeerSimulator.from_config(self._config)
        self._simulator = simulator
        self._clock = clock or datetime.now
        self._loop = loop

        self._states: dict[PeerId, ConversationState] = {}
        self._pending_responses: dict[PeerId, asyncio.TimerHandle] = {}
        self._expiry_timers: dict[PeerId, asyncio.TimerHandle] = {}
        self._deadlines: dict[PeerId, datetime] = {}
        self._selected_peer: PeerId | None = None
        self._venue_id: VenueId | None = None
        self._listeners: list[StateListener] = []

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def config(self) -> SessionConfig:
        """Session configuration."""
        return self._config

    @property
    def selected_peer(self) -> PeerId | None:
        """Currently selected peer, if any."""
        return self._selected_peer

    @property
    def venue_id(self) -> VenueId | None:
        """Venue the session belongs to, if set."""
        return self._venue_id

    def get_current_state(self, peer_id: PeerId) -> ConversationState:
        """Get the authoritative state for a peer.

        The first reference to a peer creates an idle conversation.
        """
        state = self._states.get(peer_id)
        if state is None:
            state = ConversationState.initial()
            self._states[peer_id] = state
        return state

    def get_ui_context(self, peer_id: PeerId) -> ConversationUIContext:
        """Derive the presentation state for a peer's conversation."""
        return derive_ui_context(self.get_current_state(peer_id))

    def get_history(self, peer_id: PeerId) -> tuple[ConversationEvent, ...]:
        """Chronological event log for a peer."""
        return self.get_current_state(peer_id).history

    def peers(self) -> list[PeerId]:
        """Peers with a conversation in this session."""
        return list(self._states)

    def pending_peers(self) -> frozenset[PeerId]:
        """Peers with a simulated response still scheduled."""
        return frozenset(self._pending_responses)

    def coordination_deadline(self, peer_id: PeerId) -> datetime | None:
        """When the find-each-other window closes, if one is running."""
        return self._deadlines.get(peer_id)

    def on_change(self, callback: StateListener) -> None:
        """Register a callback for accepted state changes.

        Args:
            callback: Called with (peer_id, new_state) after every change
        """
        self._listeners.append(callback)

    # =========================================================================
    # Commands
    # =========================================================================

    def dispatch(self, peer_id: PeerId, action: ConversationAction) -> bool:
        """Apply an action to a peer's conversation.

        Args:
            peer_id: Peer the action concerns
            action: Local gesture or peer-originated action

        Returns:
            True if the action was accepted
        """
        if not self._config.protocol_enabled:
            log_dispatch(logger, peer_id, action.type, False, details="protocol disabled")
            return False

        state = self.get_current_state(peer_id)
        result = transition(state, action, now=self._clock())

        if not result.accepted:
            # Stale peer responses are routine; a rejected user gesture means
            # the UI offered something it should not have
            level = logging.DEBUG if action.peer_originated else logging.WARNING
            log_dispatch(
                logger, peer_id, action.type, False,
                phase=state.phase.value, details=result.reason, level=level,
            )
            return False

        self._states[peer_id] = result.state
        log_dispatch(logger, peer_id, action.type, True, phase=result.state.phase.value)

        if isinstance(action, ResetAction):
            self._cancel_peer_timers(peer_id)
        else:
            self._after_accept(peer_id, action, result.state)

        self._notify(peer_id, result.state)
        return True

    def reset(self, peer_id: PeerId) -> None:
        """Discard one peer's conversation and cancel its timers."""
        self._cancel_peer_timers(peer_id)
        state = ConversationState.initial()
        self._states[peer_id] = state
        log_session(logger, "reset_peer", details=f"peer={peer_id}")
        self._notify(peer_id, state)

    def select_peer(self, peer_id: PeerId | None) -> None:
        """Change the selected peer.

        Pending simulated responses are always cancelled. With
        reset_on_peer_switch, every conversation in the room is discarded too.
        """
        if peer_id == self._selected_peer:
            return

        previous = self._selected_peer
        self._selected_peer = peer_id

        if self._config.reset_on_peer_switch:
            self._discard_all()
        else:
            for pending in list(self._pending_responses):
                self._cancel_pending_response(pending)

        log_session(logger, "switch_peer", details=f"from={previous} | to={peer_id}")

    def change_venue(self, venue_id: VenueId | None) -> None:
        """Move the session to another venue, discarding all conversations."""
        previous = self._venue_id
        self._discard_all()
        self._venue_id = venue_id
        self._selected_peer = None
        log_session(logger, "change_venue", details=f"from={previous} | to={venue_id}")

    def close(self) -> None:
        """Leave the venue room screen. Cancels timers, discards state."""
        self._discard_all()
        self._selected_peer = None
        self._venue_id = None
        log_session(logger, "close")

    # =========================================================================
    # Follow-ups
    # =========================================================================

    def _after_accept(
        self,
        peer_id: PeerId,
        action: ConversationAction,
        state: ConversationState,
    ) -> None:
        """Schedule or cancel timers after an accepted action."""
        if state.is_closed:
            self._cancel_peer_timers(peer_id)
            return

        if (
            isinstance(action, ReceiveMeetupResponseAction)
            and state.phase is ConversationPhase.MEETUP_ACCEPTED
        ):
            self._schedule_expiry(peer_id)

        if not action.peer_originated and self._simulator is not None:
            response = self._simulator.response_to(action)
            # A reply that would exceed the exchange cap is never simulated
            if response is not None and not (
                state.phase is ConversationPhase.DIALOG and state.dialog_complete
            ):
                self._schedule_simulated_response(peer_id, response, state)

    def _notify(self, peer_id: PeerId, state: ConversationState) -> None:
        """Notify all registered listeners of a state change."""
        for callback in self._listeners:
            try:
                callback(peer_id, state)
            except Exception as e:
                logger.error(f"Listener error: {e}")

    # =========================================================================
    # Timers
    # =========================================================================

    def _call_later(self, delay: float, callback: Callable[..., None], *args) -> asyncio.TimerHandle | None:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.warning("No running event loop; timer not scheduled")
                return None
        return loop.call_later(delay, callback, *args)

    def _schedule_simulated_response(
        self,
        peer_id: PeerId,
        response: ConversationAction,
        state: ConversationState,
    ) -> None:
        """Schedule a simulated peer action, replacing any pending one."""
        self._cancel_pending_response(peer_id)

        delay = self._simulator.next_delay()
        handle = self._call_later(
            delay,
            self._fire_simulated_response,
            peer_id,
            response,
            state.phase,
            len(state.history),
        )
        if handle is not None:
            self._pending_responses[peer_id] = handle
            log_timer(logger, peer_id, f"scheduled {response.type}", delay=delay)

    def _fire_simulated_response(
        self,
        peer_id: PeerId,
        response: ConversationAction,
        expected_phase: ConversationPhase,
        expected_length: int,
    ) -> None:
        """Deliver a simulated response if the conversation has not moved on."""
        self._pending_responses.pop(peer_id, None)

        if peer_id not in self._states:
            log_timer(logger, peer_id, f"dropped {response.type}", details="conversation discarded")
            return

        current = self.get_current_state(peer_id)
        if current.phase is not expected_phase or len(current.history) != expected_length:
            log_timer(
                logger, peer_id, f"dropped {response.type}",
                details=f"stale: phase={current.phase.value} expected={expected_phase.value}",
            )
            return

        log_timer(logger, peer_id, f"fired {response.type}")
        self.dispatch(peer_id, response)

    def _schedule_expiry(self, peer_id: PeerId) -> None:
        """Start the find-each-other window after a meetup is accepted."""
        seconds = self._config.coordination_expiry_seconds
        if seconds is None:
            return

        self._cancel_expiry(peer_id)
        handle = self._call_later(seconds, self._fire_expiry, peer_id)
        if handle is not None:
            self._expiry_timers[peer_id] = handle
            self._deadlines[peer_id] = self._clock() + timedelta(seconds=seconds)
            log_timer(logger, peer_id, "scheduled expiry", delay=seconds)

    def _fire_expiry(self, peer_id: PeerId) -> None:
        self._expiry_timers.pop(peer_id, None)
        self._deadlines.pop(peer_id, None)
        if peer_id not in self._states:
            return
        log_timer(logger, peer_id, "fired expiry")
        self.dispatch(peer_id, ExpireCoordinationAction())

    def _cancel_pending_response(self, peer_id: PeerId) -> None:
        handle = self._pending_responses.pop(peer_id, None)
        if handle is not None:
            handle.cancel()
            log_timer(logger, peer_id, "cancelled response")

    def _cancel_expiry(self, peer_id: PeerId) -> None:
        handle = self._expiry_timers.pop(peer_id, None)
        self._deadlines.pop(peer_id, None)
        if handle is not None:
            handle.cancel()
            log_timer(logger, peer_id, "cancelled expiry")

    def _cancel_peer_timers(self, peer_id: PeerId) -> None:
        self._cancel_pending_response(peer_id)
        self._cancel_expiry(peer_id)

    def _discard_all(self) -> None:
        """Cancel every timer and drop every conversation."""
        for peer_id in set(self._pending_responses) | set(self._expiry_timers):
            self._cancel_peer_timers(peer_id)
        count = len(self._states)
        self._states.clear()
        if count:
            log_session(logger, "discard", details=f"conversations={count}")
