"""Tests for SessionController."""

import asyncio
import logging
import random

import pytest

from venueroom.core import (
    DIALOG_REPLY_OPTIONS,
    ConversationPhase,
    ConversationState,
    MeetupAnswer,
    PeerId,
    SignalType,
    VenueId,
    SendSignalAction,
    ReceiveSignalAction,
    SendDialogReplyAction,
    ReceiveDialogReplyAction,
    SendMeetupIntentAction,
    ReceiveMeetupResponseAction,
    ResetAction,
)
from venueroom.services import PeerSimulator, SessionController
from venueroom.settings import SessionConfig

PEER = PeerId("avatar-1")
OTHER_PEER = PeerId("avatar-2")

REPLY_A, REPLY_B = DIALOG_REPLY_OPTIONS[0], DIALOG_REPLY_OPTIONS[1]

# Simulated responses fire well within this
SETTLE = 0.2


@pytest.fixture
def manual_controller() -> SessionController:
    """Controller without a simulated peer or expiry."""
    return SessionController(
        SessionConfig(simulate_peer=False, coordination_expiry_seconds=None)
    )


@pytest.fixture
def fast_config() -> SessionConfig:
    """Simulated peer that answers yes within a few milliseconds."""
    return SessionConfig(
        response_delay_min=0.01,
        response_delay_max=0.02,
        meetup_answer_weights={MeetupAnswer.YES: 1.0},
        random_seed=1,
        coordination_expiry_seconds=None,
    )


def walk_to_meetup_accepted(controller: SessionController, peer_id: PeerId) -> None:
    """Dispatch both sides of a conversation up to an accepted meetup."""
    actions = [
        SendSignalAction(signal=SignalType.WAVE),
        ReceiveSignalAction(signal=SignalType.WINK),
        SendDialogReplyAction(reply=REPLY_A),
        ReceiveDialogReplyAction(reply=REPLY_B),
        SendDialogReplyAction(reply=REPLY_A),
        SendMeetupIntentAction(),
        ReceiveMeetupResponseAction(answer=MeetupAnswer.YES),
    ]
    for action in actions:
        assert controller.dispatch(peer_id, action), action.type


class TestStateStore:
    """Tests for reading conversation state."""

    def test_unknown_peer_starts_idle(self, manual_controller):
        state = manual_controller.get_current_state(PEER)

        assert state == ConversationState.initial()
        assert PEER in manual_controller.peers()

    def test_ui_context_and_history(self, manual_controller):
        manual_controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        assert manual_controller.get_ui_context(PEER).status_hint == "Waiting for response"
        assert [e.type for e in manual_controller.get_history(PEER)] == ["signal_sent"]

    def test_peers_are_independent(self, manual_controller):
        """Each peer has its own conversation."""
        manual_controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        assert manual_controller.get_current_state(OTHER_PEER).phase is ConversationPhase.IDLE


class TestDispatch:
    """Tests for dispatching actions."""

    def test_accepted(self, manual_controller):
        assert manual_controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))
        assert manual_controller.get_current_state(PEER).phase is ConversationPhase.SIGNAL_SENT

    def test_rejected_leaves_state(self, manual_controller):
        before = manual_controller.get_current_state(PEER)

        assert not manual_controller.dispatch(PEER, SendMeetupIntentAction())
        assert manual_controller.get_current_state(PEER) is before

    def test_rejected_user_action_logs_warning(self, manual_controller, caplog):
        with caplog.at_level(logging.DEBUG, logger="venueroom"):
            manual_controller.dispatch(PEER, SendMeetupIntentAction())

        records = [r for r in caplog.records if "DISPATCH" in r.getMessage()]
        assert records[-1].levelno == logging.WARNING
        assert "REJECTED" in records[-1].getMessage()

    def test_rejected_peer_action_logs_debug(self, manual_controller, caplog):
        """Stale peer responses are routine."""
        with caplog.at_level(logging.DEBUG, logger="venueroom"):
            manual_controller.dispatch(PEER, ReceiveDialogReplyAction(reply=REPLY_A))

        records = [r for r in caplog.records if "DISPATCH" in r.getMessage()]
        assert records[-1].levelno == logging.DEBUG

    def test_listeners_notified(self, manual_controller):
        seen = []
        manual_controller.on_change(lambda peer_id, state: seen.append((peer_id, state.phase)))

        manual_controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))
        manual_controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        assert seen == [(PEER, ConversationPhase.SIGNAL_SENT)]

    def test_protocol_disabled(self):
        """With the feature off nothing is accepted."""
        controller = SessionController(SessionConfig(protocol_enabled=False, simulate_peer=False))

        assert not controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))
        assert controller.get_current_state(PEER).phase is ConversationPhase.IDLE

    def test_reset_action(self, manual_controller):
        walk_to_meetup_accepted(manual_controller, PEER)

        assert manual_controller.dispatch(PEER, ResetAction())
        assert manual_controller.get_current_state(PEER) == ConversationState.initial()

    def test_without_loop_nothing_is_scheduled(self, fast_config):
        """Outside an event loop the simulated peer stays quiet."""
        controller = SessionController(fast_config)

        assert controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))
        assert controller.pending_peers() == frozenset()


class TestSimulatedPeer:
    """Tests for scheduled simulated responses."""

    @pytest.mark.asyncio
    async def test_signal_answered(self, fast_config):
        """The simulated peer signals back and the dialog opens."""
        controller = SessionController(fast_config)
        controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        assert PEER in controller.pending_peers()
        await asyncio.sleep(SETTLE)

        state = controller.get_current_state(PEER)
        assert state.phase is ConversationPhase.DIALOG
        assert state.history[-1].type == "signal_received"
        assert controller.pending_peers() == frozenset()

    @pytest.mark.asyncio
    async def test_happy_path(self, fast_config):
        """Signal, full dialog, meetup accepted."""
        controller = SessionController(fast_config)
        controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))
        await asyncio.sleep(SETTLE)

        while controller.get_current_state(PEER).can_send_dialog_reply():
            assert controller.dispatch(PEER, SendDialogReplyAction(reply=REPLY_A))
            await asyncio.sleep(SETTLE)

        state = controller.get_current_state(PEER)
        assert state.exchanges_count == 5
        assert controller.pending_peers() == frozenset()

        assert controller.dispatch(PEER, SendMeetupIntentAction())
        await asyncio.sleep(SETTLE)

        assert controller.get_current_state(PEER).phase is ConversationPhase.MEETUP_ACCEPTED

    @pytest.mark.asyncio
    async def test_no_reply_simulated_at_cap(self, fast_config):
        """The last reply of the dialog gets no simulated answer."""
        controller = SessionController(fast_config)
        controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))
        await asyncio.sleep(SETTLE)
        for _ in range(2):
            controller.dispatch(PEER, SendDialogReplyAction(reply=REPLY_A))
            await asyncio.sleep(SETTLE)

        controller.dispatch(PEER, SendDialogReplyAction(reply=REPLY_A))

        assert controller.get_current_state(PEER).dialog_complete
        assert PEER not in controller.pending_peers()

    @pytest.mark.asyncio
    async def test_stale_response_dropped(self):
        """A response scheduled for an older state is not applied."""
        config = SessionConfig(response_delay_min=0.05, response_delay_max=0.05)
        controller = SessionController(config)
        controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        # The peer's real signal arrives before the simulated one fires
        controller.dispatch(PEER, ReceiveSignalAction(signal=SignalType.POKE))
        await asyncio.sleep(SETTLE)

        history = controller.get_history(PEER)
        assert [e.type for e in history] == ["signal_sent", "signal_received"]
        assert history[-1].signal is SignalType.POKE
        assert controller.pending_peers() == frozenset()

    @pytest.mark.asyncio
    async def test_reset_cancels_pending(self):
        config = SessionConfig(response_delay_min=0.05, response_delay_max=0.05)
        controller = SessionController(config)
        controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        controller.reset(PEER)
        assert controller.pending_peers() == frozenset()
        await asyncio.sleep(SETTLE)

        assert controller.get_current_state(PEER) == ConversationState.initial()

    @pytest.mark.asyncio
    async def test_injected_simulator(self):
        """A custom simulator is used for every response."""
        simulator = PeerSimulator(delay_min=0.01, delay_max=0.01, rng=random.Random(0))
        controller = SessionController(SessionConfig(simulate_peer=False), simulator=simulator)
        controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))
        await asyncio.sleep(SETTLE)

        assert controller.get_current_state(PEER).phase is ConversationPhase.DIALOG


class TestSessionLifecycle:
    """Tests for peer switching, venue change and close."""

    @pytest.mark.asyncio
    async def test_first_selection_resets_room(self):
        """Selecting a peer for the first time also discards earlier conversations."""
        config = SessionConfig(response_delay_min=0.05, response_delay_max=0.05)
        controller = SessionController(config)
        controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        controller.select_peer(OTHER_PEER)

        assert controller.pending_peers() == frozenset()
        await asyncio.sleep(SETTLE)
        assert controller.get_current_state(PEER) == ConversationState.initial()

    @pytest.mark.asyncio
    async def test_peer_switch_resets_room(self):
        config = SessionConfig(response_delay_min=0.05, response_delay_max=0.05)
        controller = SessionController(config)
        controller.select_peer(PEER)
        controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        controller.select_peer(OTHER_PEER)

        assert controller.selected_peer == OTHER_PEER
        assert controller.pending_peers() == frozenset()
        assert controller.peers() == []
        await asyncio.sleep(SETTLE)
        assert controller.get_current_state(PEER).phase is ConversationPhase.IDLE

    @pytest.mark.asyncio
    async def test_peer_switch_keeps_conversations_when_configured(self):
        config = SessionConfig(
            response_delay_min=0.05,
            response_delay_max=0.05,
            reset_on_peer_switch=False,
        )
        controller = SessionController(config)
        controller.select_peer(PEER)
        controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        controller.select_peer(OTHER_PEER)
        await asyncio.sleep(SETTLE)

        # Kept, but the pending answer was cancelled
        assert controller.get_current_state(PEER).phase is ConversationPhase.SIGNAL_SENT

    def test_selecting_same_peer_is_noop(self, manual_controller):
        manual_controller.select_peer(PEER)
        manual_controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        manual_controller.select_peer(PEER)

        assert manual_controller.get_current_state(PEER).phase is ConversationPhase.SIGNAL_SENT

    def test_change_venue_discards_everything(self, manual_controller):
        manual_controller.change_venue(VenueId("blaa"))
        manual_controller.select_peer(PEER)
        manual_controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        manual_controller.change_venue(VenueId("kulturhuset"))

        assert manual_controller.venue_id == "kulturhuset"
        assert manual_controller.selected_peer is None
        assert manual_controller.peers() == []

    def test_close(self, manual_controller):
        manual_controller.change_venue(VenueId("blaa"))
        manual_controller.dispatch(PEER, SendSignalAction(signal=SignalType.WAVE))

        manual_controller.close()

        assert manual_controller.venue_id is None
        assert manual_controller.peers() == []


class TestCoordinationExpiry:
    """Tests for the find-each-other window."""

    @pytest.mark.asyncio
    async def test_expiry_closes_conversation(self):
        controller = SessionController(
            SessionConfig(simulate_peer=False, coordination_expiry_seconds=0.05)
        )
        walk_to_meetup_accepted(controller, PEER)

        assert controller.coordination_deadline(PEER) is not None
        await asyncio.sleep(SETTLE)

        state = controller.get_current_state(PEER)
        assert state.phase is ConversationPhase.CLOSED
        assert state.history[-1].type == "coordination_expired"
        assert controller.coordination_deadline(PEER) is None

    @pytest.mark.asyncio
    async def test_expiry_disabled(self):
        controller = SessionController(
            SessionConfig(simulate_peer=False, coordination_expiry_seconds=None)
        )
        walk_to_meetup_accepted(controller, PEER)

        assert controller.coordination_deadline(PEER) is None

    @pytest.mark.asyncio
    async def test_reset_cancels_expiry(self):
        controller = SessionController(
            SessionConfig(simulate_peer=False, coordination_expiry_seconds=0.05)
        )
        walk_to_meetup_accepted(controller, PEER)

        controller.dispatch(PEER, ResetAction())
        assert controller.coordination_deadline(PEER) is None
        await asyncio.sleep(SETTLE)

        assert controller.get_current_state(PEER) == ConversationState.initial()
