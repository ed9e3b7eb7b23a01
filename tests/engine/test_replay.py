"""Tests for history replay and JSON export."""

import json

import pytest

from venueroom.core import (
    Actor,
    ConversationState,
    EventId,
    MeetupIntentReceivedEvent,
    SendQuickHintAction,
    ExpireCoordinationAction,
)
from venueroom.engine import (
    ReplayError,
    action_for_event,
    history_from_json,
    history_to_json,
    replay,
    transition,
)


class TestReplay:
    """Tests for rebuilding states from history."""

    def test_empty_history(self):
        """An empty history replays to the initial state."""
        assert replay(()) == ConversationState.initial()

    @pytest.mark.parametrize(
        "fixture_name",
        [
            "dialog_state",
            "full_dialog_state",
            "intent_sent_state",
            "meetup_accepted_state",
            "location_shared_state",
            "closed_state",
        ],
    )
    def test_replay_rebuilds_state(self, request, fixture_name):
        """Replaying a history yields the state that produced it."""
        state = request.getfixturevalue(fixture_name)
        assert replay(state.history) == state

    def test_replay_full_coordination(self, drive, location_shared_state):
        """Hints and expiry replay too."""
        state = drive(
            SendQuickHintAction(text="Red jacket"),
            ExpireCoordinationAction(),
            state=location_shared_state,
        )
        assert replay(state.history) == state

    def test_every_replayable_event_maps_to_an_action(self, location_shared_state):
        """Each event's action produces an event of the same type."""
        state = ConversationState.initial()
        for event in location_shared_state.history:
            action = action_for_event(event)
            assert action is not None
            result = transition(state, action, now=event.timestamp)
            assert result.event.type == event.type
            state = result.state

    def test_out_of_order_history_rejected(self, full_dialog_state):
        """A history the protocol could not have produced fails to replay."""
        history = full_dialog_state.history
        shuffled = (history[0], history[2], history[1], *history[3:])

        with pytest.raises(ReplayError) as exc_info:
            replay(shuffled)
        assert exc_info.value.index >= 1

    def test_tampered_event_rejected(self, location_shared_state):
        """A recorded event that differs from its replay fails."""
        history = list(location_shared_state.history)
        history[0] = history[0].model_copy(update={"actor": Actor.THEM})

        with pytest.raises(ReplayError) as exc_info:
            replay(history)
        assert exc_info.value.index == 0

    def test_peer_intent_not_replayable(self, t0):
        """Events no local action produces cannot be replayed."""
        event = MeetupIntentReceivedEvent(
            id=EventId("meetup_intent_received-1"),
            actor=Actor.THEM,
            timestamp=t0,
        )

        assert action_for_event(event) is None
        with pytest.raises(ReplayError):
            replay([event])


class TestHistoryJson:
    """Tests for JSON export."""

    def test_round_trip(self, location_shared_state):
        """An exported history parses back to the same events."""
        data = history_to_json(location_shared_state.history)
        restored = history_from_json(data)

        assert restored == location_shared_state.history
        assert replay(restored) == location_shared_state

    def test_json_shape(self, dialog_state):
        """Events export as objects with their type discriminator."""
        data = json.loads(history_to_json(dialog_state.history))

        assert [e["type"] for e in data] == ["signal_sent", "signal_received"]
        assert data[0]["actor"] == "you"
        assert data[0]["signal"] == "wave"
        assert data[0]["id"] == "signal_sent-1"
