"""Shared test fixtures for venueroom."""

import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from venueroom.core import (
    DIALOG_REPLY_OPTIONS,
    ConversationState,
    LocationHint,
    MeetupAnswer,
    SignalType,
    SendSignalAction,
    ReceiveSignalAction,
    SendDialogReplyAction,
    ReceiveDialogReplyAction,
    SendMeetupIntentAction,
    ReceiveMeetupResponseAction,
    ShareLocationAction,
)
from venueroom.engine import transition

# Start of the test night
T0 = datetime(2026, 3, 14, 22, 0)


@pytest.fixture
def temp_data_dir() -> Path:
    """Create a temporary data directory for tests."""
    with tempfile.TemporaryDirectory(prefix="venueroom_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def t0() -> datetime:
    """Fixed base timestamp."""
    return T0


@pytest.fixture
def drive():
    """Apply actions in order, failing the test if any is rejected.

    The event at history position n is stamped T0 + n seconds.
    """
    def _drive(*actions, state: ConversationState | None = None) -> ConversationState:
        current = state if state is not None else ConversationState.initial()
        for action in actions:
            result = transition(current, action, now=T0 + timedelta(seconds=len(current.history)))
            assert result.accepted, result.reason
            current = result.state
        return current
    return _drive


# =============================================================================
# Conversations at each phase
# =============================================================================


@pytest.fixture
def dialog_state(drive) -> ConversationState:
    """You waved, they waved back. Dialog open, nothing said yet."""
    return drive(
        SendSignalAction(signal=SignalType.WAVE),
        ReceiveSignalAction(signal=SignalType.WINK),
    )


@pytest.fixture
def full_dialog_state(drive, dialog_state) -> ConversationState:
    """Dialog at the exchange cap, you sent the last reply."""
    return drive(
        SendDialogReplyAction(reply=DIALOG_REPLY_OPTIONS[0]),
        ReceiveDialogReplyAction(reply=DIALOG_REPLY_OPTIONS[1]),
        SendDialogReplyAction(reply=DIALOG_REPLY_OPTIONS[2]),
        ReceiveDialogReplyAction(reply=DIALOG_REPLY_OPTIONS[3]),
        SendDialogReplyAction(reply=DIALOG_REPLY_OPTIONS[4]),
        state=dialog_state,
    )


@pytest.fixture
def intent_sent_state(drive, full_dialog_state) -> ConversationState:
    """You asked to meet and are waiting for the answer."""
    return drive(SendMeetupIntentAction(), state=full_dialog_state)


@pytest.fixture
def meetup_accepted_state(drive, intent_sent_state) -> ConversationState:
    """They said yes."""
    return drive(
        ReceiveMeetupResponseAction(answer=MeetupAnswer.YES),
        state=intent_sent_state,
    )


@pytest.fixture
def location_shared_state(drive, meetup_accepted_state) -> ConversationState:
    """You said where you are."""
    return drive(
        ShareLocationAction(location=LocationHint.NEAR_BAR),
        state=meetup_accepted_state,
    )


@pytest.fixture
def closed_state(drive, intent_sent_state) -> ConversationState:
    """They said not tonight."""
    return drive(
        ReceiveMeetupResponseAction(answer=MeetupAnswer.NOT_TONIGHT),
        state=intent_sent_state,
    )
