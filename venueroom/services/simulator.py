"""Simulated peer for venueroom.

Stands in for the other person until real two-device synchronization
exists. Given a locally initiated action, it picks the peer-originated
action that answers it and a randomized delay. It never touches
conversation state; the SessionController schedules and dispatches.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from venueroom.core.constants import DIALOG_REPLY_OPTIONS
from venueroom.core.types import MeetupAnswer, SignalType
from venueroom.core.actions import (
    ConversationAction,
    SendSignalAction,
    SendDialogReplyAction,
    SendMeetupIntentAction,
    ReceiveSignalAction,
    ReceiveDialogReplyAction,
    ReceiveMeetupResponseAction,
)

if TYPE_CHECKING:
    from venueroom.settings import SessionConfig


class PeerSimulator:
    """Picks simulated peer responses.

    Responds to signals with a signal, to dialog replies with a dialog
    reply, and to a meetup request with a weighted answer. Other actions
    get no response.
    """

    def __init__(
        self,
        delay_min: float = 1.5,
        delay_max: float = 4.0,
        meetup_answer_weights: dict[MeetupAnswer, float] | None = None,
        rng: random.Random | None = None,
    ):
        """Initialize PeerSimulator.

        Args:
            delay_min: Shortest response delay in seconds
            delay_max: Longest response delay in seconds
            meetup_answer_weights: Relative odds of each meetup answer
                (default: always yes)
            rng: Random source (seed it for reproducible runs)
        """
        self._delay_min = delay_min
        self._delay_max = delay_max
        self._weights = dict(meetup_answer_weights or {MeetupAnswer.YES: 1.0})
        self._rng = rng or random.Random()

    @classmethod
    def from_config(cls, config: "SessionConfig") -> PeerSimulator:
        """Create a simulator from session configuration."""
        return cls(
            delay_min=config.response_delay_min,
            delay_max=config.response_delay_max,
            meetup_answer_weights=config.meetup_answer_weights,
            rng=random.Random(config.random_seed),
        )

    def next_delay(self) -> float:
        """Randomized delay before the next response, in seconds."""
        return self._rng.uniform(self._delay_min, self._delay_max)

    def response_to(self, action: ConversationAction) -> ConversationAction | None:
        """Get the peer's answer to a locally initiated action.

        Returns:
            A peer-originated action, or None if the peer does not answer
        """
        match action:
            case SendSignalAction():
                return ReceiveSignalAction(signal=self._rng.choice(list(SignalType)))
            case SendDialogReplyAction():
                return ReceiveDialogReplyAction(reply=self._rng.choice(DIALOG_REPLY_OPTIONS))
            case SendMeetupIntentAction():
                return ReceiveMeetupResponseAction(answer=self._pick_answer())
            case _:
                return None

    def _pick_answer(self) -> MeetupAnswer:
        answers = list(self._weights)
        weights = [self._weights[a] for a in answers]
        return self._rng.choices(answers, weights=weights, k=1)[0]
