"""Stateful services for venueroom."""

from .session import SessionController, StateListener
from .simulator import PeerSimulator

__all__ = [
    # Session
    "SessionController",
    "StateListener",
    # Simulated peer
    "PeerSimulator",
]
