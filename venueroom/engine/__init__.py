"""Protocol engine for venueroom.

Pure functions over ConversationState:
- transition: apply one action, accept or reject it
- derive_ui_context: what the screen offers for a conversation
- replay: rebuild a state from its event history
"""

from .transitions import ACCEPTING_PHASES, transition, apply_all
from .ui_context import (
    ConversationUIContext,
    derive_ui_context,
    enabled_actions,
    card_preview_text,
)
from .replay import (
    ReplayError,
    action_for_event,
    replay,
    history_to_json,
    history_from_json,
)

__all__ = [
    # Transitions
    "ACCEPTING_PHASES",
    "transition",
    "apply_all",
    # UI context
    "ConversationUIContext",
    "derive_ui_context",
    "enabled_actions",
    "card_preview_text",
    # Replay
    "ReplayError",
    "action_for_event",
    "replay",
    "history_to_json",
    "history_from_json",
]
