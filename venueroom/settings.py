"""Session configuration for venueroom.

SessionConfig is passed explicitly to the SessionController; nothing in
the protocol reads global flags. Values come from, in increasing priority:
1. Model defaults
2. A YAML file (see config/session.example.yaml)
3. VENUEROOM_* environment variables
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from venueroom.core.types import MeetupAnswer

ENV_PREFIX = "VENUEROOM_"


class SettingsError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""

    pass


class SessionConfig(BaseModel):
    """Configuration for one venue room session."""

    model_config = ConfigDict(frozen=True)

    # Feature flag for the whole interaction protocol
    protocol_enabled: bool = True

    # Simulated peer (stand-in until a real peer is connected)
    simulate_peer: bool = True
    response_delay_min: float = Field(default=1.5, ge=0)
    response_delay_max: float = Field(default=4.0, ge=0)
    meetup_answer_weights: dict[MeetupAnswer, float] = Field(
        default_factory=lambda: {
            MeetupAnswer.YES: 0.6,
            MeetupAnswer.MAYBE: 0.25,
            MeetupAnswer.NOT_TONIGHT: 0.15,
        }
    )
    random_seed: int | None = None

    # Switching the selected peer discards every conversation in the room
    reset_on_peer_switch: bool = True

    # Window for finding each other after the meetup is accepted; None disables
    coordination_expiry_seconds: Annotated[float, Field(gt=0)] | None = 600.0

    @model_validator(mode="after")
    def _check_ranges(self) -> SessionConfig:
        if self.response_delay_max < self.response_delay_min:
            raise ValueError("response_delay_max must be >= response_delay_min")
        if any(weight < 0 for weight in self.meetup_answer_weights.values()):
            raise ValueError("meetup_answer_weights must be non-negative")
        if self.meetup_answer_weights and sum(self.meetup_answer_weights.values()) <= 0:
            raise ValueError("meetup_answer_weights must not all be zero")
        return self


# Environment variable -> field name
_ENV_FIELDS: dict[str, str] = {
    "PROTOCOL_ENABLED": "protocol_enabled",
    "SIMULATE_PEER": "simulate_peer",
    "RESPONSE_DELAY_MIN": "response_delay_min",
    "RESPONSE_DELAY_MAX": "response_delay_max",
    "RANDOM_SEED": "random_seed",
    "RESET_ON_PEER_SWITCH": "reset_on_peer_switch",
    "COORDINATION_EXPIRY_SECONDS": "coordination_expiry_seconds",
}

_NULL_VALUES = {"", "none", "null", "off"}


def _env_overrides(environ: Mapping[str, str]) -> dict[str, str | None]:
    """Collect VENUEROOM_* overrides, letting pydantic coerce the strings."""
    overrides: dict[str, str | None] = {}
    for suffix, field_name in _ENV_FIELDS.items():
        raw = environ.get(ENV_PREFIX + suffix)
        if raw is None:
            continue
        value = raw.strip()
        if field_name in ("random_seed", "coordination_expiry_seconds") and value.lower() in _NULL_VALUES:
            overrides[field_name] = None
        else:
            overrides[field_name] = value
    return overrides


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> SessionConfig:
    """Load session configuration.

    Args:
        path: Optional YAML file. Its top-level "session" mapping (or the
            whole document, if there is no such key) supplies values.
        environ: Environment to read overrides from (default: os.environ)

    Returns:
        Validated SessionConfig

    Raises:
        SettingsError: If the file is missing or unreadable, or a value is invalid
    """
    data: dict = {}

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise SettingsError(f"Config file not found: {config_path}")
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SettingsError(f"Invalid YAML in {config_path}: {e}") from e

        if loaded:
            section = loaded.get("session", loaded) if isinstance(loaded, dict) else loaded
            if not isinstance(section, dict):
                raise SettingsError(f"Expected a mapping in {config_path}")
            data = dict(section)

    data.update(_env_overrides(os.environ if environ is None else environ))

    try:
        return SessionConfig.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid session configuration: {e}") from e
