"""Tunable probabilities and persisted preferences.

All probability constants used by the phrase generator and the sequence
assembler live on :class:`GeneratorConfig`.  The defaults reproduce the
behaviour of the web autoplay feature; alternative values can be supplied in
code or loaded from a JSON file so the feel of a solo can be tuned without
touching the generator.

Duration tables are written as ``{token: weight}`` mappings in JSON, for
example::

    {
        "stepwise_chance": 0.9,
        "rest_durations": {"8r": 0.7, "16r": 0.3}
    }

User preferences for the command line and web interfaces (root, mode,
octave and so on) are stored separately by :func:`load_settings` and
:func:`save_settings`.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

from .events import Duration

__all__ = [
    "GeneratorConfig",
    "DEFAULT_CONFIG",
    "DEFAULT_SETTINGS_FILE",
    "config_from_dict",
    "load_config",
    "load_settings",
    "save_settings",
]


logger = logging.getLogger(__name__)

# Default path for storing user preferences. The file lives in the user's
# home directory so settings persist between runs.
env_path = os.environ.get("SCALE_SOLOIST_SETTINGS_FILE")
if env_path:
    DEFAULT_SETTINGS_FILE = Path(env_path).expanduser()
else:
    DEFAULT_SETTINGS_FILE = Path.home() / ".scale_soloist_settings.json"

DurationTable = Tuple[Tuple[Duration, float], ...]


@dataclass(frozen=True)
class GeneratorConfig:
    """Named probability constants for solo generation.

    Chances are probabilities in ``[0, 1]``. Duration tables hold
    ``(Duration, weight)`` pairs whose weights are normalised at draw time.
    """

    # Pitch selection
    melodic_move_chance: float = 0.9
    stepwise_chance: float = 0.8
    single_step_chance: float = 0.9
    keep_direction_chance: float = 0.7
    skip_intervals: Tuple[int, ...] = (3, -3, 4, -4)
    free_choice_range: int = 5

    # Repetition handling
    avoid_repetition_chance: float = 0.8
    alternative_range: int = 3
    repetition_rest_chance: float = 0.6

    # Durations
    downbeat_quarter_chance: float = 0.8
    phrase_start_eighth_chance: float = 0.7
    phrase_end_eighth_chance: float = 0.7
    middle_durations: DurationTable = (
        (Duration.EIGHTH, 0.5),
        (Duration.SIXTEENTH, 0.3),
        (Duration.EIGHTH_TRIPLET, 0.1),
        (Duration.DOTTED_EIGHTH, 0.1),
    )
    rest_durations: DurationTable = (
        (Duration.EIGHTH_REST, 0.5),
        (Duration.SIXTEENTH_REST, 0.1),
        (Duration.QUARTER_REST, 0.2),
        (Duration.HALF_REST, 0.2),
    )

    # Sequence assembly
    min_phrase_length: int = 2
    max_phrase_length: int = 3
    leading_rest_chance: float = 0.3
    between_phrase_rest_chance: float = 0.3
    history_size: int = 8

    def validate(self) -> "GeneratorConfig":
        """Check every value and return ``self`` so calls can be chained.

        Raises
        ------
        ValueError
            If a chance lies outside ``[0, 1]``, a weight table is empty,
            negative or mixes note and rest values, or a length is not
            positive.
        """

        for f in fields(self):
            if f.name.endswith("_chance"):
                value = getattr(self, f.name)
                if not 0.0 <= value <= 1.0:
                    raise ValueError(f"{f.name} must be between 0 and 1, got {value}")

        _check_table("middle_durations", self.middle_durations, rest=False)
        _check_table("rest_durations", self.rest_durations, rest=True)

        if not self.skip_intervals:
            raise ValueError("skip_intervals must not be empty")
        if 0 in self.skip_intervals:
            raise ValueError("skip_intervals must not contain 0")
        if self.free_choice_range < 0 or self.alternative_range < 0:
            raise ValueError("interval ranges must be non-negative")
        if not 1 <= self.min_phrase_length <= self.max_phrase_length:
            raise ValueError("phrase lengths must satisfy 1 <= min <= max")
        if self.history_size < 2:
            raise ValueError("history_size must be at least 2")
        return self


def _check_table(name: str, table: DurationTable, *, rest: bool) -> None:
    if not table:
        raise ValueError(f"{name} must not be empty")
    total = 0.0
    for duration, weight in table:
        if duration.is_rest != rest:
            kind = "rest" if rest else "note"
            raise ValueError(f"{name} may only contain {kind} durations, got {duration.value}")
        if weight < 0:
            raise ValueError(f"{name} weights must be non-negative")
        total += weight
    if total <= 0:
        raise ValueError(f"{name} weights must sum to a positive value")


DEFAULT_CONFIG = GeneratorConfig()

_TABLE_FIELDS = {"middle_durations", "rest_durations"}
_FIELD_NAMES = {f.name for f in fields(GeneratorConfig)}


def config_from_dict(data: Mapping[str, Any], base: GeneratorConfig = DEFAULT_CONFIG) -> GeneratorConfig:
    """Return ``base`` updated with the overrides in ``data``.

    Unknown keys are logged and ignored so settings files written by newer
    versions still load.
    """

    overrides: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in _FIELD_NAMES:
            logger.warning("Ignoring unknown generator setting: %s", key)
            continue
        if key in _TABLE_FIELDS:
            if not isinstance(value, Mapping):
                raise ValueError(f"{key} must map duration tokens to weights")
            value = tuple(
                (Duration.from_token(token), float(weight)) for token, weight in value.items()
            )
        elif key == "skip_intervals":
            value = tuple(int(v) for v in value)
        elif key.endswith("_chance"):
            value = float(value)
        else:
            value = int(value)
        overrides[key] = value
    return replace(base, **overrides).validate()


def load_config(path: Path) -> GeneratorConfig:
    """Load generator overrides from the JSON file at ``path``.

    A missing file yields :data:`DEFAULT_CONFIG`. Malformed JSON or invalid
    values raise ``ValueError`` so a broken configuration is never silently
    replaced by defaults.
    """

    path = Path(path).expanduser()
    if not path.is_file():
        logger.debug("No generator config at %s; using defaults", path)
        return DEFAULT_CONFIG
    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid generator config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Generator config {path} must contain a JSON object")
    return config_from_dict(data)


def load_settings(path: Path = DEFAULT_SETTINGS_FILE) -> dict:
    """Load saved user settings from ``path`` if it exists.

    @param path (Path): Location of the settings file.
    @returns dict: Loaded settings or an empty dictionary when unavailable.
    """
    # Prefer the user's saved options but fall back to an empty
    # dictionary when the settings file is missing or unreadable.
    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return json.load(fh)
        except Exception as exc:  # pragma: no cover - log error but return defaults
            logger.error("Could not load settings: %s", exc)
    return {}


def save_settings(settings: dict, path: Path = DEFAULT_SETTINGS_FILE) -> None:
    """Save user ``settings`` to ``path`` as JSON.

    @param settings (dict): Options to be persisted.
    @param path (Path): Destination file path.
    @returns None: Function does not return a value.
    """
    # Failing to save preferences never prevents solo generation.
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except Exception as exc:  # pragma: no cover - log error only
        logger.error("Could not save settings: %s", exc)
