#!/usr/bin/env python3
"""Flask JSON interface for Scale Soloist.

The launchpad page that plays generated solos runs in the browser; this
module gives it (or any other client) an HTTP endpoint for the scale space
and for freshly generated solos.  All responses are JSON.

Routes
------
``GET /api/scales``
    Supported roots, modes and categories.
``GET /api/scale``
    The scale space for ``root``, ``mode``, ``category``, ``octave`` and
    ``notes`` query parameters, with frequencies for each degree.
``GET /api/solo``
    A solo over that scale space. Accepts ``measures`` and an optional
    ``seed`` for reproducible output.

Safeguards
----------
* **WSGI-friendly entry point** – :func:`create_app` builds and configures
  the Flask application so production servers like Gunicorn can serve it.
* **Request size limiting** – ``MAX_CONTENT_LENGTH`` bounds incoming data.
* **Solo throttling** – ``SOLO_REQUESTS_PER_MINUTE`` caps how often one
  client may call ``/api/solo`` within a sliding one minute window; the
  cheap lookup routes are never throttled.  Excess calls get ``429`` with a
  ``Retry-After`` header.
"""

from __future__ import annotations

import logging
import math
import os
from collections import deque
from threading import Lock
from time import monotonic
from typing import Callable, Deque, Dict, Optional, Tuple

from flask import Flask, Response, current_app, jsonify, make_response, request

import scale_soloist
from scale_soloist.config import config_from_dict, load_settings

# Logger used throughout the module for diagnostic messages.
logger = logging.getLogger(__name__)

# Length of the throttling window in seconds.
THROTTLE_WINDOW = 60.0

# Upper bound on ``measures`` unless ``MAX_MEASURES`` overrides it.
DEFAULT_MAX_MEASURES = 16


class SoloThrottle:
    """Sliding-window limit on solo generation per client address.

    Each client keeps the timestamps of its accepted requests from the last
    ``window`` seconds. A request is refused while ``limit`` of them remain,
    and the client is told how long until the oldest one expires.
    """

    def __init__(
        self,
        limit: int,
        window: float = THROTTLE_WINDOW,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be positive")
        self.limit = limit
        self.window = window
        self.clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        # Flask's development server may handle requests on several threads.
        self._lock = Lock()

    def retry_after(self, client: str) -> int:
        """Record a request from ``client``.

        Returns ``0`` when the request is allowed, otherwise the whole number
        of seconds the client should wait.
        """

        now = self.clock()
        with self._lock:
            stale = [
                key for key, hits in self._hits.items()
                if now - hits[-1] >= self.window
            ]
            for key in stale:
                del self._hits[key]

            hits = self._hits.setdefault(client, deque())
            while hits and now - hits[0] >= self.window:
                hits.popleft()
            if len(hits) >= self.limit:
                return max(1, math.ceil(self.window - (now - hits[0])))
            hits.append(now)
            return 0


def throttle_solos() -> Optional[Response]:
    """``before_request`` hook applying the app's :class:`SoloThrottle`."""

    throttle = current_app.extensions.get("solo_throttle")
    if throttle is None or request.endpoint != "solo":
        return None

    client = request.remote_addr or "unknown"
    wait = throttle.retry_after(client)
    if not wait:
        return None
    logger.info("Throttled solo request from %s for %d s", client, wait)
    response = make_response(jsonify(error="Too many solo requests"), 429)
    response.headers["Retry-After"] = str(wait)
    return response


def _throttle_limit(raw: Optional[str]) -> Optional[int]:
    """Parse ``SOLO_REQUESTS_PER_MINUTE``; ``None`` disables throttling."""

    if not raw:
        return None
    try:
        limit = int(raw)
    except ValueError:
        logger.warning(
            "SOLO_REQUESTS_PER_MINUTE must be an integer (got %r); throttling disabled.", raw
        )
        return None
    if limit <= 0:
        logger.warning(
            "SOLO_REQUESTS_PER_MINUTE must be positive (got %d); throttling disabled.", limit
        )
        return None
    return limit


def _int_arg(name: str, default: int, minimum: int, maximum: int) -> int:
    """Read integer query parameter ``name`` within ``[minimum, maximum]``."""

    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer") from None
    if not minimum <= value <= maximum:
        raise ValueError(f"{name} must be between {minimum} and {maximum}")
    return value


def _scale_args() -> Tuple[str, str, str, int, int]:
    """Return canonical ``(root, mode, category, octave, notes)`` from the query."""

    root = scale_soloist.canonical_pitch_class(request.args.get("root", "C"))
    mode = scale_soloist.canonical_mode(request.args.get("mode", "major"))
    category = scale_soloist.canonical_category(request.args.get("category", "diatonic"))
    octave = _int_arg("octave", 4, scale_soloist.MIN_OCTAVE, scale_soloist.MAX_OCTAVE)
    notes = _int_arg("notes", 8, scale_soloist.MIN_NOTE_COUNT, scale_soloist.MAX_NOTE_COUNT)
    return root, mode, category, octave, notes


def list_scales():
    """Return the supported roots, modes and categories."""
    return jsonify(
        roots=scale_soloist.NOTES,
        modes=list(scale_soloist.MODES),
        categories=list(scale_soloist.CATEGORIES),
    )


def scale():
    """Return the scale space described by the query parameters."""

    root, mode, category, octave, notes = _scale_args()
    space = scale_soloist.build_scale_space(root, mode, category, octave, notes)
    return jsonify(
        name=scale_soloist.scale_name(root, mode, category),
        notes=[
            {
                "note": degree.pitch_class,
                "octave": degree.octave,
                "frequency": round(scale_soloist.note_frequency(degree), 3),
            }
            for degree in space
        ],
    )


def solo():
    """Generate a solo over the requested scale space."""

    root, mode, category, octave, notes = _scale_args()
    measures = _int_arg("measures", 2, 1, current_app.config["MAX_MEASURES"])
    seed_raw = request.args.get("seed")
    try:
        seed = int(seed_raw) if seed_raw not in (None, "") else None
    except ValueError:
        raise ValueError("seed must be an integer") from None

    generator = scale_soloist.SoloGenerator.from_scale(
        root,
        mode,
        category,
        octave,
        notes,
        config=current_app.config["GENERATOR_CONFIG"],
        seed=seed,
    )
    grouped = generator.measures(measures)
    events = [event for measure in grouped for event in measure]
    return jsonify(
        scale=scale_soloist.scale_name(root, mode, category),
        beats=float(scale_soloist.total_beats(events)),
        measures=[[scale_soloist.event_to_dict(e) for e in measure] for measure in grouped],
        events=[scale_soloist.event_to_dict(e) for e in events],
    )


def create_app() -> Flask:
    """Build and configure the Flask application instance.

    The optional environment variables ``MAX_UPLOAD_MB``,
    ``SOLO_REQUESTS_PER_MINUTE`` and ``MAX_MEASURES`` tune the safeguards,
    and a ``generator`` section in the settings file overrides generation
    probabilities. Invalid values are logged and replaced by defaults.

    Returns:
        Flask: Configured application ready for use by a WSGI server.
    Raises:
        ValueError: If the ``generator`` settings are invalid.
    """

    app = Flask(__name__)

    try:
        max_mb = int(os.environ.get("MAX_UPLOAD_MB", "1"))
    except ValueError:
        max_mb = 1
        logger.warning("Invalid MAX_UPLOAD_MB value; defaulting to 1 MB.")
    try:
        max_measures = int(os.environ.get("MAX_MEASURES", str(DEFAULT_MAX_MEASURES)))
    except ValueError:
        max_measures = DEFAULT_MAX_MEASURES
        logger.warning("Invalid MAX_MEASURES value; defaulting to %d.", DEFAULT_MAX_MEASURES)

    app.config["MAX_CONTENT_LENGTH"] = max_mb * 1024 * 1024
    app.config["MAX_MEASURES"] = max(1, max_measures)

    limit = _throttle_limit(os.environ.get("SOLO_REQUESTS_PER_MINUTE"))
    if limit is not None:
        app.extensions["solo_throttle"] = SoloThrottle(limit)

    settings = load_settings()
    generator_settings = settings.get("generator", {}) if isinstance(settings, dict) else {}
    app.config["GENERATOR_CONFIG"] = config_from_dict(generator_settings)

    app.add_url_rule("/api/scales", view_func=list_scales, methods=["GET"])
    app.add_url_rule("/api/scale", view_func=scale, methods=["GET"])
    app.add_url_rule("/api/solo", view_func=solo, methods=["GET"])

    app.before_request(throttle_solos)

    @app.errorhandler(ValueError)
    def handle_bad_parameter(err):
        """Report invalid query parameters as ``400`` with the reason."""
        return jsonify(error=str(err)), 400

    @app.errorhandler(413)
    def handle_request_too_large(_err):
        """Return a concise message when the client uploads too much data."""
        return jsonify(error="Request exceeds configured size limit."), 413

    return app


# ``pragma: no cover`` keeps coverage tools quiet when this block is skipped.
if __name__ == "__main__":  # pragma: no cover - manual usage
    create_app().run(debug=True)
