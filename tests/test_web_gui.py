"""Tests for the Flask JSON interface.

The application factory is exercised with the settings loader replaced so
the user's home directory is never read. Solo throttling is covered both
through the routes and directly with a controllable clock.
"""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

pytest.importorskip("flask")

web_gui = importlib.import_module("scale_soloist.web_gui")


@pytest.fixture
def make_client(monkeypatch):
    """Return a factory building a test client under the given settings."""

    def _make(settings=None, **env):
        for key, value in env.items():
            monkeypatch.setenv(key, str(value))
        monkeypatch.setattr(web_gui, "load_settings", lambda: settings or {})
        app = web_gui.create_app()
        app.config["TESTING"] = True
        return app.test_client()

    return _make


def test_list_scales(make_client):
    data = make_client().get("/api/scales").get_json()
    assert data["roots"][0] == "C" and len(data["roots"]) == 12
    assert data["modes"] == ["major", "minor"]
    assert data["categories"] == ["diatonic", "pentatonic", "blues"]


def test_default_scale(make_client):
    data = make_client().get("/api/scale").get_json()
    assert data["name"] == "C Major Diatonic"
    assert [f"{n['note']}{n['octave']}" for n in data["notes"]] == [
        "C4", "D4", "E4", "F4", "G4", "A4", "B4", "C5",
    ]
    assert data["notes"][5]["frequency"] == 440.0


def test_scale_accepts_query_parameters(make_client):
    resp = make_client().get("/api/scale?root=eb&mode=minor&category=pentatonic&octave=2&notes=5")
    data = resp.get_json()
    assert data["name"] == "D# Minor Pentatonic"
    assert len(data["notes"]) == 5
    assert data["notes"][0] == {"note": "D#", "octave": 2, "frequency": pytest.approx(77.782, abs=1e-3)}


def test_solo_is_reproducible_with_seed(make_client):
    client = make_client()
    first = client.get("/api/solo?seed=5&measures=3").get_json()
    second = client.get("/api/solo?seed=5&measures=3").get_json()
    assert first == second
    assert len(first["measures"]) == 3
    assert first["beats"] >= 12
    assert first["events"] == [e for m in first["measures"] for e in m]


def test_generator_settings_are_applied(make_client):
    client = make_client(
        {
            "generator": {
                "leading_rest_chance": 0,
                "between_phrase_rest_chance": 0,
                "repetition_rest_chance": 0,
            }
        }
    )
    data = client.get("/api/solo?seed=8&measures=4").get_json()
    assert all(event["note"] is not None for event in data["events"])


@pytest.mark.parametrize(
    "query",
    [
        "/api/scale?root=H",
        "/api/scale?mode=phrygian",
        "/api/scale?octave=12",
        "/api/scale?notes=abc",
        "/api/solo?measures=0",
        "/api/solo?measures=99",
        "/api/solo?seed=x",
    ],
)
def test_invalid_parameters_return_400(make_client, query):
    resp = make_client().get(query)
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_max_measures_configurable(make_client):
    client = make_client(MAX_MEASURES=2)
    assert client.get("/api/solo?measures=2").status_code == 200
    assert client.get("/api/solo?measures=3").status_code == 400


class FakeClock:
    """Manually advanced replacement for ``time.monotonic``."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_solo_requests_throttled(make_client):
    client = make_client(SOLO_REQUESTS_PER_MINUTE=2)
    assert client.get("/api/solo?seed=1").status_code == 200
    assert client.get("/api/solo?seed=2").status_code == 200
    resp = client.get("/api/solo?seed=3")
    assert resp.status_code == 429
    assert resp.get_json()["error"] == "Too many solo requests"
    assert 0 < int(resp.headers["Retry-After"]) <= 60


def test_lookup_routes_never_throttled(make_client):
    client = make_client(SOLO_REQUESTS_PER_MINUTE=1)
    for _ in range(5):
        assert client.get("/api/scales").status_code == 200
        assert client.get("/api/scale").status_code == 200
    assert client.get("/api/solo").status_code == 200
    assert client.get("/api/solo").status_code == 429


@pytest.mark.parametrize("value, message", [("lots", "must be an integer"), ("0", "must be positive")])
def test_invalid_throttle_setting_disables_throttling(make_client, caplog, value, message):
    client = make_client(SOLO_REQUESTS_PER_MINUTE=value)
    for _ in range(4):
        assert client.get("/api/solo").status_code == 200
    assert message in caplog.text


def test_throttle_window_slides():
    """Capacity returns as individual requests age out, not all at once."""

    clock = FakeClock()
    throttle = web_gui.SoloThrottle(2, window=60.0, clock=clock)
    assert throttle.retry_after("a") == 0
    clock.now += 30
    assert throttle.retry_after("a") == 0
    assert throttle.retry_after("a") == 30
    # Other clients have their own budget.
    assert throttle.retry_after("b") == 0
    clock.now += 30
    # The first request has expired, the second is still inside the window.
    assert throttle.retry_after("a") == 0
    assert throttle.retry_after("a") == 30


def test_throttle_rejects_non_positive_limit():
    with pytest.raises(ValueError):
        web_gui.SoloThrottle(0)


def test_app_starts_without_secret(monkeypatch):
    """No secret key is configured since the API keeps no session state."""

    monkeypatch.delenv("FLASK_SECRET", raising=False)
    monkeypatch.delenv("FLASK_DEBUG", raising=False)
    monkeypatch.setattr(web_gui, "load_settings", lambda: {})
    app = web_gui.create_app()
    assert not app.debug
    assert app.test_client().get("/api/scales").status_code == 200
