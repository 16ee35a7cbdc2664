import pytest
import requests

import core.weather_fetcher as weather
from core.errors import FetchError
from core.models import Coordinate, WeatherReading
from core.weather_fetcher import WeatherFetcher, build_weather_url, parse_weather_payload

STOCKHOLM = Coordinate(59.3293, 18.0686)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, *, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response


def _body(temp_min=2.5, temp_max=6.1, **extra):
    body = {"main": {"temp": 4.0, "temp_min": temp_min, "temp_max": temp_max}}
    body.update(extra)
    return body


def test_fetch_extracts_min_and_max():
    session = FakeSession(FakeResponse(payload=_body(name="Stockholm")))

    reading = WeatherFetcher(session).fetch(STOCKHOLM, "secret-key")

    assert reading == WeatherReading(min_temp=2.5, max_temp=6.1)


def test_fetch_sends_metric_request_with_key():
    session = FakeSession(FakeResponse(payload=_body()))

    WeatherFetcher(session).fetch(STOCKHOLM, "secret-key")

    url, kwargs = session.calls[0]
    assert url == "https://api.openweathermap.org/data/2.5/weather"
    assert kwargs["params"] == {
        "lat": 59.3293,
        "lon": 18.0686,
        "appid": "secret-key",
        "units": "metric",
    }
    assert len(session.calls) == 1


def test_identical_bodies_yield_identical_readings():
    fetcher = WeatherFetcher(FakeSession(FakeResponse(payload=_body(-3.25, 1.75))))

    first = fetcher.fetch(STOCKHOLM, "k")
    second = fetcher.fetch(STOCKHOLM, "k")

    assert first == second == WeatherReading(-3.25, 1.75)


def test_extra_fields_are_ignored():
    payload = _body(weather=[{"description": "snow"}], wind={"speed": 3.1}, name="Stockholm")
    reading = WeatherFetcher(FakeSession(FakeResponse(payload=payload))).fetch(STOCKHOLM, "k")

    assert reading.max_temp == 6.1


def test_integer_temperatures_become_floats():
    reading = WeatherFetcher(FakeSession(FakeResponse(payload=_body(1, 7)))).fetch(STOCKHOLM, "k")

    assert reading == WeatherReading(1.0, 7.0)
    assert isinstance(reading.min_temp, float)


def test_missing_main_raises_fetch_error():
    session = FakeSession(FakeResponse(payload={"weather": [], "name": "Stockholm"}))

    with pytest.raises(FetchError):
        WeatherFetcher(session).fetch(STOCKHOLM, "k")


@pytest.mark.parametrize(
    "main",
    [
        {"temp_min": 2.5},
        {"temp_max": 6.1},
        {"temp_min": "2.5", "temp_max": 6.1},
        {"temp_min": True, "temp_max": 6.1},
        {"temp_min": None, "temp_max": 6.1},
        {"temp_min": float("nan"), "temp_max": 6.1},
        {"temp_min": 2.5, "temp_max": float("inf")},
        {"temp_min": float("-inf"), "temp_max": 6.1},
    ],
)
def test_incomplete_main_raises_fetch_error(main):
    session = FakeSession(FakeResponse(payload={"main": main}))

    with pytest.raises(FetchError):
        WeatherFetcher(session).fetch(STOCKHOLM, "k")


@pytest.mark.parametrize("status", [401, 404, 429, 500, 503])
def test_non_success_status_raises_fetch_error(status):
    session = FakeSession(FakeResponse(status_code=status, payload={"cod": status, "message": "nope"}))

    with pytest.raises(FetchError) as excinfo:
        WeatherFetcher(session).fetch(STOCKHOLM, "k")

    assert excinfo.value.status_code == status


def test_invalid_json_raises_fetch_error():
    session = FakeSession(FakeResponse(invalid_json=True))

    with pytest.raises(FetchError) as excinfo:
        WeatherFetcher(session).fetch(STOCKHOLM, "k")

    assert excinfo.value.status_code == 200


def test_transport_error_raises_fetch_error():
    session = FakeSession(exc=requests.Timeout("read timed out"))

    with pytest.raises(FetchError) as excinfo:
        WeatherFetcher(session).fetch(STOCKHOLM, "k")

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, requests.Timeout)


def test_transport_error_message_hides_api_key():
    url = "https://api.openweathermap.org/data/2.5/weather?lat=59.3293&appid=s3cr3tkey0001&units=metric"
    session = FakeSession(exc=requests.ConnectionError(f"Max retries exceeded with url: {url}"))

    with pytest.raises(FetchError) as excinfo:
        WeatherFetcher(session).fetch(STOCKHOLM, "s3cr3tkey0001")

    message = str(excinfo.value)
    assert "s3cr3tkey0001" not in message
    assert "appid=[REDACTED]&units=metric" in message


def test_nan_temperature_body_is_rejected():
    session = FakeSession(FakeResponse(payload={"main": {"temp_min": float("nan"), "temp_max": 6.1}}))

    with pytest.raises(FetchError, match="not a finite number"):
        WeatherFetcher(session).fetch(STOCKHOLM, "k")


@pytest.mark.parametrize("api_key", ["", "   "])
def test_blank_api_key_fails_before_request(api_key):
    session = FakeSession(FakeResponse(payload=_body()))

    with pytest.raises(FetchError):
        WeatherFetcher(session).fetch(STOCKHOLM, api_key)

    assert session.calls == []


def test_base_url_override_strips_trailing_slash():
    session = FakeSession(FakeResponse(payload=_body()))
    fetcher = WeatherFetcher(session, base_url="http://api.openweathermap.org/", timeout=3)

    fetcher.fetch(STOCKHOLM, "k")

    url, kwargs = session.calls[0]
    assert url == "http://api.openweathermap.org/data/2.5/weather"
    assert kwargs["timeout"] == 3
    assert fetcher.base_url == "http://api.openweathermap.org"


def test_build_weather_url_shape():
    url = build_weather_url(STOCKHOLM, "abc123")

    assert url == (
        "https://api.openweathermap.org/data/2.5/weather"
        "?lat=59.3293&lon=18.0686&appid=abc123&units=metric"
    )


@pytest.mark.parametrize("payload", [None, [], "main", {"main": []}])
def test_parse_rejects_non_object_bodies(payload):
    with pytest.raises(FetchError):
        parse_weather_payload(payload)


def test_module_level_fetch_uses_given_session():
    session = FakeSession(FakeResponse(payload=_body()))

    reading = weather.fetch(STOCKHOLM, "k", session=session)

    assert reading.min_temp == 2.5
    assert len(session.calls) == 1
