import pytest
import requests

from quiniela.errors import FootballApiError
from quiniela.football_api import FootballApiClient


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self.payload = payload or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        return self.responses.pop(0)


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []
    monkeypatch.setattr("quiniela.football_api.time.sleep", recorded.append)
    return recorded


def make_client(responses):
    return FootballApiClient(
        base_url="https://v3.football.api-sports.io/",
        api_key="secret",
        timezone="America/Mexico_City",
        session=FakeSession(responses),
    )


def test_headers_and_request():
    client = make_client([FakeResponse(200, {"response": [{"fixture": {"id": 9}}]})])

    match = client.get_fixture(9)

    assert match == {"fixture": {"id": 9}}
    assert client.session.headers["x-rapidapi-key"] == "secret"
    assert client.session.headers["x-rapidapi-host"] == "v3.football.api-sports.io"
    assert client.session.calls == [
        ("https://v3.football.api-sports.io/fixtures", {"id": 9, "timezone": "America/Mexico_City"}),
    ]


def test_rate_limit_backs_off_then_succeeds(sleeps):
    client = make_client([
        FakeResponse(429),
        FakeResponse(429),
        FakeResponse(200, {"response": []}),
    ])

    assert client.get_fixture(1) is None
    assert sleeps == [5, 10]


def test_rate_limit_exhausted(sleeps):
    client = make_client([FakeResponse(429)] * 5)

    with pytest.raises(FootballApiError):
        client.get("fixtures", {"id": 1})
    assert sleeps == [5, 10, 20, 40, 60]


def test_server_error_is_wrapped():
    client = make_client([FakeResponse(500)])

    with pytest.raises(FootballApiError):
        client.get_fixture(1)


def test_missing_api_key():
    with pytest.raises(FootballApiError):
        FootballApiClient(api_key="")
