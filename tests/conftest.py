import pytest
import requests

import co2_data


class FakeResponse:
    def __init__(self, status_code=200, text="", payload=None):
        self.status_code = status_code
        self.text = text
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def routes(monkeypatch):
    """Map URL -> FakeResponse or exception; requests.get serves from it."""
    table = {}
    calls = []

    def fake_get(url, timeout=None, **kwargs):
        calls.append((url, timeout))
        outcome = table.get(url)
        if outcome is None:
            raise requests.ConnectionError(f"no route for {url}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(co2_data.requests, "get", fake_get)
    table["_calls"] = calls
    return table


def commits(date="2024-01-05T12:00:00Z"):
    return FakeResponse(payload=[{"sha": "abc", "commit": {"author": {"name": "owid", "date": date}}}])


def csv(text):
    return FakeResponse(text=text)
