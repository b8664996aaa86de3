"""
Tests for the HTTP entry point, using a minimal request stand-in.
"""

import json

import pytest

import main


class FakeRequest:
    """Just enough of a Flask request for analyze_email()."""

    def __init__(self, payload=None, method="POST", headers=None, raw_json=True):
        self.method = method
        self.headers = headers if headers is not None else {"X-API-Key": "test-key"}
        self._payload = payload
        self._raw_json = raw_json

    def get_json(self, force=False, silent=False):
        if not self._raw_json:
            return None
        return self._payload


@pytest.fixture(autouse=True)
def api_secret(monkeypatch):
    monkeypatch.setattr(main, "API_SECRET", "test-key")


def _call(request):
    body, status, headers = main.analyze_email(request)
    return (json.loads(body) if body else None), status, headers


class TestAnalyzeEmail:

    def test_preflight(self):
        body, status, headers = main.analyze_email(FakeRequest(method="OPTIONS"))
        assert status == 204
        assert headers["Access-Control-Allow-Origin"] == "*"

    def test_rejects_bad_api_key(self):
        data, status, _ = _call(FakeRequest({"body": "hi"}, headers={"X-API-Key": "nope"}))
        assert status == 401
        assert data == {"error": "unauthorized"}

    def test_rejects_invalid_json(self):
        data, status, _ = _call(FakeRequest(raw_json=False))
        assert status == 400
        assert data == {"error": "invalid JSON body"}

    def test_rejects_non_object_json(self):
        data, status, _ = _call(FakeRequest(["body"]))
        assert status == 400

    def test_rejects_non_string_field(self):
        data, status, _ = _call(FakeRequest({"sender": 42, "body": "hi"}))
        assert status == 400
        assert data == {"error": "fields must be strings"}

    @pytest.mark.parametrize("payload", [{}, {"body": ""}, {"body": "   "}, {"body": None}])
    def test_requires_body(self, payload):
        data, status, _ = _call(FakeRequest(payload))
        assert status == 400
        assert data == {"error": "missing required email data"}

    def test_phishing_verdict(self):
        payload = {
            "sender": "security@paypal-secure.com",
            "subject": "URGENT: Verify Your Account Now!",
            "body": "Your account has been suspended. Act immediately: http://paypal-login.tk/x",
        }
        data, status, headers = _call(FakeRequest(payload))

        assert status == 200
        assert headers["Content-Type"] == "application/json"
        assert data["isPhishing"] is True
        assert data["tier"] == "Critical"
        assert 95 <= data["confidence"] <= 99
        assert "Urgency pressure" in data["matchedIndicators"]
        assert data["sender"] == payload["sender"]
        assert data["subject"] == payload["subject"]

    def test_defaults_for_missing_sender_and_subject(self):
        data, status, _ = _call(FakeRequest({"body": "hello", "sender": None}))

        assert status == 200
        assert data["score"] == 10
        assert data["isPhishing"] is False
        assert data["matchedIndicators"] == ["Missing sender information"]
        assert data["sender"] == "unknown@example.com"
        assert data["subject"] == "No subject"
        assert data["recommendation"].startswith("Email appears legitimate")
