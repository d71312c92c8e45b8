"""Tests for video token issuance."""
from __future__ import annotations

import time

import jwt
import pytest

from videoroom.services import tokens

ACCOUNT_SID = "AC" + "0" * 32
API_KEY = "SK" + "1" * 32
API_SECRET = "s3cr3t-" + "x" * 40


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setattr(tokens.settings, "twilio_account_sid", ACCOUNT_SID)
    monkeypatch.setattr(tokens.settings, "twilio_api_key", API_KEY)
    monkeypatch.setattr(tokens.settings, "twilio_api_secret", API_SECRET)
    monkeypatch.setattr(tokens.settings, "token_ttl_seconds", 3600)


@pytest.mark.parametrize(
    ("identity", "room_name"),
    [("alice", "standup"), ("bob@example.com", "Weekly Sync"), ("user-42", "r")],
)
def test_issue_token_scopes_grant_to_identity_and_room(credentials, identity, room_name):
    issued = tokens.issue_token(identity, room_name)

    payload = jwt.decode(issued.token, API_SECRET, algorithms=["HS256"])

    assert payload["grants"]["identity"] == identity
    assert payload["grants"]["video"] == {"room": room_name}
    assert payload["iss"] == API_KEY
    assert payload["sub"] == ACCOUNT_SID
    assert payload["exp"] > time.time()
    assert issued.identity == identity
    assert issued.room_name == room_name
    assert issued.expires_in == 3600


def test_issue_token_respects_configured_ttl(credentials, monkeypatch):
    monkeypatch.setattr(tokens.settings, "token_ttl_seconds", 60)

    issued = tokens.issue_token("alice", "standup")
    payload = jwt.decode(issued.token, API_SECRET, algorithms=["HS256"])

    assert time.time() < payload["exp"] <= int(time.time()) + 60
    assert issued.expires_in == 60


def test_issue_token_requires_credentials(credentials, monkeypatch):
    monkeypatch.setattr(tokens.settings, "twilio_api_secret", "")
    monkeypatch.setattr(tokens.settings, "twilio_account_sid", "   ")

    with pytest.raises(tokens.TokenConfigurationError) as exc:
        tokens.issue_token("alice", "standup")

    message = str(exc.value)
    assert "TWILIO_API_SECRET" in message
    assert "TWILIO_ACCOUNT_SID" in message
    assert "TWILIO_API_KEY" not in message


def test_issue_token_wraps_signing_failures(credentials, monkeypatch):
    class RejectingAccessToken:
        def __init__(self, *args, **kwargs) -> None:
            pass

        def add_grant(self, grant) -> None:
            raise ValueError("Grant must be an instance of AccessTokenGrant.")

        def to_jwt(self) -> str:  # pragma: no cover - never reached
            return "unused"

    monkeypatch.setattr(tokens, "AccessToken", RejectingAccessToken)

    with pytest.raises(tokens.TokenSigningError) as exc:
        tokens.issue_token("alice", "standup")

    assert isinstance(exc.value.__cause__, ValueError)
    assert isinstance(exc.value, tokens.TokenServiceError)
