"""Integration tests for the session endpoints under ``/api/v1/auth``."""

from __future__ import annotations

import logging

import pytest
import redis

from postboard.core.config import TestingConfig
from postboard.services._shared.ports import VerifiedProfile
from tests.helpers.cookies import cookie_attributes, set_cookie_header

COOKIE = "refresh_token"
BASE = "/api/v1/auth"

ADA = VerifiedProfile(
    provider_account_id="google-ada",
    email="ada@example.com",
    email_verified=True,
    name="Ada Lovelace",
)


@pytest.fixture()
def signed_in(client, identity_verifier):
    """Bootstrap a Google session and return the response."""
    identity_verifier.register("google", "id-ada", ADA)
    resp = client.post(f"{BASE}/bootstrap", json={"provider": "google", "id_token": "id-ada"})
    assert resp.status_code == 200
    return resp


def _refresh_cookie(client) -> str | None:
    cookie = client.get_cookie(COOKIE)
    return cookie.value if cookie else None


# ----------------------------- Bootstrap ---------------------------------- #
def test_bootstrap_returns_user_and_access_token_only(client, signed_in):
    body = signed_in.get_json()["data"]

    assert set(body) == {"user", "token"}
    assert body["user"]["email"] == "ada@example.com"
    assert body["user"]["displayName"] == "Ada Lovelace"
    assert body["user"]["id"]
    assert "createdAt" in body["user"]
    assert _refresh_cookie(client) not in signed_in.get_data(as_text=True)


def test_bootstrap_sets_refresh_cookie_per_contract(signed_in):
    header = set_cookie_header(signed_in, COOKIE)
    attrs = cookie_attributes(header)

    assert "httponly" in attrs
    assert attrs["samesite"].lower() == "lax"
    assert attrs["path"] == "/"
    assert 30 * 24 * 3600 - 1 <= int(attrs["max-age"]) <= 30 * 24 * 3600
    assert "secure" not in attrs
    assert "domain" not in attrs


def test_bootstrap_accepts_camel_case_id_token(client, identity_verifier):
    identity_verifier.register("google", "id-camel", ADA)

    resp = client.post(f"{BASE}/bootstrap", json={"provider": "google", "idToken": "id-camel"})

    assert resp.status_code == 200


@pytest.mark.parametrize(
    "payload",
    [{}, {"provider": "github", "id_token": "x"}, {"provider": "google", "id_token": ""}],
)
def test_bootstrap_validation_errors(client, payload):
    resp = client.post(f"{BASE}/bootstrap", json=payload)

    assert resp.status_code == 422
    assert resp.mimetype == "application/problem+json"
    assert resp.get_json()["code"] == "validation_error"


def test_bootstrap_with_unverifiable_token(client):
    resp = client.post(f"{BASE}/bootstrap", json={"provider": "google", "id_token": "forged"})

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "id_token_invalid"
    assert client.get_cookie(COOKIE) is None


# ------------------------------ Refresh ----------------------------------- #
def test_refresh_rotates_cookie_and_returns_new_token(client, signed_in):
    first_token = _refresh_cookie(client)

    resp = client.post(f"{BASE}/refresh")

    assert resp.status_code == 200
    body = resp.get_json()["data"]
    assert body["user"]["id"] == signed_in.get_json()["data"]["user"]["id"]
    assert body["token"]
    assert _refresh_cookie(client) not in (None, first_token)
    assert "httponly" in cookie_attributes(set_cookie_header(resp, COOKIE))


def test_refresh_without_cookie(client):
    resp = client.post(f"{BASE}/refresh")

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "no_refresh"


def test_refresh_with_unknown_cookie(client):
    client.set_cookie(COOKIE, "not-a-real-token")

    resp = client.post(f"{BASE}/refresh")

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "invalid_refresh"


def test_refresh_rejects_foreign_origin(client, signed_in):
    resp = client.post(f"{BASE}/refresh", headers={"Origin": "https://evil.example"})

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "csrf_origin"


def test_refresh_accepts_configured_origin(client, signed_in):
    resp = client.post(f"{BASE}/refresh", headers={"Origin": "http://localhost:3000"})

    assert resp.status_code == 200


def test_replayed_refresh_token_is_logged_but_served(client, signed_in, caplog):
    stolen = _refresh_cookie(client)
    assert client.post(f"{BASE}/refresh").status_code == 200

    client.set_cookie(COOKIE, stolen)
    with caplog.at_level(logging.WARNING):
        resp = client.post(f"{BASE}/refresh")

    assert resp.status_code == 200
    assert "refresh.reuse_detected" in caplog.messages


def test_refresh_after_logout_is_rejected(client, signed_in):
    old = _refresh_cookie(client)
    assert client.post(f"{BASE}/logout").status_code == 204

    client.set_cookie(COOKIE, old)
    resp = client.post(f"{BASE}/refresh")

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "invalid_refresh"


class StrictReuseConfig(TestingConfig):
    REFRESH_REVOKE_ON_REUSE = True


class TestStrictReusePolicy:
    @pytest.fixture()
    def config(self):
        return StrictReuseConfig

    def test_replay_revokes_every_session(self, client, signed_in):
        stolen = _refresh_cookie(client)
        assert client.post(f"{BASE}/refresh").status_code == 200
        legit = _refresh_cookie(client)

        client.set_cookie(COOKIE, stolen)
        replay = client.post(f"{BASE}/refresh")
        assert replay.status_code == 401
        assert replay.get_json()["code"] == "refresh_reused"

        client.set_cookie(COOKIE, legit)
        follow_up = client.post(f"{BASE}/refresh")
        assert follow_up.status_code == 401


# ------------------------------- Logout ----------------------------------- #
def test_logout_clears_cookie_and_revokes(client, signed_in, components):
    token = _refresh_cookie(client)

    resp = client.post(f"{BASE}/logout")

    assert resp.status_code == 204
    assert resp.get_data() == b""
    attrs = cookie_attributes(set_cookie_header(resp, COOKIE))
    assert attrs["max-age"] == "0"
    assert attrs["path"] == "/"
    assert client.get_cookie(COOKIE) is None
    record = components.refresh_tokens.store.find_by_digest(
        components.refresh_tokens.digest(token)
    )
    assert record.revoked is True


@pytest.mark.parametrize("cookie", [None, "garbage"])
def test_logout_always_succeeds(client, cookie):
    if cookie:
        client.set_cookie(COOKIE, cookie)

    resp = client.post(f"{BASE}/logout")

    assert resp.status_code == 204
    set_cookie_header(resp, COOKIE)


def test_logout_clears_cookie_when_store_is_down(
    client, signed_in, components, monkeypatch, caplog
):
    def unavailable(token_digest):
        raise redis.ConnectionError("store unreachable")

    monkeypatch.setattr(components.refresh_tokens.store, "find_by_digest", unavailable)

    with caplog.at_level(logging.WARNING):
        resp = client.post(f"{BASE}/logout")

    assert resp.status_code == 204
    assert cookie_attributes(set_cookie_header(resp, COOKIE))["max-age"] == "0"
    assert client.get_cookie(COOKIE) is None
    assert "logout.revoke_skipped" in caplog.messages


def test_logout_everywhere(client, identity_verifier, components, signed_in):
    laptop = _refresh_cookie(client)
    phone = client.application.test_client()
    phone_resp = phone.post(f"{BASE}/bootstrap", json={"provider": "google", "id_token": "id-ada"})
    assert phone_resp.status_code == 200

    client.set_cookie(COOKIE, laptop)
    assert client.post(f"{BASE}/logout", json={"all_sessions": True}).status_code == 204

    assert phone.post(f"{BASE}/refresh").status_code == 401


# --------------------------------- Me ------------------------------------- #
def test_me_with_access_token(client, signed_in):
    token = signed_in.get_json()["data"]["token"]

    resp = client.get(f"{BASE}/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["email"] == "ada@example.com"
    assert data["id"] == signed_in.get_json()["data"]["user"]["id"]


def test_me_requires_access_token(client):
    resp = client.get(f"{BASE}/me")

    assert resp.status_code == 401
    assert resp.mimetype == "application/problem+json"
    assert resp.get_json()["code"] == "missing_token"


def test_refresh_cookie_is_not_an_access_token(client, signed_in):
    token = _refresh_cookie(client)

    resp = client.get(f"{BASE}/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "invalid_token"
