"""Tests for the Firebase credential exchange client."""
import json
from urllib.parse import parse_qs

import httpx
import pytest

from config import KEYRING_REFRESH_TOKEN_ID, KEYRING_SERVICE, SESSION_SETTING_KEY
from core import ServiceContainer, build_auth_flow
from database import db
from models.entities import ExchangeFailure, IdentityToken, Session
from registry import Services, registry
from services.auth import FirebaseAuthClient

SIGN_IN_RESPONSE = {
    "localId": "firebase-uid",
    "displayName": "Ada Lovelace",
    "email": "ada@example.com",
    "idToken": "firebase-id-token",
    "refreshToken": "firebase-refresh-token",
}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, status_code: int = 200, body=None, exc: Exception = None):
        self.requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if exc is not None:
                raise exc
            if isinstance(body, (bytes, str)):
                return httpx.Response(status_code, content=body)
            return httpx.Response(status_code, json=SIGN_IN_RESPONSE if body is None else body)

        super().__init__(handler)


def make_client(transport: httpx.MockTransport, api_key: str = "test-api-key") -> FirebaseAuthClient:
    return FirebaseAuthClient(
        db.get_setting, db.set_setting, db.delete_setting,
        api_key=api_key, transport=transport,
    )


class TestExchangeCredential:
    async def test_success_returns_session(self, services: ServiceContainer):
        client = make_client(RecordingTransport())
        result = await client.exchange_credential(IdentityToken("google-token"))
        assert isinstance(result, Session)
        assert result.user_id == "firebase-uid"
        assert result.display_name == "Ada Lovelace"
        assert client.current_session() == result

    async def test_request_carries_google_token(self, services: ServiceContainer):
        transport = RecordingTransport()
        await make_client(transport).exchange_credential(IdentityToken("google-token"))

        request = transport.requests[0]
        assert request.url.params["key"] == "test-api-key"
        payload = json.loads(request.content)
        post_body = parse_qs(payload["postBody"])
        assert post_body["access_token"] == ["google-token"]
        assert post_body["providerId"] == ["google.com"]
        assert payload["returnSecureToken"] is True

    async def test_session_persisted_without_refresh_token(self, services: ServiceContainer, memory_keyring):
        await make_client(RecordingTransport()).exchange_credential(IdentityToken("google-token"))

        stored = await db.get_setting(SESSION_SETTING_KEY)
        assert stored["user_id"] == "firebase-uid"
        assert "refresh_token" not in stored
        assert memory_keyring.get_password(KEYRING_SERVICE, KEYRING_REFRESH_TOKEN_ID) == "firebase-refresh-token"

    async def test_firebase_error_message(self, services: ServiceContainer):
        transport = RecordingTransport(400, {"error": {"code": 400, "message": "INVALID_IDP_RESPONSE"}})
        client = make_client(transport)
        result = await client.exchange_credential(IdentityToken("bad-token"))
        assert result == ExchangeFailure("INVALID_IDP_RESPONSE")
        assert client.current_session() is None

    async def test_error_without_body(self, services: ServiceContainer):
        result = await make_client(RecordingTransport(503, b"")).exchange_credential(IdentityToken("t"))
        assert result == ExchangeFailure("HTTP 503")

    async def test_timeout(self, services: ServiceContainer):
        transport = RecordingTransport(exc=httpx.ConnectTimeout("timed out"))
        result = await make_client(transport).exchange_credential(IdentityToken("t"))
        assert result == ExchangeFailure("Request timed out")

    async def test_connection_error(self, services: ServiceContainer):
        transport = RecordingTransport(exc=httpx.ConnectError("connection refused"))
        result = await make_client(transport).exchange_credential(IdentityToken("t"))
        assert result == ExchangeFailure("connection refused")

    async def test_unreadable_response(self, services: ServiceContainer):
        result = await make_client(RecordingTransport(200, b"<html>")).exchange_credential(IdentityToken("t"))
        assert result == ExchangeFailure("Unexpected response from server")

    async def test_missing_user_id(self, services: ServiceContainer):
        result = await make_client(RecordingTransport(200, {"idToken": "x"})).exchange_credential(IdentityToken("t"))
        assert result == ExchangeFailure("Unexpected response from server")

    async def test_missing_api_key_makes_no_request(self, services: ServiceContainer):
        transport = RecordingTransport()
        result = await make_client(transport, api_key="").exchange_credential(IdentityToken("t"))
        assert isinstance(result, ExchangeFailure)
        assert transport.requests == []


class TestStoredSession:
    async def test_load_restores_session(self, services: ServiceContainer):
        await make_client(RecordingTransport()).exchange_credential(IdentityToken("google-token"))

        restored = make_client(RecordingTransport())
        session = await restored.load_session()
        assert session is not None
        assert session.user_id == "firebase-uid"
        assert session.refresh_token == "firebase-refresh-token"
        assert restored.current_session() == session

    async def test_load_without_session(self, services: ServiceContainer):
        client = make_client(RecordingTransport())
        assert await client.load_session() is None
        assert client.current_session() is None

    async def test_unreadable_stored_session_is_discarded(self, services: ServiceContainer):
        await db.set_setting(SESSION_SETTING_KEY, {"email": "no-uid@example.com"})
        client = make_client(RecordingTransport())
        assert await client.load_session() is None

    async def test_sign_out_clears_everything(self, services: ServiceContainer, memory_keyring):
        client = make_client(RecordingTransport())
        await client.exchange_credential(IdentityToken("google-token"))

        await client.sign_out()

        assert client.current_session() is None
        assert await db.get_setting(SESSION_SETTING_KEY) is None
        assert memory_keyring.get_password(KEYRING_SERVICE, KEYRING_REFRESH_TOKEN_ID) is None

    async def test_sign_out_twice_is_harmless(self, services: ServiceContainer):
        client = make_client(RecordingTransport())
        await client.sign_out()
        await client.sign_out()
        assert client.current_session() is None


class TestBootstrap:
    async def test_bootstrap_registers_auth(self, services: ServiceContainer):
        assert registry.require(Services.AUTH) is services.auth

    async def test_build_auth_flow_registers_controller(self, services: ServiceContainer):
        flow = build_auth_flow(services, identity=None, biometric=None, view=None)
        assert registry.get(Services.AUTH_FLOW) is flow

    async def test_bootstrap_restores_session(self, services: ServiceContainer):
        assert services.auth.current_session() is None
        await make_client(RecordingTransport()).exchange_credential(IdentityToken("google-token"))
        await services.auth.load_session()
        assert services.auth.current_session().user_id == "firebase-uid"


@pytest.mark.parametrize("status", [400, 401, 500])
async def test_http_errors_never_raise(services: ServiceContainer, status):
    result = await make_client(RecordingTransport(status, {})).exchange_credential(IdentityToken("t"))
    assert isinstance(result, ExchangeFailure)
