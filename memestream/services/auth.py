"""
Auth service client backed by Firebase Authentication.

This module provides:
- Credential exchange: Google identity token -> Firebase session
- The current session, restored across restarts
- Sign-out

Storage model:
- Session profile (user id, display name, email, id token) in the settings table
- Refresh token in the OS keyring, never in the database
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urlencode

import httpx
import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from config import (
    FIREBASE_API_KEY,
    FIREBASE_PROVIDER_ID,
    FIREBASE_SIGN_IN_URL,
    HTTP_TIMEOUT_SECONDS,
    KEYRING_REFRESH_TOKEN_ID,
    KEYRING_SERVICE,
    OAUTH_REDIRECT_URL,
    SESSION_SETTING_KEY,
)
from models.entities import ExchangeFailure, ExchangeResult, IdentityToken, Session

logger = logging.getLogger(__name__)


def _firebase_error_message(response: httpx.Response) -> str:
    """Pull the human-readable reason out of a Firebase error body."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"HTTP {response.status_code}"


class FirebaseAuthClient:
    """
    Exchanges identity-provider tokens for Firebase sessions.

    Usage:
        auth = FirebaseAuthClient(db.get_setting, db.set_setting, db.delete_setting)
        await auth.load_session()

        if auth.current_session() is None:
            result = await auth.exchange_credential(token)
    """

    def __init__(
        self,
        get_setting: Callable[[str, Any], Awaitable[Any]],
        set_setting: Callable[[str, Any], Awaitable[None]],
        delete_setting: Callable[[str], Awaitable[None]],
        api_key: str = FIREBASE_API_KEY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            get_setting: Async function to read settings from database
            set_setting: Async function to write settings to database
            delete_setting: Async function to remove a setting
            api_key: Firebase Web API key
            transport: Optional httpx transport (tests use MockTransport)
        """
        self._get_setting = get_setting
        self._set_setting = set_setting
        self._delete_setting = delete_setting
        self._api_key = api_key
        self._transport = transport
        self._session: Optional[Session] = None

    def current_session(self) -> Optional[Session]:
        """The signed-in session, or None."""
        return self._session

    async def load_session(self) -> Optional[Session]:
        """Restore the persisted session on app startup."""
        stored = await self._get_setting(SESSION_SETTING_KEY, None)
        if not stored:
            self._session = None
            return None
        refresh_token = await self._read_refresh_token() or ""
        try:
            self._session = Session.from_dict(stored, refresh_token=refresh_token)
        except (KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable stored session: {e}")
            self._session = None
        return self._session

    async def exchange_credential(self, token: IdentityToken) -> ExchangeResult:
        """Trade a Google token for a Firebase session.

        Returns:
            The new Session, or ExchangeFailure carrying Firebase's reason
        """
        if not self._api_key:
            logger.error("Credential exchange requested but FIREBASE_API_KEY is not set")
            return ExchangeFailure("Firebase API key is not configured")

        payload = {
            "postBody": urlencode({
                "access_token": token.value,
                "providerId": FIREBASE_PROVIDER_ID,
            }),
            "requestUri": OAUTH_REDIRECT_URL,
            "returnIdpCredential": True,
            "returnSecureToken": True,
        }

        try:
            async with httpx.AsyncClient(
                timeout=HTTP_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    FIREBASE_SIGN_IN_URL,
                    params={"key": self._api_key},
                    json=payload,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            message = _firebase_error_message(e.response)
            logger.warning(f"Firebase rejected credential: {message}")
            return ExchangeFailure(message)
        except httpx.TimeoutException:
            logger.error("Firebase credential exchange timed out")
            return ExchangeFailure("Request timed out")
        except httpx.HTTPError as e:
            logger.error(f"Firebase credential exchange failed: {e}")
            return ExchangeFailure(str(e) or type(e).__name__)
        except ValueError as e:
            logger.error(f"Firebase returned an unreadable response: {e}")
            return ExchangeFailure("Unexpected response from server")

        user_id = data.get("localId")
        if not user_id:
            return ExchangeFailure("Unexpected response from server")

        session = Session(
            user_id=user_id,
            display_name=data.get("displayName") or data.get("fullName"),
            email=data.get("email"),
            id_token=data.get("idToken", ""),
            refresh_token=data.get("refreshToken", ""),
        )
        await self._set_setting(SESSION_SETTING_KEY, session.to_dict())
        if session.refresh_token:
            await self._write_refresh_token(session.refresh_token)
        self._session = session
        logger.info(f"Signed in to Firebase as {session.user_id}")
        return session

    async def sign_out(self) -> None:
        """Drop the session from memory, settings and keyring."""
        self._session = None
        await self._delete_setting(SESSION_SETTING_KEY)
        await self._delete_refresh_token()
        logger.info("Signed out of Firebase")

    # ------------------------------------------------------------------
    # Keyring helpers (blocking backends run in the default executor)
    # ------------------------------------------------------------------

    async def _read_refresh_token(self) -> Optional[str]:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None,
                lambda: keyring.get_password(KEYRING_SERVICE, KEYRING_REFRESH_TOKEN_ID)
            )
        except KeyringError as e:
            logger.warning(f"Failed to read refresh token from keyring: {e}")
            return None

    async def _write_refresh_token(self, refresh_token: str) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                lambda: keyring.set_password(KEYRING_SERVICE, KEYRING_REFRESH_TOKEN_ID, refresh_token)
            )
        except KeyringError as e:
            logger.error(f"Failed to store refresh token in keyring: {e}")

    async def _delete_refresh_token(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                lambda: keyring.delete_password(KEYRING_SERVICE, KEYRING_REFRESH_TOKEN_ID)
            )
        except PasswordDeleteError:
            logger.debug("No refresh token to delete")
        except KeyringError as e:
            logger.error(f"Failed to delete refresh token from keyring: {e}")
