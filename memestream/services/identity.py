"""
Federated sign-in against Google.

The provider hands back an opaque identity token that the auth service
exchanges for a session. Flet drives the OAuth browser round trip through
``page.login()`` and reports completion through ``page.on_login``.

Result variants (never raised):
- IdentityToken: the user finished the consent screen
- SignInCancelled: the user backed out (or cancel() was called)
- SignInError: anything the provider or transport reported
"""
import asyncio
import inspect
import logging
from typing import Any, Optional

import flet as ft
from flet.auth.providers import GoogleOAuthProvider

from config import (
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_SCOPES,
    OAUTH_REDIRECT_URL,
)
from models.entities import IdentityToken, SignInCancelled, SignInError, SignInResult

logger = logging.getLogger(__name__)

# OAuth error codes that mean "the user closed the consent screen"
_CANCEL_ERRORS = {"access_denied", "user_cancelled", "cancelled"}


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class GoogleIdentityProvider:
    """Google OAuth sign-in through the Flet page."""

    def __init__(
        self,
        page: ft.Page,
        client_id: str = GOOGLE_CLIENT_ID,
        client_secret: str = GOOGLE_CLIENT_SECRET,
        redirect_url: str = OAUTH_REDIRECT_URL,
    ) -> None:
        self.page = page
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_url = redirect_url
        self._pending: Optional[asyncio.Future] = None

    @property
    def is_configured(self) -> bool:
        return bool(self._client_id)

    async def sign_in(self) -> SignInResult:
        """Run the Google consent flow and return its outcome."""
        if not self.is_configured:
            logger.error("Google sign-in requested but GOOGLE_CLIENT_ID is not set")
            return SignInError("Google client is not configured")

        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._pending = future

        def on_login(e) -> None:
            # Flet may deliver the event from a worker thread
            loop.call_soon_threadsafe(self._resolve, future, e)

        provider = GoogleOAuthProvider(
            client_id=self._client_id,
            client_secret=self._client_secret,
            redirect_url=self._redirect_url,
        )
        self.page.on_login = on_login

        try:
            await _maybe_await(self.page.login(provider, scope=GOOGLE_SCOPES))
            outcome = await future
        except Exception as e:
            logger.error(f"Google sign-in failed to start: {e}")
            return SignInError(str(e))
        finally:
            self._pending = None

        if isinstance(outcome, SignInCancelled):
            return outcome

        error = getattr(outcome, "error", None)
        if error:
            if error in _CANCEL_ERRORS:
                logger.info("Google sign-in cancelled by user")
                return SignInCancelled()
            description = getattr(outcome, "error_description", None) or error
            logger.warning(f"Google sign-in error: {error}")
            return SignInError(description)

        token = self.page.auth.token if self.page.auth is not None else None
        if token is None or not token.access_token:
            return SignInError("Google did not return a token")
        logger.info("Google sign-in completed")
        return IdentityToken(token.access_token)

    @staticmethod
    def _resolve(future: asyncio.Future, outcome: Any) -> None:
        if not future.done():
            future.set_result(outcome)

    def cancel(self) -> None:
        """Resolve an in-flight sign-in as cancelled (back navigation)."""
        if self._pending is not None:
            self._resolve(self._pending, SignInCancelled())

    async def sign_out(self) -> None:
        """Forget the Google authorization held by the page."""
        try:
            await _maybe_await(self.page.logout())
        except Exception as e:
            logger.warning(f"Google sign-out failed: {e}")
