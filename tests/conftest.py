"""Shared fixtures for MemeStream tests."""
from collections import deque
from pathlib import Path
from typing import Deque, List, Optional

import keyring
import pytest
import pytest_asyncio
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from config import BiometricAvailability
from core import ServiceContainer, bootstrap
from database import db
from events import event_bus
from models.entities import (
    BiometricOutcome,
    BiometricSuccess,
    ExchangeResult,
    IdentityToken,
    PromptConfig,
    Session,
    SignInCancelled,
    SignInResult,
)
from registry import registry
from services.auth_flow import AuthFlowController


class MemoryKeyring(KeyringBackend):
    """Keyring backend kept in a dict so tests never touch the OS keychain."""
    priority = 1

    def __init__(self) -> None:
        super().__init__()
        self.passwords = {}

    def get_password(self, service, username):
        return self.passwords.get((service, username))

    def set_password(self, service, username, password):
        self.passwords[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError("not found")


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------

class FakeIdentityProvider:
    """Returns queued sign-in results; cancellation when the queue is empty."""

    def __init__(self) -> None:
        self.results: Deque[SignInResult] = deque()
        self.sign_in_calls = 0
        self.sign_out_calls = 0
        self.cancel_calls = 0

    async def sign_in(self) -> SignInResult:
        self.sign_in_calls += 1
        return self.results.popleft() if self.results else SignInCancelled()

    async def sign_out(self) -> None:
        self.sign_out_calls += 1

    def cancel(self) -> None:
        self.cancel_calls += 1


class FakeAuthService:
    def __init__(self, session: Optional[Session] = None) -> None:
        self.session = session
        self.results: Deque[ExchangeResult] = deque()
        self.exchanged_tokens: List[IdentityToken] = []
        self.sign_out_calls = 0

    def current_session(self) -> Optional[Session]:
        return self.session

    async def exchange_credential(self, token: IdentityToken) -> ExchangeResult:
        self.exchanged_tokens.append(token)
        result = self.results.popleft()
        if isinstance(result, Session):
            self.session = result
        return result

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        self.session = None


class FakeBiometric:
    def __init__(self) -> None:
        self.availability = BiometricAvailability.AVAILABLE
        self.outcomes: Deque[BiometricOutcome] = deque()
        self.prompts: List[PromptConfig] = []
        self.availability_checks = 0
        self.enrollment_settings_opened = 0

    async def check_availability(self) -> BiometricAvailability:
        self.availability_checks += 1
        return self.availability

    async def authenticate(self, config: PromptConfig) -> BiometricOutcome:
        self.prompts.append(config)
        return self.outcomes.popleft() if self.outcomes else BiometricSuccess()

    def open_enrollment_settings(self) -> None:
        self.enrollment_settings_opened += 1

    @property
    def invoked(self) -> bool:
        return self.availability_checks > 0 or bool(self.prompts)


class RecordingView:
    def __init__(self) -> None:
        self.notices: List[str] = []
        self.errors: List[str] = []
        self.navigations = 0

    def show_notice(self, message: str) -> None:
        self.notices.append(message)

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def navigate_to_main_app(self) -> None:
        self.navigations += 1


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_keyring():
    previous = keyring.get_keyring()
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)


@pytest_asyncio.fixture
async def services(memory_keyring) -> ServiceContainer:
    """Headless services backed by an in-memory database.

    Reuses the module-level singletons (db, event_bus, registry) but
    resets their internal state between tests for isolation.
    """
    await db.close()
    db._initialized = False
    db._conn_lock = None
    db._init_lock = None
    event_bus.clear()
    registry.clear()

    svc = await bootstrap(db_path=Path(":memory:"), api_key="test-api-key")

    yield svc

    await db.close()
    event_bus.clear()
    registry.clear()


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def auth() -> FakeAuthService:
    return FakeAuthService()


@pytest.fixture
def biometric() -> FakeBiometric:
    return FakeBiometric()


@pytest.fixture
def view() -> RecordingView:
    return RecordingView()


@pytest.fixture
def flow(services, identity, auth, biometric, view) -> AuthFlowController:
    return AuthFlowController(
        identity, auth, biometric, services.preferences, view, offer_enrollment=False,
    )
