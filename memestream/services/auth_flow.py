"""
Login flow controller for MemeStream.

Decides, on every entry point, which of these happens next:
- show the Google sign-in button
- exchange a Google token with Firebase
- offer biometric enrollment
- show the biometric unlock prompt
- navigate to the main app
- stay on the login screen with a message

Collaborator completions are turned into typed events and processed one at
a time from an asyncio queue, so at most one of sign-in, credential
exchange and biometric challenge is ever in flight.

Unlock is only ever shown when a session exists AND the biometric
preference is on; biometric unlock never replaces the Google sign-in.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from config import BIOMETRIC_PREF_KEY, OFFER_BIOMETRIC_ENROLLMENT, BiometricAvailability, FlowState
from database import DatabaseError
from events import AppEvent, EventBus, event_bus
from i18n import t
from models.entities import (
    BiometricDeclined,
    BiometricError,
    BiometricFailure,
    BiometricOutcome,
    BiometricSuccess,
    ExchangeFailure,
    ExchangeResult,
    IdentityToken,
    PromptConfig,
    Session,
    SignInCancelled,
    SignInError,
    SignInResult,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Controller events
# ============================================================================

@dataclass(frozen=True)
class AppStarted:
    pass


@dataclass(frozen=True)
class SignInRequested:
    pass


@dataclass(frozen=True)
class SignInCompleted:
    result: SignInResult


@dataclass(frozen=True)
class CredentialExchanged:
    result: ExchangeResult


@dataclass(frozen=True)
class EnrollmentRequested:
    pass


@dataclass(frozen=True)
class UnlockRequested:
    pass


@dataclass(frozen=True)
class BiometricCompleted:
    outcome: BiometricOutcome


FlowEvent = Union[
    AppStarted, SignInRequested, SignInCompleted, CredentialExchanged,
    EnrollmentRequested, UnlockRequested, BiometricCompleted,
]

_UNAVAILABLE_MESSAGES = {
    BiometricAvailability.NO_HARDWARE: "no_biometric_hardware",
    BiometricAvailability.HARDWARE_UNAVAILABLE: "biometric_hardware_unavailable",
    BiometricAvailability.NO_ENROLLED_CREDENTIALS: "no_biometric_enrolled",
}


def enrollment_prompt_config() -> PromptConfig:
    return PromptConfig(
        title=t("enable_biometric_login"),
        subtitle=t("enable_biometric_subtitle"),
        negative_button_text=t("skip"),
        confirmation_required=False,
    )


def unlock_prompt_config() -> PromptConfig:
    return PromptConfig(
        title=t("biometric_login"),
        subtitle=t("authenticate_to_continue"),
        negative_button_text=t("use_account_login"),
        confirmation_required=True,
    )


class AuthFlowController:
    """
    State machine behind the login screen.

    Collaborators are duck-typed:
    - identity: ``await sign_in() -> SignInResult``, ``await sign_out()``
    - auth: ``await exchange_credential(token) -> ExchangeResult``,
      ``current_session() -> Optional[Session]``, ``await sign_out()``
    - biometric: ``await check_availability()``, ``await authenticate(config)``,
      ``open_enrollment_settings()``
    - preferences: ``await get_bool(key)``, ``await set_bool(key, value)``
    - view: ``show_notice(msg)``, ``show_error(msg)``, ``navigate_to_main_app()``

    Usage:
        flow = AuthFlowController(identity, auth, biometric, preferences, view)
        await flow.start()          # cold start
        await flow.sign_in()        # Google button pressed
        await flow.offer_biometric_enrollment()  # from settings
    """

    def __init__(
        self,
        identity: Any,
        auth: Any,
        biometric: Any,
        preferences: Any,
        view: Any,
        offer_enrollment: bool = OFFER_BIOMETRIC_ENROLLMENT,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._identity = identity
        self._auth = auth
        self._biometric = biometric
        self._preferences = preferences
        self._view = view
        self._offer_enrollment = offer_enrollment
        self._bus = bus or event_bus
        self._state = FlowState.START
        self._queue: "asyncio.Queue[FlowEvent]" = asyncio.Queue()
        self._draining = False
        self._navigated = False

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def has_navigated(self) -> bool:
        """True once the main app has been shown."""
        return self._navigated

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Cold start / screen shown: check for an existing session."""
        await self.dispatch(AppStarted())

    async def resume(self) -> None:
        """Screen came back to the foreground; re-check the session."""
        await self.dispatch(AppStarted())

    async def sign_in(self) -> None:
        """Google sign-in button pressed."""
        await self.dispatch(SignInRequested())

    async def offer_biometric_enrollment(self) -> None:
        """Ask the user whether to turn on biometric login."""
        await self.dispatch(EnrollmentRequested())

    def cancel_sign_in(self) -> None:
        """Back navigation while the Google consent screen is open."""
        if self._state == FlowState.SIGN_IN_IN_FLIGHT:
            cancel = getattr(self._identity, "cancel", None)
            if cancel is not None:
                cancel()

    async def dispatch(self, event: FlowEvent) -> None:
        """Queue an event and process the queue unless already processing.

        Re-entrant calls (from a handler, or from the UI while a handler is
        awaiting a collaborator) only enqueue; the running drain picks the
        event up once the current step finishes.
        """
        self._queue.put_nowait(event)
        if self._draining:
            return
        self._draining = True
        try:
            while not self._queue.empty():
                event = self._queue.get_nowait()
                try:
                    await self._handle(event)
                except Exception as e:
                    logger.exception(f"Login flow failed while handling {type(event).__name__}")
                    await self._recover(e)
        finally:
            self._draining = False

    async def _recover(self, error: Exception) -> None:
        """Leave the flow in a state with an action available after a handler failed."""
        while not self._queue.empty():
            self._queue.get_nowait()
        self._view.show_error(t("something_went_wrong").format(message=str(error)))

        if self._navigated:
            self._transition(FlowState.AWAITING_MAIN_APP)
        elif self._state == FlowState.UNLOCK_PROMPT:
            # Never skip the unlock gate
            await self._sign_out_and_restart()
        elif self._state in (FlowState.POST_SIGN_IN_DECISION, FlowState.ENROLLMENT_PROMPT):
            self._navigate_to_main_app()
        else:
            self._transition(FlowState.AWAITING_FEDERATED_SIGN_IN)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _handle(self, event: FlowEvent) -> None:
        if isinstance(event, AppStarted):
            await self._on_app_started()
        elif isinstance(event, SignInRequested):
            await self._on_sign_in_requested()
        elif isinstance(event, SignInCompleted):
            await self._on_sign_in_completed(event.result)
        elif isinstance(event, CredentialExchanged):
            await self._on_credential_exchanged(event.result)
        elif isinstance(event, EnrollmentRequested):
            await self._on_enrollment_requested()
        elif isinstance(event, UnlockRequested):
            await self._on_unlock_requested()
        elif isinstance(event, BiometricCompleted):
            await self._on_biometric_completed(event.outcome)

    def _drop(self, event_name: str) -> None:
        logger.debug(f"Ignoring {event_name} in state {self._state.value}")

    def _transition(self, state: FlowState) -> None:
        if state == self._state:
            return
        logger.info(f"Login flow: {self._state.value} -> {state.value}")
        self._state = state
        self._bus.emit(AppEvent.FLOW_STATE_CHANGED, state)

    async def _biometric_enabled(self) -> bool:
        try:
            return await self._preferences.get_bool(BIOMETRIC_PREF_KEY)
        except Exception as e:
            logger.error(f"Could not read biometric preference: {e}")
            return False

    async def _check_availability(self) -> BiometricAvailability:
        try:
            return await self._biometric.check_availability()
        except Exception as e:
            logger.error(f"Biometric availability check raised: {e}")
            return BiometricAvailability.HARDWARE_UNAVAILABLE

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _on_app_started(self) -> None:
        if self._state not in (FlowState.START, FlowState.AWAITING_FEDERATED_SIGN_IN):
            self._drop("AppStarted")
            return

        session = self._auth.current_session()
        if session is None:
            self._transition(FlowState.AWAITING_FEDERATED_SIGN_IN)
            return

        if await self._biometric_enabled():
            self._transition(FlowState.UNLOCK_PROMPT)
            self._queue.put_nowait(UnlockRequested())
        else:
            self._navigate_to_main_app()

    async def _on_sign_in_requested(self) -> None:
        if self._state != FlowState.AWAITING_FEDERATED_SIGN_IN:
            self._drop("SignInRequested")
            return

        self._transition(FlowState.SIGN_IN_IN_FLIGHT)
        try:
            result = await self._identity.sign_in()
        except Exception as e:
            logger.error(f"Identity provider raised during sign-in: {e}")
            result = SignInError(str(e))
        self._queue.put_nowait(SignInCompleted(result))

    async def _on_sign_in_completed(self, result: SignInResult) -> None:
        if self._state != FlowState.SIGN_IN_IN_FLIGHT:
            self._drop("SignInCompleted")
            return

        if isinstance(result, SignInCancelled):
            self._transition(FlowState.AWAITING_FEDERATED_SIGN_IN)
            self._view.show_notice(t("sign_in_cancelled"))
            return

        if isinstance(result, SignInError):
            self._transition(FlowState.AWAITING_FEDERATED_SIGN_IN)
            self._view.show_error(t("google_sign_in_failed").format(message=result.message))
            return

        self._transition(FlowState.EXCHANGING_CREDENTIAL)
        exchange = await self._exchange(result)
        self._queue.put_nowait(CredentialExchanged(exchange))

    async def _exchange(self, token: IdentityToken) -> ExchangeResult:
        try:
            return await self._auth.exchange_credential(token)
        except Exception as e:
            logger.error(f"Auth service raised during credential exchange: {e}")
            return ExchangeFailure(str(e))

    async def _on_credential_exchanged(self, result: ExchangeResult) -> None:
        if self._state != FlowState.EXCHANGING_CREDENTIAL:
            self._drop("CredentialExchanged")
            return

        if isinstance(result, ExchangeFailure):
            self._transition(FlowState.AWAITING_FEDERATED_SIGN_IN)
            self._view.show_error(t("authentication_failed_reason").format(message=result.message))
            return

        self._transition(FlowState.POST_SIGN_IN_DECISION)
        self._view.show_notice(t("welcome_user").format(name=_display_name(result)))
        self._bus.emit(AppEvent.SIGNED_IN, result)

        if self._offer_enrollment and not await self._biometric_enabled():
            self._queue.put_nowait(EnrollmentRequested())
        else:
            self._navigate_to_main_app()

    async def _on_enrollment_requested(self) -> None:
        if self._state not in (FlowState.POST_SIGN_IN_DECISION, FlowState.AWAITING_MAIN_APP):
            self._drop("EnrollmentRequested")
            return

        availability = await self._check_availability()
        if availability != BiometricAvailability.AVAILABLE:
            self._report_unavailable(availability)
            self._navigate_to_main_app()
            return

        self._transition(FlowState.ENROLLMENT_PROMPT)
        outcome = await self._challenge(enrollment_prompt_config())
        self._queue.put_nowait(BiometricCompleted(outcome))

    async def _on_unlock_requested(self) -> None:
        if self._state != FlowState.UNLOCK_PROMPT:
            self._drop("UnlockRequested")
            return

        if self._auth.current_session() is None:
            self._transition(FlowState.AWAITING_FEDERATED_SIGN_IN)
            return
        if not await self._biometric_enabled():
            self._navigate_to_main_app()
            return

        availability = await self._check_availability()
        if availability != BiometricAvailability.AVAILABLE:
            self._report_unavailable(availability)
            await self._sign_out_and_restart()
            return

        outcome = await self._challenge(unlock_prompt_config())
        self._queue.put_nowait(BiometricCompleted(outcome))

    async def _challenge(self, config: PromptConfig) -> BiometricOutcome:
        try:
            return await self._biometric.authenticate(config)
        except Exception as e:
            logger.error(f"Biometric authenticator raised: {e}")
            return BiometricError(-1, str(e))

    async def _on_biometric_completed(self, outcome: BiometricOutcome) -> None:
        if self._state == FlowState.ENROLLMENT_PROMPT:
            await self._finish_enrollment(outcome)
        elif self._state == FlowState.UNLOCK_PROMPT:
            await self._finish_unlock(outcome)
        else:
            self._drop("BiometricCompleted")

    async def _finish_enrollment(self, outcome: BiometricOutcome) -> None:
        if isinstance(outcome, BiometricSuccess):
            if await self._set_biometric_enabled(True):
                self._view.show_notice(t("biometric_login_enabled"))
        elif isinstance(outcome, BiometricDeclined):
            await self._set_biometric_enabled(False)
        elif isinstance(outcome, BiometricError):
            logger.info(f"Biometric enrollment error {outcome.code}: {outcome.message}")
            self._view.show_error(t("biometric_setup_failed").format(message=outcome.message))
        elif isinstance(outcome, BiometricFailure):
            self._view.show_error(t("biometric_not_recognized"))
        # Enrollment never blocks entry to the app
        self._navigate_to_main_app()

    async def _finish_unlock(self, outcome: BiometricOutcome) -> None:
        if isinstance(outcome, BiometricSuccess):
            self._navigate_to_main_app()
        elif isinstance(outcome, BiometricFailure):
            self._view.show_error(t("authentication_failed"))
            self._queue.put_nowait(UnlockRequested())
        elif isinstance(outcome, BiometricError):
            logger.warning(f"Biometric unlock error {outcome.code}: {outcome.message}")
            self._view.show_error(t("biometric_error").format(message=outcome.message))
            await self._sign_out_and_restart()
        elif isinstance(outcome, BiometricDeclined):
            await self._sign_out_and_restart()

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    async def _set_biometric_enabled(self, enabled: bool) -> bool:
        try:
            await self._preferences.set_bool(BIOMETRIC_PREF_KEY, enabled)
        except DatabaseError as e:
            logger.error(f"Could not save biometric preference: {e}")
            self._view.show_error(t("biometric_setup_failed").format(message=str(e)))
            return False
        self._bus.emit(AppEvent.BIOMETRIC_PREFERENCE_CHANGED, enabled)
        return True

    def _report_unavailable(self, availability: BiometricAvailability) -> None:
        logger.info(f"Biometric unavailable: {availability.value}")
        self._view.show_error(t(_UNAVAILABLE_MESSAGES[availability]))
        if availability == BiometricAvailability.NO_ENROLLED_CREDENTIALS:
            try:
                self._biometric.open_enrollment_settings()
            except Exception as e:
                logger.warning(f"Could not open biometric enrollment settings: {e}")

    async def _sign_out_and_restart(self) -> None:
        """Revoke the session and go back to Google sign-in."""
        try:
            await self._auth.sign_out()
        except Exception as e:
            logger.error(f"Auth service sign-out failed: {e}")
        try:
            await self._identity.sign_out()
        except Exception as e:
            logger.warning(f"Identity provider sign-out failed: {e}")
        self._navigated = False
        self._bus.emit(AppEvent.SIGNED_OUT, None)
        self._transition(FlowState.AWAITING_FEDERATED_SIGN_IN)

    def _navigate_to_main_app(self) -> None:
        self._transition(FlowState.AWAITING_MAIN_APP)
        if self._navigated:
            return
        self._navigated = True
        self._view.navigate_to_main_app()
        self._bus.emit(AppEvent.NAVIGATED_TO_MAIN, self._auth.current_session())


def _display_name(session: Session) -> str:
    return session.display_name or session.email or session.user_id
