"""Tests for platform biometric result mapping."""
import pytest

from config import BIOMETRIC_ERROR_NEGATIVE_BUTTON, BIOMETRIC_ERROR_USER_CANCELED, BiometricAvailability
from models.entities import BiometricDeclined, BiometricError, BiometricFailure, PromptConfig
from services.biometric import (
    PlatformBiometricAuthenticator,
    availability_from_android_code,
    availability_from_la_error,
    outcome_from_android_error,
    outcome_from_la_error,
)


class TestAndroidMapping:
    @pytest.mark.parametrize(
        "code, expected",
        [
            (0, BiometricAvailability.AVAILABLE),
            (12, BiometricAvailability.NO_HARDWARE),
            (11, BiometricAvailability.NO_ENROLLED_CREDENTIALS),
            (1, BiometricAvailability.HARDWARE_UNAVAILABLE),
            (15, BiometricAvailability.HARDWARE_UNAVAILABLE),
        ],
    )
    def test_availability(self, code, expected):
        assert availability_from_android_code(code) == expected

    def test_negative_button_is_decline(self):
        assert outcome_from_android_error(BIOMETRIC_ERROR_NEGATIVE_BUTTON, "Skip") == BiometricDeclined()

    def test_user_cancel_is_hard_error(self):
        outcome = outcome_from_android_error(BIOMETRIC_ERROR_USER_CANCELED, "Cancelled")
        assert outcome == BiometricError(BIOMETRIC_ERROR_USER_CANCELED, "Cancelled")

    def test_lockout_keeps_message(self):
        outcome = outcome_from_android_error(7, "Too many attempts. Try again later.")
        assert isinstance(outcome, BiometricError)
        assert outcome.message == "Too many attempts. Try again later."


class TestLocalAuthenticationMapping:
    @pytest.mark.parametrize(
        "code, expected",
        [
            (None, BiometricAvailability.AVAILABLE),
            (-6, BiometricAvailability.NO_HARDWARE),
            (-7, BiometricAvailability.NO_ENROLLED_CREDENTIALS),
            (-8, BiometricAvailability.HARDWARE_UNAVAILABLE),
        ],
    )
    def test_availability(self, code, expected):
        assert availability_from_la_error(code) == expected

    def test_failed_match_is_failure(self):
        assert outcome_from_la_error(-1, "No match") == BiometricFailure()

    def test_cancel_button_is_decline(self):
        assert outcome_from_la_error(-2, "Canceled by user.") == BiometricDeclined()

    def test_fallback_button_is_decline(self):
        assert outcome_from_la_error(-3, "Use Account Login") == BiometricDeclined()

    def test_system_cancel_is_hard_error(self):
        assert outcome_from_la_error(-4, "Cancelled by system") == BiometricError(-4, "Cancelled by system")


class TestWithoutBackend:
    @pytest.fixture
    def authenticator(self) -> PlatformBiometricAuthenticator:
        authenticator = PlatformBiometricAuthenticator()
        authenticator._backend = None
        return authenticator

    async def test_reports_no_hardware(self, authenticator):
        assert await authenticator.check_availability() == BiometricAvailability.NO_HARDWARE

    async def test_authenticate_is_hard_error(self, authenticator):
        outcome = await authenticator.authenticate(PromptConfig("Title", "Subtitle", "Cancel"))
        assert isinstance(outcome, BiometricError)

    def test_no_biometric_type(self, authenticator):
        assert authenticator.biometric_type is None
