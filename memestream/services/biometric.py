"""
Platform biometric authenticator.

Wraps the OS biometric prompt behind two operations:
- check_availability() -> BiometricAvailability
- authenticate(PromptConfig) -> BiometricOutcome

Supported backends:
- Android BiometricPrompt (fingerprint/face) via pyjnius
- Touch ID (macOS) via pyobjc LocalAuthentication
- Windows Hello via winrt

Outcome mapping follows androidx.biometric: only the negative button
counts as a decline; any other cancellation, lockout or timeout is a
hard error, and an unrecognized finger/face is a retryable failure.
"""
import asyncio
import logging
import os
import subprocess
import sys
import threading
from typing import Any, Optional

from config import (
    BIOMETRIC_ERROR_NEGATIVE_BUTTON,
    BIOMETRIC_ERROR_TIMEOUT,
    BIOMETRIC_STRONG,
    BiometricAvailability,
)
from models.entities import (
    BiometricDeclined,
    BiometricError,
    BiometricFailure,
    BiometricOutcome,
    BiometricSuccess,
    PromptConfig,
)

logger = logging.getLogger(__name__)


def _detect_android() -> bool:
    """Detect if running on Android (sys.platform reports "linux" there)."""
    if os.path.exists("/system/build.prop"):
        return True
    if os.environ.get("ANDROID_ROOT"):
        return True
    return False


_is_android = _detect_android()

ANDROID_BIOMETRIC_AVAILABLE = False
if _is_android:
    try:
        from jnius import autoclass, PythonJavaClass, java_method
        ANDROID_BIOMETRIC_AVAILABLE = True
    except ImportError:
        pass

TOUCHID_AVAILABLE = False
if sys.platform == "darwin":
    try:
        from LocalAuthentication import LAContext, LAPolicyDeviceOwnerAuthenticationWithBiometrics
        TOUCHID_AVAILABLE = True
    except ImportError:
        pass

WINDOWS_HELLO_AVAILABLE = False
if sys.platform == "win32":
    try:
        from winrt.windows.security.credentials.ui import (
            UserConsentVerificationResult,
            UserConsentVerifier,
            UserConsentVerifierAvailability,
        )
        WINDOWS_HELLO_AVAILABLE = True
    except ImportError:
        pass

# Seconds to wait for the Touch ID reply before treating it as a timeout
TOUCHID_TIMEOUT = 60

# ============================================================================
# Code mapping (platform independent)
# ============================================================================

# androidx.biometric.BiometricManager.canAuthenticate() results
ANDROID_BIOMETRIC_SUCCESS = 0
ANDROID_ERROR_HW_UNAVAILABLE = 1
ANDROID_ERROR_NONE_ENROLLED = 11
ANDROID_ERROR_NO_HARDWARE = 12

# LocalAuthentication LAError codes
LA_ERROR_AUTHENTICATION_FAILED = -1
# Cancel button; labelled with the prompt's negative button text
LA_ERROR_USER_CANCEL = -2
LA_ERROR_USER_FALLBACK = -3
LA_ERROR_BIOMETRY_NOT_AVAILABLE = -6
LA_ERROR_BIOMETRY_NOT_ENROLLED = -7


def availability_from_android_code(code: int) -> BiometricAvailability:
    """Map BiometricManager.canAuthenticate() to an availability value."""
    if code == ANDROID_BIOMETRIC_SUCCESS:
        return BiometricAvailability.AVAILABLE
    if code == ANDROID_ERROR_NO_HARDWARE:
        return BiometricAvailability.NO_HARDWARE
    if code == ANDROID_ERROR_NONE_ENROLLED:
        return BiometricAvailability.NO_ENROLLED_CREDENTIALS
    # HW_UNAVAILABLE, SECURITY_UPDATE_REQUIRED, UNSUPPORTED, STATUS_UNKNOWN
    return BiometricAvailability.HARDWARE_UNAVAILABLE


def outcome_from_android_error(code: int, message: str) -> BiometricOutcome:
    """Map BiometricPrompt.onAuthenticationError() to an outcome."""
    if code == BIOMETRIC_ERROR_NEGATIVE_BUTTON:
        return BiometricDeclined()
    return BiometricError(code, message)


def availability_from_la_error(code: Optional[int]) -> BiometricAvailability:
    """Map a LocalAuthentication canEvaluatePolicy error to availability."""
    if code is None:
        return BiometricAvailability.AVAILABLE
    if code == LA_ERROR_BIOMETRY_NOT_AVAILABLE:
        return BiometricAvailability.NO_HARDWARE
    if code == LA_ERROR_BIOMETRY_NOT_ENROLLED:
        return BiometricAvailability.NO_ENROLLED_CREDENTIALS
    return BiometricAvailability.HARDWARE_UNAVAILABLE


def outcome_from_la_error(code: int, message: str) -> BiometricOutcome:
    """Map a LocalAuthentication evaluatePolicy error to an outcome."""
    if code == LA_ERROR_AUTHENTICATION_FAILED:
        return BiometricFailure()
    if code in (LA_ERROR_USER_CANCEL, LA_ERROR_USER_FALLBACK):
        return BiometricDeclined()
    return BiometricError(code, message)


# ============================================================================
# Android
# ============================================================================

def _android_activity() -> Any:
    return autoclass("org.kivy.android.PythonActivity").mActivity


def _check_android_availability() -> BiometricAvailability:
    BiometricManager = autoclass("androidx.biometric.BiometricManager")
    manager = BiometricManager.from_(_android_activity())
    return availability_from_android_code(manager.canAuthenticate(BIOMETRIC_STRONG))


async def _prompt_android(config: PromptConfig) -> BiometricOutcome:
    BiometricPrompt = autoclass("androidx.biometric.BiometricPrompt")
    PromptInfoBuilder = autoclass("androidx.biometric.BiometricPrompt$PromptInfo$Builder")
    Executors = autoclass("java.util.concurrent.Executors")

    activity = _android_activity()
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()
    holder = {}

    def resolve(outcome: BiometricOutcome) -> None:
        if not future.done():
            future.set_result(outcome)

    class AuthenticationCallback(PythonJavaClass):
        __javainterfaces__ = ["androidx/biometric/BiometricPrompt$AuthenticationCallback"]

        @java_method("(Landroidx/biometric/BiometricPrompt$AuthenticationResult;)V")
        def onAuthenticationSucceeded(self, result):
            loop.call_soon_threadsafe(resolve, BiometricSuccess())

        @java_method("(ILjava/lang/CharSequence;)V")
        def onAuthenticationError(self, error_code, err_string):
            loop.call_soon_threadsafe(resolve, outcome_from_android_error(error_code, str(err_string)))

        @java_method("()V")
        def onAuthenticationFailed(self):
            # The system prompt stays open after a mismatch; close it so the
            # caller decides whether to show it again.
            prompt = holder.get("prompt")
            if prompt is not None:
                activity.runOnUiThread(prompt.cancelAuthentication)
            loop.call_soon_threadsafe(resolve, BiometricFailure())

    def show() -> None:
        try:
            callback = AuthenticationCallback()
            prompt = BiometricPrompt(activity, Executors.newSingleThreadExecutor(), callback)
            holder["prompt"] = prompt
            holder["callback"] = callback
            info = (
                PromptInfoBuilder()
                .setTitle(config.title)
                .setSubtitle(config.subtitle)
                .setNegativeButtonText(config.negative_button_text)
                .setConfirmationRequired(config.confirmation_required)
                .build()
            )
            activity.runOnUiThread(lambda: prompt.authenticate(info))
        except Exception as e:
            logger.error(f"Android biometric prompt error: {e}")
            loop.call_soon_threadsafe(resolve, BiometricError(-1, str(e)))

    threading.Thread(target=show, daemon=True).start()
    return await future


def _open_android_enrollment() -> None:
    Intent = autoclass("android.content.Intent")
    Settings = autoclass("android.provider.Settings")
    intent = Intent(Settings.ACTION_BIOMETRIC_ENROLL)
    intent.putExtra(Settings.EXTRA_BIOMETRIC_AUTHENTICATORS_ALLOWED, BIOMETRIC_STRONG)
    _android_activity().startActivity(intent)


# ============================================================================
# macOS Touch ID
# ============================================================================

def _check_touchid_availability() -> BiometricAvailability:
    context = LAContext.alloc().init()
    ok, error = context.canEvaluatePolicy_error_(
        LAPolicyDeviceOwnerAuthenticationWithBiometrics, None
    )
    if ok:
        return BiometricAvailability.AVAILABLE
    return availability_from_la_error(error.code() if error is not None else LA_ERROR_BIOMETRY_NOT_AVAILABLE)


async def _prompt_touchid(config: PromptConfig) -> BiometricOutcome:
    context = LAContext.alloc().init()
    context.setLocalizedCancelTitle_(config.negative_button_text)
    context.setLocalizedFallbackTitle_(config.negative_button_text)

    def evaluate() -> BiometricOutcome:
        done = threading.Event()
        reply = {"success": False, "error": None}

        def callback(success, auth_error):
            reply["success"] = success
            reply["error"] = auth_error
            done.set()

        context.evaluatePolicy_localizedReason_reply_(
            LAPolicyDeviceOwnerAuthenticationWithBiometrics,
            config.subtitle or config.title,
            callback,
        )
        if not done.wait(timeout=TOUCHID_TIMEOUT):
            context.invalidate()
            return BiometricError(BIOMETRIC_ERROR_TIMEOUT, "Biometric prompt timed out")
        if reply["success"]:
            return BiometricSuccess()
        error = reply["error"]
        if error is None:
            return BiometricError(-1, "Unknown Touch ID error")
        return outcome_from_la_error(error.code(), str(error.localizedDescription()))

    return await asyncio.get_running_loop().run_in_executor(None, evaluate)


# ============================================================================
# Windows Hello
# ============================================================================

async def _check_windows_hello_availability() -> BiometricAvailability:
    availability = await UserConsentVerifier.check_availability_async()
    if availability == UserConsentVerifierAvailability.AVAILABLE:
        return BiometricAvailability.AVAILABLE
    if availability == UserConsentVerifierAvailability.DEVICE_NOT_PRESENT:
        return BiometricAvailability.NO_HARDWARE
    if availability == UserConsentVerifierAvailability.NOT_CONFIGURED_FOR_USER:
        return BiometricAvailability.NO_ENROLLED_CREDENTIALS
    return BiometricAvailability.HARDWARE_UNAVAILABLE


async def _prompt_windows_hello(config: PromptConfig) -> BiometricOutcome:
    result = await UserConsentVerifier.request_verification_async(config.subtitle or config.title)
    if result == UserConsentVerificationResult.VERIFIED:
        return BiometricSuccess()
    if result == UserConsentVerificationResult.CANCELED:
        return BiometricDeclined()
    return BiometricError(int(result), f"Windows Hello verification failed ({result})")


# ============================================================================
# Authenticator
# ============================================================================

class PlatformBiometricAuthenticator:
    """
    Biometric capability check and challenge for the current platform.

    Usage:
        biometric = PlatformBiometricAuthenticator()
        if await biometric.check_availability() == BiometricAvailability.AVAILABLE:
            outcome = await biometric.authenticate(prompt_config)
    """

    def __init__(self) -> None:
        if _is_android and ANDROID_BIOMETRIC_AVAILABLE:
            self._backend: Optional[str] = "android"
        elif TOUCHID_AVAILABLE:
            self._backend = "touchid"
        elif WINDOWS_HELLO_AVAILABLE:
            self._backend = "windows_hello"
        else:
            self._backend = None
        logger.info(f"Biometric backend: {self._backend or 'none'}")

    @property
    def biometric_type(self) -> Optional[str]:
        return {
            "android": "Fingerprint",
            "touchid": "Touch ID",
            "windows_hello": "Windows Hello",
        }.get(self._backend)

    async def check_availability(self) -> BiometricAvailability:
        if self._backend is None:
            return BiometricAvailability.NO_HARDWARE
        try:
            if self._backend == "android":
                return _check_android_availability()
            if self._backend == "touchid":
                return _check_touchid_availability()
            return await _check_windows_hello_availability()
        except Exception as e:
            logger.warning(f"Biometric availability check failed: {e}")
            return BiometricAvailability.HARDWARE_UNAVAILABLE

    async def authenticate(self, config: PromptConfig) -> BiometricOutcome:
        if self._backend is None:
            return BiometricError(-1, "Biometric authentication is not supported on this device")
        try:
            if self._backend == "android":
                return await _prompt_android(config)
            if self._backend == "touchid":
                return await _prompt_touchid(config)
            return await _prompt_windows_hello(config)
        except Exception as e:
            logger.error(f"Biometric authentication failed: {e}")
            return BiometricError(-1, str(e))

    def open_enrollment_settings(self) -> None:
        """Send the user to the system screen for enrolling a fingerprint/face."""
        try:
            if self._backend == "android":
                _open_android_enrollment()
            elif sys.platform == "darwin":
                subprocess.run(
                    ["open", "x-apple.systempreferences:com.apple.preferences.password"],
                    check=False,
                )
            elif sys.platform == "win32":
                os.startfile("ms-settings:signinoptions")
            else:
                logger.info("No biometric enrollment settings on this platform")
        except Exception as e:
            logger.warning(f"Could not open biometric enrollment settings: {e}")
