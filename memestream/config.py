"""Application configuration - single source of truth for all constants.

Contains colors, dimensions, the login flow states, credential endpoints and
magic values. Import from here instead of hardcoding values elsewhere to
ensure consistency across the app.
"""
import os
from enum import Enum
from pathlib import Path

# Load .env if available (desktop only - not bundled in mobile builds)
try:
    from dotenv import load_dotenv
    load_dotenv(Path(__file__).parent / ".env")
except ImportError:
    pass  # dotenv not available on mobile, skip loading .env


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class FlowState(Enum):
    """Observable decision points of the login flow."""
    START = "start"
    AWAITING_FEDERATED_SIGN_IN = "awaiting_federated_sign_in"
    SIGN_IN_IN_FLIGHT = "sign_in_in_flight"
    EXCHANGING_CREDENTIAL = "exchanging_credential"
    POST_SIGN_IN_DECISION = "post_sign_in_decision"
    ENROLLMENT_PROMPT = "enrollment_prompt"
    UNLOCK_PROMPT = "unlock_prompt"
    AWAITING_MAIN_APP = "awaiting_main_app"


class BiometricAvailability(Enum):
    """Result of the platform biometric capability check."""
    AVAILABLE = "available"
    NO_HARDWARE = "no_hardware"
    HARDWARE_UNAVAILABLE = "hardware_unavailable"
    NO_ENROLLED_CREDENTIALS = "no_enrolled_credentials"


class Route(Enum):
    """Top-level routes of the Flet app."""
    LOGIN = "/login"
    MAIN = "/main"


# ============================================================================
# Preferences
# ============================================================================

# Settings table keys are prefixed with the scope they belong to
PREFERENCE_SCOPE = "app_prefs"
BIOMETRIC_PREF_KEY = "biometric_enabled"
SESSION_SETTING_KEY = "firebase_session"

DB_PATH = Path(os.getenv("MEMESTREAM_DB_PATH", "") or "memestream.db")

# Offer biometric setup right after a successful sign-in
OFFER_BIOMETRIC_ENROLLMENT = _env_flag("MEMESTREAM_OFFER_BIOMETRIC_ENROLLMENT")

# ============================================================================
# Identity provider & auth service
# ============================================================================

GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
OAUTH_REDIRECT_URL = os.getenv("OAUTH_REDIRECT_URL", "") or "http://localhost:8550/oauth_callback"
GOOGLE_SCOPES = ["openid", "email", "profile"]

FIREBASE_API_KEY = os.getenv("FIREBASE_API_KEY", "")
FIREBASE_SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithIdp"
FIREBASE_PROVIDER_ID = "google.com"
HTTP_TIMEOUT_SECONDS = 15

KEYRING_SERVICE = "memestream"
KEYRING_REFRESH_TOKEN_ID = "firebase-refresh-token"

# ============================================================================
# Biometric prompt
# ============================================================================

# androidx.biometric.BiometricManager.Authenticators.BIOMETRIC_STRONG
BIOMETRIC_STRONG = 0x000F

# androidx.biometric.BiometricPrompt error codes
BIOMETRIC_ERROR_TIMEOUT = 3
BIOMETRIC_ERROR_USER_CANCELED = 10
BIOMETRIC_ERROR_NEGATIVE_BUTTON = 13

# ============================================================================
# UI
# ============================================================================

SNACK_DURATION_MS = 2000
BORDER_RADIUS = 10
LOGIN_CARD_WIDTH = 320
FONT_SIZE_MD = 12
FONT_SIZE_XL = 16
FONT_SIZE_4XL = 24
ICON_SIZE_3XL = 64
SPACING_LG = 10
SPACING_3XL = 20
PADDING_4XL = 40

COLORS = {
    "bg": "#1e1e1e",
    "card": "#2d2d2d",
    "accent": "#4a9eff",
    "danger": "#ff6b6b",
    "white": "white",
    "green": "#4caf50",
    "muted": "#888888",
}
