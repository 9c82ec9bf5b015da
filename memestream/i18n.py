"""Internationalization module - provides t("key") for translated strings.

All user-facing text must use t("key") to support multiple languages (EN/RO).
Add new translations to _TRANSLATIONS dict with both "en" and "ro" values.
"""
from typing import Dict

_current_language: str = "en"

LANGUAGES: Dict[str, Dict[str, str]] = {
    "en": {"name": "English", "flag": "🇺🇸", "code": "EN"},
    "ro": {"name": "Română", "flag": "🇷🇴", "code": "RO"},
}

_TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "app_name": {"en": "MemeStream", "ro": "MemeStream"},
    "app_tagline": {"en": "Sign in to see what's trending", "ro": "Autentifică-te pentru a vedea ce e în trend"},
    "sign_in_with_google": {"en": "Sign in with Google", "ro": "Autentificare cu Google"},
    "signing_in": {"en": "Signing in…", "ro": "Se autentifică…"},
    "welcome_user": {"en": "Welcome {name}", "ro": "Bine ai venit, {name}"},
    "sign_in_cancelled": {"en": "Sign in cancelled", "ro": "Autentificare anulată"},
    "google_sign_in_failed": {"en": "Google sign in failed: {message}", "ro": "Autentificarea Google a eșuat: {message}"},
    "authentication_failed_reason": {"en": "Authentication failed: {message}", "ro": "Autentificare eșuată: {message}"},
    "sign_out": {"en": "Sign out", "ro": "Deconectare"},

    # Biometric availability
    "no_biometric_hardware": {"en": "No biometric hardware available", "ro": "Niciun senzor biometric disponibil"},
    "biometric_hardware_unavailable": {"en": "Biometric hardware unavailable", "ro": "Senzorul biometric nu este disponibil"},
    "no_biometric_enrolled": {"en": "No biometric credentials enrolled", "ro": "Nicio amprentă sau față înregistrată"},

    # Biometric enrollment prompt
    "enable_biometric_login": {"en": "Enable Biometric Login", "ro": "Activează autentificarea biometrică"},
    "enable_biometric_subtitle": {
        "en": "Use your fingerprint or face to quickly access the app",
        "ro": "Folosește amprenta sau fața pentru acces rapid la aplicație",
    },
    "skip": {"en": "Skip", "ro": "Sari peste"},
    "biometric_login_enabled": {"en": "Biometric login enabled", "ro": "Autentificarea biometrică a fost activată"},
    "biometric_setup_failed": {"en": "Biometric setup failed: {message}", "ro": "Configurarea biometrică a eșuat: {message}"},
    "biometric_not_recognized": {"en": "Biometric not recognized", "ro": "Date biometrice nerecunoscute"},

    # Biometric unlock prompt
    "biometric_login": {"en": "Biometric Login", "ro": "Autentificare biometrică"},
    "authenticate_to_continue": {"en": "Authenticate to continue", "ro": "Autentifică-te pentru a continua"},
    "use_account_login": {"en": "Use Account Login", "ro": "Folosește contul"},
    "biometric_error": {"en": "Biometric error: {message}", "ro": "Eroare biometrică: {message}"},
    "authentication_failed": {"en": "Authentication failed", "ro": "Autentificare eșuată"},
    "something_went_wrong": {"en": "Something went wrong: {message}", "ro": "Ceva nu a mers bine: {message}"},

    # Main screen
    "home": {"en": "Home", "ro": "Acasă"},
    "signed_in_as": {"en": "Signed in as {name}", "ro": "Conectat ca {name}"},
}


def get_language() -> str:
    """Get the current language code."""
    return _current_language


def set_language(lang: str) -> None:
    """Set the current language. Unknown codes are ignored."""
    global _current_language
    if lang in LANGUAGES:
        _current_language = lang


def t(key: str) -> str:
    """Get translated string for the given key.

    Falls back to English if translation not found for current language.
    Falls back to the key itself if not found in any language.
    """
    if key not in _TRANSLATIONS:
        return key

    translations = _TRANSLATIONS[key]

    if _current_language in translations:
        return translations[_current_language]

    if "en" in translations:
        return translations["en"]

    return key
