from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass
class Session:
    """Authenticated session issued by the auth service."""
    user_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    id_token: str = field(default="", repr=False)
    refresh_token: str = field(default="", repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for settings storage.

        The refresh token is kept out of the settings table; it lives in
        the OS keyring.
        """
        return {
            "user_id": self.user_id,
            "display_name": self.display_name,
            "email": self.email,
            "id_token": self.id_token,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any], refresh_token: str = "") -> "Session":
        """Create Session from dictionary."""
        return cls(
            user_id=d["user_id"],
            display_name=d.get("display_name"),
            email=d.get("email"),
            id_token=d.get("id_token", ""),
            refresh_token=refresh_token,
        )


@dataclass(frozen=True)
class PromptConfig:
    """What the biometric prompt shows the user."""
    title: str
    subtitle: str
    negative_button_text: str
    confirmation_required: bool = False


# ---------------------------------------------------------------------------
# Identity provider results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IdentityToken:
    value: str = field(repr=False)


@dataclass(frozen=True)
class SignInCancelled:
    pass


@dataclass(frozen=True)
class SignInError:
    message: str


SignInResult = Union[IdentityToken, SignInCancelled, SignInError]


# ---------------------------------------------------------------------------
# Auth service results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExchangeFailure:
    message: str


ExchangeResult = Union[Session, ExchangeFailure]


# ---------------------------------------------------------------------------
# Biometric results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BiometricSuccess:
    pass


@dataclass(frozen=True)
class BiometricFailure:
    """Credential not recognized; the prompt may be shown again."""
    pass


@dataclass(frozen=True)
class BiometricError:
    code: int
    message: str


@dataclass(frozen=True)
class BiometricDeclined:
    """User pressed the negative button."""
    pass


BiometricOutcome = Union[BiometricSuccess, BiometricFailure, BiometricError, BiometricDeclined]
