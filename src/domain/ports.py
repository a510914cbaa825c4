"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the data model of an email change session and the
interfaces (ports) the domain requires from infrastructure. Adapters
implement these protocols.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


class SessionState(str, Enum):
    """
    Email change session states.

    State Transitions:
    - EDITING -> SUBMITTING (validated submit)
    - SUBMITTING -> AWAITING_VERIFICATION (verification link sent)
    - SUBMITTING -> EDITING (provider failure)
    - AWAITING_VERIFICATION -> VERIFIED (provider reports the new email)
    - AWAITING_VERIFICATION -> EDITING (cancel)
    - EDITING -> BLOCKED (session opened for a federated-only account)

    Terminal States:
    - VERIFIED: New email confirmed, waiting to be finalized
    - BLOCKED: Account has no password credential
    """

    EDITING = "EDITING"
    SUBMITTING = "SUBMITTING"
    AWAITING_VERIFICATION = "AWAITING_VERIFICATION"
    VERIFIED = "VERIFIED"
    BLOCKED = "BLOCKED"


class ErrorKind(str, Enum):
    """Recoverable failures surfaced as the session's last error."""

    EMAIL_REQUIRED = "EMAIL_REQUIRED"
    INVALID_EMAIL_FORMAT = "INVALID_EMAIL_FORMAT"
    EMAIL_NOT_DIFFERENT = "EMAIL_NOT_DIFFERENT"
    PASSWORD_REQUIRED = "PASSWORD_REQUIRED"
    INCORRECT_PASSWORD = "INCORRECT_PASSWORD"
    EMAIL_ALREADY_IN_USE = "EMAIL_ALREADY_IN_USE"
    REQUIRES_RECENT_LOGIN = "REQUIRES_RECENT_LOGIN"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


class CheckResult(Enum):
    """
    Result of a manual verification check.

    Used by check_now() to tell the caller whether the new email is active.
    """

    VERIFIED = "verified"
    NOT_YET_VERIFIED = "not_yet_verified"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class AccountSnapshot:
    """Identity provider view of the signed-in account."""

    user_id: str
    email: str
    has_password_credential: bool
    provider_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class SideEffectFailure:
    """A best-effort provider call that failed without aborting the flow."""

    operation: str
    detail: str


@dataclass
class VerificationSession:
    """
    State of one email change attempt.

    current_email and has_password_credential are read once when the
    session opens and never change afterwards.
    """

    user_id: str
    current_email: str
    has_password_credential: bool
    linked_providers: tuple[str, ...] = ()
    state: SessionState = SessionState.EDITING
    candidate_email: str = ""
    password: str = field(default="", repr=False)
    last_error: ErrorKind | None = None
    side_effect_failures: list[SideEffectFailure] = field(default_factory=list)


class IdentityProvider(Protocol):
    """
    Port interface for the external identity provider.

    Failures are raised as IdentityProviderError subclasses.
    """

    async def get_current_account(self) -> AccountSnapshot:
        """Return the signed-in account."""
        ...

    async def reauthenticate(self, email: str, password: str) -> None:
        """
        Re-validate the user's password credential.

        Raises:
            AuthCredentialError: If the password is wrong
        """
        ...

    async def unlink_provider(self, provider_id: str) -> None:
        """Detach a federated sign-in method (e.g. "google.com")."""
        ...

    async def send_verification_for_email_change(self, new_email: str) -> None:
        """
        Send a verification link to new_email.

        The account email only changes once the link is followed.

        Raises:
            AuthConflictError: If new_email belongs to another account
            RecentLoginRequiredError: If the sign-in is too old
        """
        ...

    async def check_email_available(self, email: str) -> bool:
        """Return True if no account is registered with email."""
        ...

    async def refresh_account(self) -> AccountSnapshot:
        """Reload the signed-in account from the provider."""
        ...

    async def sign_out(self) -> None:
        """End the current sign-in."""
        ...


class ProfileRepository(Protocol):
    """Port interface for the user profile store."""

    def update_email(self, user_id: str, email: str) -> bool:
        """
        Record a verified email on the user's profile.

        Args:
            user_id: Identity provider user id
            email: Newly verified email address

        Returns:
            True if a profile row was updated, False if none exists
        """
        ...
