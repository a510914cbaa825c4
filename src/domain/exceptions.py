"""
Domain exceptions - Semantic error types for the email change flow.

This module defines domain-specific exceptions that communicate
rejected commands and identity provider failures without leaking
adapter details. Provider failures carry the ErrorKind the flow
records as the session's last error.
"""

from .ports import ErrorKind, SessionState


class EmailChangeError(Exception):
    """Base class for email change domain errors."""

    pass


class CommandRejected(EmailChangeError):
    """Command is not valid in the session's current state."""

    def __init__(self, command: str, state: SessionState | None) -> None:
        self.command = command
        self.state = state
        where = state.value if state is not None else "closed session"
        super().__init__(f"{command} rejected in {where}")


class NoActiveSession(EmailChangeError):
    """No email change session is open."""

    pass


class IdentityProviderError(EmailChangeError):
    """Base class for failures reported by the identity provider."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class AuthCredentialError(IdentityProviderError):
    """Re-authentication failed: the password is wrong."""

    kind = ErrorKind.INCORRECT_PASSWORD


class AuthConflictError(IdentityProviderError):
    """The requested email is already registered to another account."""

    kind = ErrorKind.EMAIL_ALREADY_IN_USE


class RecentLoginRequiredError(IdentityProviderError):
    """The provider requires a fresh sign-in before a sensitive change."""

    kind = ErrorKind.REQUIRES_RECENT_LOGIN


class ProviderNetworkError(IdentityProviderError):
    """Transient connectivity failure while talking to the provider."""

    kind = ErrorKind.NETWORK_ERROR


class UnknownProviderError(IdentityProviderError):
    """Any other provider failure, passed through as-is."""

    kind = ErrorKind.UNKNOWN


class ProfileSyncError(EmailChangeError):
    """Mirroring the verified email into the profile store failed."""

    pass
