"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for the email change
verification flow. It defines its own port interfaces for infrastructure
abstraction, ensuring true hexagonal architecture decoupling.
"""

from .email_change import EmailChangeFlow
from .exceptions import (
    AuthConflictError,
    AuthCredentialError,
    CommandRejected,
    EmailChangeError,
    IdentityProviderError,
    NoActiveSession,
    ProfileSyncError,
    ProviderNetworkError,
    RecentLoginRequiredError,
    UnknownProviderError,
)
from .feedback import Feedback, describe
from .polling import VerificationPoller
from .ports import (
    AccountSnapshot,
    CheckResult,
    ErrorKind,
    IdentityProvider,
    ProfileRepository,
    SessionState,
    SideEffectFailure,
    VerificationSession,
)
from .sessions import SessionRegistry
from .validation import is_valid_email, validate_submission

__all__ = [
    "AccountSnapshot",
    "AuthConflictError",
    "AuthCredentialError",
    "CheckResult",
    "CommandRejected",
    "EmailChangeError",
    "EmailChangeFlow",
    "ErrorKind",
    "Feedback",
    "IdentityProvider",
    "IdentityProviderError",
    "NoActiveSession",
    "ProfileRepository",
    "ProfileSyncError",
    "ProviderNetworkError",
    "RecentLoginRequiredError",
    "SessionRegistry",
    "SessionState",
    "SideEffectFailure",
    "UnknownProviderError",
    "VerificationPoller",
    "VerificationSession",
    "describe",
    "is_valid_email",
    "validate_submission",
]
