"""Human-readable feedback for email change errors."""

from dataclasses import dataclass

from .ports import ErrorKind


@dataclass(frozen=True)
class Feedback:
    """Message and field markers shown for an ErrorKind."""

    message: str
    email_invalid: bool = False
    password_invalid: bool = False


_FEEDBACK: dict[ErrorKind, Feedback] = {
    ErrorKind.EMAIL_REQUIRED: Feedback("Enter new email", email_invalid=True),
    ErrorKind.INVALID_EMAIL_FORMAT: Feedback("Invalid email", email_invalid=True),
    ErrorKind.EMAIL_NOT_DIFFERENT: Feedback("Email must be different", email_invalid=True),
    ErrorKind.PASSWORD_REQUIRED: Feedback("Password required", password_invalid=True),
    ErrorKind.INCORRECT_PASSWORD: Feedback("Incorrect password", password_invalid=True),
    ErrorKind.EMAIL_ALREADY_IN_USE: Feedback("Email already in use", email_invalid=True),
    ErrorKind.REQUIRES_RECENT_LOGIN: Feedback("Please sign in again to change your email"),
    ErrorKind.NETWORK_ERROR: Feedback("Network error, please try again"),
    ErrorKind.UNKNOWN: Feedback("Something went wrong, please try again"),
}


def describe(kind: ErrorKind) -> Feedback:
    """Return the user-facing feedback for kind."""
    return _FEEDBACK[kind]
