"""
Submission guards for the email change flow.

Validation runs locally and never reaches the identity provider.
Checks run in a fixed order and the first failure wins.
"""

import re

from .ports import ErrorKind

# Same address pattern the mobile platform applies to email input fields.
EMAIL_PATTERN = re.compile(
    r"[a-zA-Z0-9+._%\-]{1,256}"
    r"@"
    r"[a-zA-Z0-9][a-zA-Z0-9\-]{0,64}"
    r"(\.[a-zA-Z0-9][a-zA-Z0-9\-]{0,25})+"
)


def is_valid_email(value: str) -> bool:
    """Return True if value is a syntactically valid email address."""
    return EMAIL_PATTERN.fullmatch(value) is not None


def validate_submission(
    candidate_email: str,
    current_email: str,
    password: str,
    has_password_credential: bool,
) -> ErrorKind | None:
    """
    Check a submit command before any provider call.

    The comparison with the current email is exact: addresses that
    differ only by case count as different.

    Returns:
        The first failing ErrorKind, or None if the submission is valid
    """
    if not candidate_email:
        return ErrorKind.EMAIL_REQUIRED
    if not is_valid_email(candidate_email):
        return ErrorKind.INVALID_EMAIL_FORMAT
    if candidate_email == current_email:
        return ErrorKind.EMAIL_NOT_DIFFERENT
    if has_password_credential and not password:
        return ErrorKind.PASSWORD_REQUIRED
    return None
