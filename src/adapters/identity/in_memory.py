"""
In-memory identity provider adapter - Implements IdentityProvider protocol.

This module provides a process-local implementation of the domain's
identity provider port for demo and development purposes. Verification
links are logged instead of emailed; confirm_email_change() plays the
part of the user following the link.
"""

import logging
from dataclasses import replace

import bcrypt

from src.domain.exceptions import (
    AuthConflictError,
    AuthCredentialError,
    RecentLoginRequiredError,
    UnknownProviderError,
)
from src.domain.ports import AccountSnapshot

logger = logging.getLogger(__name__)

# Compared against when the account has no password so bcrypt always runs.
_DUMMY_BCRYPT_HASH = bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(4))


class InMemoryIdentityProvider:
    """
    Implements IdentityProvider protocol with a single signed-in account.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Passwords are held as bcrypt hashes and checked with bcrypt.checkpw().
    """

    def __init__(
        self,
        user_id: str,
        email: str,
        password: str | None,
        provider_ids: tuple[str, ...] = ("password",),
        bcrypt_cost: int = 10,
    ) -> None:
        """
        Initialize provider with the signed-in account.

        Args:
            user_id: Account id
            email: Current account email
            password: Password credential, or None for a federated-only account
            provider_ids: Linked sign-in providers
            bcrypt_cost: bcrypt work factor for the stored hash
        """
        has_password = password is not None
        if has_password and "password" not in provider_ids:
            provider_ids = ("password", *provider_ids)
        self._account: AccountSnapshot | None = AccountSnapshot(
            user_id=user_id,
            email=email,
            has_password_credential=has_password,
            provider_ids=tuple(provider_ids),
        )
        self._password_hash = (
            bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=bcrypt_cost))
            if password is not None
            else None
        )
        self._registered: set[str] = {email}
        self._pending_email: str | None = None

    @property
    def pending_email(self) -> str | None:
        return self._pending_email

    def register_email(self, email: str) -> None:
        """Mark email as belonging to another account."""
        self._registered.add(email)

    def confirm_email_change(self, email: str) -> bool:
        """
        Follow the verification link sent to email.

        Returns:
            True if the account email changed, False if no link is pending for email
        """
        account = self._signed_in()
        if self._pending_email != email:
            return False
        self._registered.discard(account.email)
        self._registered.add(email)
        self._account = replace(account, email=email)
        self._pending_email = None
        logger.info("[VERIFICATION] Email changed for user %s: %s", account.user_id, email)
        return True

    async def get_current_account(self) -> AccountSnapshot:
        return self._signed_in()

    async def reauthenticate(self, email: str, password: str) -> None:
        account = self._signed_in()
        stored = self._password_hash or _DUMMY_BCRYPT_HASH
        password_valid = bcrypt.checkpw(password.encode(), stored)
        if self._password_hash is None or email != account.email or not password_valid:
            raise AuthCredentialError("The password is invalid or the user does not have a password")

    async def unlink_provider(self, provider_id: str) -> None:
        account = self._signed_in()
        if provider_id not in account.provider_ids:
            raise UnknownProviderError(f"User was not linked to an account with provider {provider_id}")
        remaining = tuple(p for p in account.provider_ids if p != provider_id)
        self._account = replace(account, provider_ids=remaining)

    async def send_verification_for_email_change(self, new_email: str) -> None:
        self._signed_in()
        if new_email in self._registered:
            raise AuthConflictError("email-already-in-use")
        self._pending_email = new_email
        logger.info("[VERIFICATION] Email change link for: %s", new_email)

    async def check_email_available(self, email: str) -> bool:
        self._signed_in()
        return email not in self._registered

    async def refresh_account(self) -> AccountSnapshot:
        return self._signed_in()

    async def sign_out(self) -> None:
        if self._account is not None:
            logger.info("User %s signed out", self._account.user_id)
        self._account = None

    def _signed_in(self) -> AccountSnapshot:
        if self._account is None:
            raise RecentLoginRequiredError("No user is signed in")
        return self._account
