"""
Email change domain service - Verification Flow implementation.

This module contains the core business logic for changing an account's
email address. The account email is never changed directly: a
verification link is sent to the new address and the flow waits for
the identity provider to report the new email as active.

Email Change State Machine
==========================

States:
- EDITING: User enters the new email (and current password)
- SUBMITTING: Identity provider calls in progress
- AWAITING_VERIFICATION: Link sent, polling the provider for the new email
- VERIFIED: Terminal, provider reports the new email
- BLOCKED: Terminal, federated-only account without a password credential

Valid Transitions:
    EDITING -> SUBMITTING               (submit passes validation)
    SUBMITTING -> AWAITING_VERIFICATION (verification link sent)
    SUBMITTING -> EDITING               (provider failure, last_error set)
    AWAITING_VERIFICATION -> VERIFIED   (poll tick or manual check matches)
    AWAITING_VERIFICATION -> EDITING    (cancel, password cleared)
    EDITING -> BLOCKED                  (session opened without password credential)

Commands are serialized: the state is switched before the first await,
so a second submit arriving while the first is in flight is rejected.
"""

import logging

from .exceptions import CommandRejected, IdentityProviderError, ProfileSyncError
from .polling import VerificationPoller
from .ports import (
    CheckResult,
    ErrorKind,
    IdentityProvider,
    ProfileRepository,
    SessionState,
    SideEffectFailure,
    VerificationSession,
)
from .validation import validate_submission

logger = logging.getLogger(__name__)


class EmailChangeFlow:
    """
    Domain service driving one email change session.

    Orchestrates validation, re-authentication, best-effort provider
    unlinking, sending the verification link and polling for
    confirmation.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        *,
        poll_interval_seconds: float = 3.0,
        federated_provider_id: str | None = "google.com",
        check_email_availability: bool = True,
        profile_repository: ProfileRepository | None = None,
        sign_out_on_finalize: bool = True,
    ) -> None:
        self._provider = identity_provider
        self._federated_provider_id = federated_provider_id
        self._check_email_availability = check_email_availability
        self._profile_repository = profile_repository
        self._sign_out_on_finalize = sign_out_on_finalize
        self._poller = VerificationPoller(self._poll_tick, poll_interval_seconds)
        self._session: VerificationSession | None = None
        self._closed = False
        # Bumped whenever AWAITING_VERIFICATION is entered or left.
        self._epoch = 0

    @classmethod
    async def open(cls, identity_provider: IdentityProvider, **options) -> "EmailChangeFlow":
        """Create a flow and start its session."""
        flow = cls(identity_provider, **options)
        await flow.start()
        return flow

    @property
    def session(self) -> VerificationSession:
        if self._session is None:
            raise CommandRejected("read", None)
        return self._session

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def polling(self) -> bool:
        return self._poller.running

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> VerificationSession:
        """
        Open the session from the signed-in account.

        Federated-only accounts go straight to BLOCKED: they need a
        password before the email can be changed.
        """
        if self._session is not None or self._closed:
            raise CommandRejected("start", self._session.state if self._session else None)

        account = await self._provider.get_current_account()
        session = VerificationSession(
            user_id=account.user_id,
            current_email=account.email,
            has_password_credential=account.has_password_credential,
            linked_providers=account.provider_ids,
        )
        if not account.has_password_credential:
            session.state = SessionState.BLOCKED
            logger.info("Email change blocked for user %s: no password credential", account.user_id)
        else:
            logger.info("Email change session opened for user %s", account.user_id)
        self._session = session
        return session

    def edit(self, candidate_email: str | None = None, password: str | None = None) -> None:
        """
        Update user input and clear the last error.

        Args:
            candidate_email: New email (surrounding whitespace is stripped)
            password: Current password

        Raises:
            CommandRejected: If the session is not in EDITING
        """
        session = self._require("edit", SessionState.EDITING)
        if candidate_email is not None:
            session.candidate_email = candidate_email.strip()
        if password is not None:
            session.password = password
        session.last_error = None

    async def submit(
        self, candidate_email: str | None = None, password: str | None = None
    ) -> SessionState:
        """
        Validate input and request a verification link for the new email.

        Validation failures and provider failures leave the session in
        EDITING with last_error set; candidate email and password are kept
        so the user can correct and resubmit.

        Returns:
            State after the command: AWAITING_VERIFICATION on success,
            EDITING otherwise

        Raises:
            CommandRejected: If the session is not in EDITING
        """
        self.edit(candidate_email, password)
        session = self.session

        error = validate_submission(
            session.candidate_email,
            session.current_email,
            session.password,
            session.has_password_credential,
        )
        if error is not None:
            session.last_error = error
            logger.info("Email change submit rejected: %s", error.value)
            return session.state

        session.state = SessionState.SUBMITTING
        try:
            await self._request_verification(session)
        except IdentityProviderError as e:
            return self._abort_submit(session, e.kind, e)
        except Exception as e:
            logger.exception("Unexpected failure while requesting email change")
            return self._abort_submit(session, ErrorKind.UNKNOWN, e)
        except BaseException:
            # Cancelled mid-request: unlock the session before propagating.
            if not self._closed:
                session.state = SessionState.EDITING
            logger.info("Email change submit interrupted for user %s", session.user_id)
            raise

        if self._closed:
            return session.state
        if session.last_error is not None:
            return self._abort_submit(session, session.last_error, None)

        self._enter_awaiting(session)
        logger.info("Verification link sent to %s", session.candidate_email)
        return session.state

    async def check_now(self) -> CheckResult:
        """
        Ask the provider whether the new email is active.

        Returns:
            VERIFIED if the account now uses the candidate email,
            NOT_YET_VERIFIED if it does not, UNAVAILABLE if the refresh
            failed (state unchanged)
        """
        session = self.session
        if not self._closed and session.state == SessionState.VERIFIED:
            return CheckResult.VERIFIED
        self._require("check", SessionState.AWAITING_VERIFICATION)

        epoch = self._epoch
        try:
            account = await self._provider.refresh_account()
        except IdentityProviderError as e:
            logger.warning("Manual verification check failed: %s", e)
            return CheckResult.UNAVAILABLE
        except Exception:
            logger.exception("Manual verification check raised unexpectedly")
            return CheckResult.UNAVAILABLE

        if session.state == SessionState.VERIFIED:
            return CheckResult.VERIFIED
        if not self._is_current(epoch):
            return CheckResult.NOT_YET_VERIFIED
        if account.email == session.candidate_email:
            self._poller.stop()
            self._mark_verified(session)
            return CheckResult.VERIFIED
        return CheckResult.NOT_YET_VERIFIED

    def cancel(self) -> SessionState:
        """
        Stop waiting for verification and return to editing.

        Polling stops before this returns. The password is cleared, the
        candidate email is kept. In any other state this is a no-op.
        """
        session = self.session
        if self._closed:
            raise CommandRejected("cancel", None)
        if session.state != SessionState.AWAITING_VERIFICATION:
            return session.state

        self._poller.stop()
        self._epoch += 1
        session.state = SessionState.EDITING
        session.password = ""
        session.last_error = None
        logger.info("Email change verification cancelled for user %s", session.user_id)
        return session.state

    async def finalize(self) -> None:
        """
        Complete a verified change.

        Mirrors the new email into the profile store when one is
        configured, then signs out so the next sign-in uses the new
        identity. Failures propagate and leave the session VERIFIED so
        finalize can be retried.

        Raises:
            CommandRejected: If the session is not VERIFIED
            ProfileSyncError: If the profile store update failed
            IdentityProviderError: If signing out failed
        """
        session = self._require("finalize", SessionState.VERIFIED)

        if self._profile_repository is not None:
            try:
                updated = self._profile_repository.update_email(session.user_id, session.candidate_email)
            except Exception as e:
                raise ProfileSyncError(f"Profile email update failed: {e}") from e
            if not updated:
                logger.warning("No profile found for user %s", session.user_id)

        if self._sign_out_on_finalize:
            await self._provider.sign_out()
            logger.info("User %s signed out after email change", session.user_id)

        await self.close()

    async def close(self) -> None:
        """Tear the session down and stop polling. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._epoch += 1
        await self._poller.aclose()

    async def _request_verification(self, session: VerificationSession) -> None:
        candidate = session.candidate_email

        if self._check_email_availability:
            available = await self._provider.check_email_available(candidate)
            if not available:
                session.last_error = ErrorKind.EMAIL_ALREADY_IN_USE
                return

        if session.has_password_credential:
            await self._provider.reauthenticate(session.current_email, session.password)
            logger.debug("Re-authenticated user %s", session.user_id)
            await self._unlink_federated_provider(session)

        await self._provider.send_verification_for_email_change(candidate)

    async def _unlink_federated_provider(self, session: VerificationSession) -> None:
        provider_id = self._federated_provider_id
        if provider_id is None or provider_id not in session.linked_providers:
            return
        try:
            await self._provider.unlink_provider(provider_id)
        except Exception as e:
            # Best-effort: the verification link can be sent without it.
            logger.warning("Unlinking %s failed for user %s: %s", provider_id, session.user_id, e)
            session.side_effect_failures.append(SideEffectFailure(f"unlink:{provider_id}", str(e)))
        else:
            logger.info("Unlinked %s for user %s", provider_id, session.user_id)

    async def _poll_tick(self) -> bool:
        session = self._session
        epoch = self._epoch
        if session is None or not self._awaiting(session):
            return True

        account = await self._provider.refresh_account()

        if not self._is_current(epoch) or not self._awaiting(session):
            return True
        if account.email == session.candidate_email:
            self._mark_verified(session)
            return True
        return False

    def _enter_awaiting(self, session: VerificationSession) -> None:
        self._epoch += 1
        session.state = SessionState.AWAITING_VERIFICATION
        self._poller.start()

    def _mark_verified(self, session: VerificationSession) -> None:
        self._epoch += 1
        session.state = SessionState.VERIFIED
        session.password = ""
        logger.info("Email change verified for user %s: %s", session.user_id, session.candidate_email)

    def _abort_submit(
        self, session: VerificationSession, kind: ErrorKind, error: Exception | None
    ) -> SessionState:
        if self._closed:
            return session.state
        session.state = SessionState.EDITING
        session.last_error = kind
        if error is not None:
            logger.warning("Email change submit failed (%s): %s", kind.value, error)
        else:
            logger.info("Email change submit failed: %s", kind.value)
        return session.state

    def _awaiting(self, session: VerificationSession) -> bool:
        return not self._closed and session.state == SessionState.AWAITING_VERIFICATION

    def _is_current(self, epoch: int) -> bool:
        return not self._closed and epoch == self._epoch

    def _require(self, command: str, state: SessionState) -> VerificationSession:
        session = self._session
        if session is None or self._closed:
            raise CommandRejected(command, None)
        if session.state != state:
            raise CommandRejected(command, session.state)
        return session
