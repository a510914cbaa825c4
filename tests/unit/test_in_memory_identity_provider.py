"""
Unit tests for InMemoryIdentityProvider adapter.

Tests verify the in-memory provider implements the IdentityProvider
protocol, checks passwords with bcrypt and logs verification links.
"""

import logging

import pytest

from src.adapters.identity.in_memory import InMemoryIdentityProvider
from src.api.main import build_identity_provider
from src.config.settings import Settings
from src.domain.email_change import EmailChangeFlow
from src.domain.exceptions import (
    AuthConflictError,
    AuthCredentialError,
    RecentLoginRequiredError,
    UnknownProviderError,
)
from src.domain.ports import CheckResult, IdentityProvider, SessionState

pytestmark = pytest.mark.anyio


def make_provider(password: str | None = "secret123", **kwargs) -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider(
        user_id="user-1",
        email="a@x.com",
        password=password,
        bcrypt_cost=4,
        **kwargs,
    )


class TestProtocol:
    """Tests for IdentityProvider protocol compliance."""

    async def test_implements_identity_provider_protocol(self) -> None:
        def accepts_provider(p: IdentityProvider) -> None:
            pass

        accepts_provider(make_provider())

    async def test_no_explicit_inheritance(self) -> None:
        """InMemoryIdentityProvider uses structural subtyping, not inheritance."""
        assert InMemoryIdentityProvider.__bases__ == (object,)


class TestAccount:
    """Tests for account state."""

    async def test_password_account(self) -> None:
        account = await make_provider().get_current_account()
        assert account.email == "a@x.com"
        assert account.has_password_credential is True
        assert "password" in account.provider_ids

    async def test_federated_only_account(self) -> None:
        provider = make_provider(password=None, provider_ids=("google.com",))
        account = await provider.get_current_account()
        assert account.has_password_credential is False
        assert account.provider_ids == ("google.com",)


class TestReauthenticate:
    """Tests for bcrypt password checks."""

    async def test_correct_password(self) -> None:
        await make_provider().reauthenticate("a@x.com", "secret123")

    async def test_wrong_password(self) -> None:
        with pytest.raises(AuthCredentialError):
            await make_provider().reauthenticate("a@x.com", "wrong")

    async def test_wrong_email(self) -> None:
        with pytest.raises(AuthCredentialError):
            await make_provider().reauthenticate("other@x.com", "secret123")

    async def test_no_password_credential(self) -> None:
        with pytest.raises(AuthCredentialError):
            await make_provider(password=None).reauthenticate("a@x.com", "")


class TestEmailChange:
    """Tests for verification links and confirmation."""

    async def test_send_logs_link(self, caplog: pytest.LogCaptureFixture) -> None:
        provider = make_provider()

        with caplog.at_level(logging.INFO):
            await provider.send_verification_for_email_change("b@x.com")

        assert "[VERIFICATION]" in caplog.text
        assert "b@x.com" in caplog.text
        assert provider.pending_email == "b@x.com"

    async def test_email_not_changed_until_confirmed(self) -> None:
        provider = make_provider()
        await provider.send_verification_for_email_change("b@x.com")

        assert (await provider.refresh_account()).email == "a@x.com"
        assert provider.confirm_email_change("b@x.com") is True
        assert (await provider.refresh_account()).email == "b@x.com"

    async def test_confirm_without_pending_link(self) -> None:
        provider = make_provider()
        assert provider.confirm_email_change("b@x.com") is False
        assert (await provider.refresh_account()).email == "a@x.com"

    async def test_registered_email_conflicts(self) -> None:
        provider = make_provider()
        provider.register_email("taken@x.com")

        assert await provider.check_email_available("taken@x.com") is False
        assert await provider.check_email_available("free@x.com") is True
        with pytest.raises(AuthConflictError):
            await provider.send_verification_for_email_change("taken@x.com")


class TestUnlinkAndSignOut:
    """Tests for provider unlinking and sign out."""

    async def test_unlink_linked_provider(self) -> None:
        provider = make_provider(provider_ids=("password", "google.com"))

        await provider.unlink_provider("google.com")

        assert (await provider.get_current_account()).provider_ids == ("password",)

    async def test_unlink_unknown_provider(self) -> None:
        with pytest.raises(UnknownProviderError):
            await make_provider().unlink_provider("google.com")

    async def test_sign_out(self) -> None:
        provider = make_provider()

        await provider.sign_out()

        with pytest.raises(RecentLoginRequiredError):
            await provider.get_current_account()


class TestWithFlow:
    """End-to-end flow against the in-memory provider."""

    async def test_full_email_change(self) -> None:
        provider = make_provider(provider_ids=("password", "google.com"))
        flow = await EmailChangeFlow.open(provider, poll_interval_seconds=60.0)

        assert await flow.submit("b@x.com", "secret123") == SessionState.AWAITING_VERIFICATION
        assert await flow.check_now() == CheckResult.NOT_YET_VERIFIED

        provider.confirm_email_change("b@x.com")
        assert await flow.check_now() == CheckResult.VERIFIED

        await flow.finalize()
        assert flow.closed is True
        with pytest.raises(RecentLoginRequiredError):
            await provider.get_current_account()

    async def test_wrong_password(self) -> None:
        provider = make_provider()
        flow = await EmailChangeFlow.open(provider, poll_interval_seconds=60.0)

        assert await flow.submit("b@x.com", "nope") == SessionState.EDITING
        assert flow.session.last_error.value == "INCORRECT_PASSWORD"
        assert provider.pending_email is None

    async def test_blocked_for_federated_only(self) -> None:
        provider = make_provider(password=None, provider_ids=("google.com",))
        flow = await EmailChangeFlow.open(provider)

        assert flow.state == SessionState.BLOCKED


class TestDemoAccount:
    """Tests for the demo account seeded from settings."""

    async def test_default_demo_account_has_password_and_google(self) -> None:
        provider = build_identity_provider(Settings(bcrypt_cost=4))

        account = await provider.get_current_account()

        assert account.has_password_credential is True
        assert account.provider_ids == ("password", "google.com")

    async def test_federated_only_demo_account_has_no_password_provider(self) -> None:
        provider = build_identity_provider(Settings(demo_has_password=False, bcrypt_cost=4))

        account = await provider.get_current_account()

        assert account.has_password_credential is False
        assert account.provider_ids == ("google.com",)
