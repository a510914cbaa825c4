"""Builders and async helpers shared by the test modules."""

import asyncio
from unittest.mock import AsyncMock

from src.domain.email_change import EmailChangeFlow
from src.domain.ports import AccountSnapshot, SessionState

CURRENT_EMAIL = "a@x.com"
NEW_EMAIL = "b@x.com"
PASSWORD = "secret123"


def make_account(
    email: str = CURRENT_EMAIL,
    has_password: bool = True,
    provider_ids: tuple[str, ...] = ("password",),
) -> AccountSnapshot:
    """Build an account snapshot for the test user."""
    return AccountSnapshot(
        user_id="user-1",
        email=email,
        has_password_credential=has_password,
        provider_ids=provider_ids,
    )


def make_provider(account: AccountSnapshot | None = None) -> AsyncMock:
    """Identity provider mock where every call succeeds and nothing is verified yet."""
    account = account or make_account()
    provider = AsyncMock()
    provider.get_current_account.return_value = account
    provider.check_email_available.return_value = True
    provider.refresh_account.return_value = account
    provider.reauthenticate.return_value = None
    provider.unlink_provider.return_value = None
    provider.send_verification_for_email_change.return_value = None
    provider.sign_out.return_value = None
    return provider


async def open_flow(provider: AsyncMock, **options) -> EmailChangeFlow:
    """Open a flow with a long poll interval unless overridden."""
    options.setdefault("poll_interval_seconds", 60.0)
    return await EmailChangeFlow.open(provider, **options)


async def wait_for_state(
    flow: EmailChangeFlow, state: SessionState, timeout: float = 2.0
) -> None:
    """Yield to the event loop until flow reaches state."""

    async def _wait() -> None:
        while flow.state != state:
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_wait(), timeout)
