"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the session
registry and the active email change flow into routes, plus the
factory that wires adapters into new flows.
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, Request, status

from src.config.settings import Settings
from src.domain.email_change import EmailChangeFlow
from src.domain.exceptions import NoActiveSession
from src.domain.ports import IdentityProvider, ProfileRepository
from src.domain.sessions import SessionRegistry


def build_flow_factory(
    settings: Settings,
    identity_provider: IdentityProvider,
    profile_repository: ProfileRepository | None = None,
) -> Callable[[], Awaitable[EmailChangeFlow]]:
    """
    Create the factory the session registry uses to open flows.

    Wires the identity provider, optional profile repository and
    flow options from settings into every new session.
    """

    async def open_flow() -> EmailChangeFlow:
        return await EmailChangeFlow.open(
            identity_provider,
            poll_interval_seconds=settings.poll_interval_seconds,
            federated_provider_id=settings.federated_provider_id,
            check_email_availability=settings.check_email_availability,
            profile_repository=profile_repository,
            sign_out_on_finalize=settings.sign_out_on_finalize,
        )

    return open_flow


def get_registry(request: Request) -> SessionRegistry:
    """
    Get session registry from app state.

    The registry is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.registry


def get_flow(registry: SessionRegistry = Depends(get_registry)) -> EmailChangeFlow:
    """Get the active email change flow, 404 when none is open."""
    try:
        return registry.current
    except NoActiveSession:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No email change in progress",
        ) from None
