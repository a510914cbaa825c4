"""
API v1 routes.

Defines REST endpoints driving the email change verification flow.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.api.dependencies import get_flow, get_registry
from src.api.models import (
    CheckResponse,
    ErrorResponse,
    FinalizeResponse,
    SessionResponse,
    SubmitRequest,
)
from src.domain.email_change import EmailChangeFlow
from src.domain.exceptions import CommandRejected, IdentityProviderError, ProfileSyncError
from src.domain.ports import CheckResult
from src.domain.sessions import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email-change", tags=["v1"])

_CHECK_MESSAGES = {
    CheckResult.VERIFIED: "Email verified",
    CheckResult.NOT_YET_VERIFIED: "Email not verified yet",
    CheckResult.UNAVAILABLE: "Could not check verification status, please try again",
}

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "No email change in progress"}}
_CONFLICT = {409: {"model": ErrorResponse, "description": "Command not allowed in current state"}}


def _rejected(e: CommandRejected) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={502: {"model": ErrorResponse, "description": "Identity provider unavailable"}},
    summary="Start an email change",
    description="Open a new email change session for the signed-in account. "
    "Any session already in progress is discarded.",
)
async def open_session(
    registry: SessionRegistry = Depends(get_registry),
) -> SessionResponse:
    try:
        flow = await registry.open()
    except IdentityProviderError as e:
        logger.warning("Could not open email change session: %s", e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Identity provider unavailable",
        ) from None
    return SessionResponse.from_flow(flow)


@router.get(
    "",
    response_model=SessionResponse,
    responses=_NOT_FOUND,
    summary="Get the email change session",
)
async def get_session(flow: EmailChangeFlow = Depends(get_flow)) -> SessionResponse:
    return SessionResponse.from_flow(flow)


@router.post(
    "/submit",
    response_model=SessionResponse,
    responses={**_NOT_FOUND, **_CONFLICT},
    summary="Submit the new email",
    description="Validate the new email and password and request a verification link. "
    "Validation and provider failures are reported in the session's error field.",
)
async def submit(
    request_data: SubmitRequest,
    flow: EmailChangeFlow = Depends(get_flow),
) -> SessionResponse:
    try:
        await flow.submit(request_data.candidate_email, request_data.password)
    except CommandRejected as e:
        raise _rejected(e) from None
    return SessionResponse.from_flow(flow)


@router.post(
    "/check",
    response_model=CheckResponse,
    responses={**_NOT_FOUND, **_CONFLICT},
    summary="Check verification now",
)
async def check(flow: EmailChangeFlow = Depends(get_flow)) -> CheckResponse:
    try:
        result = await flow.check_now()
    except CommandRejected as e:
        raise _rejected(e) from None
    return CheckResponse(
        result=result,
        message=_CHECK_MESSAGES[result],
        session=SessionResponse.from_flow(flow),
    )


@router.post(
    "/cancel",
    response_model=SessionResponse,
    responses={**_NOT_FOUND, **_CONFLICT},
    summary="Stop waiting for verification",
)
async def cancel(flow: EmailChangeFlow = Depends(get_flow)) -> SessionResponse:
    try:
        flow.cancel()
    except CommandRejected as e:
        raise _rejected(e) from None
    return SessionResponse.from_flow(flow)


@router.post(
    "/finalize",
    response_model=FinalizeResponse,
    responses={
        **_NOT_FOUND,
        **_CONFLICT,
        502: {"model": ErrorResponse, "description": "Profile update or sign out failed"},
    },
    summary="Finish a verified email change",
    description="Record the verified email on the user profile and sign out.",
)
async def finalize(flow: EmailChangeFlow = Depends(get_flow)) -> FinalizeResponse:
    try:
        await flow.finalize()
    except CommandRejected as e:
        raise _rejected(e) from None
    except ProfileSyncError as e:
        logger.error("Finalizing email change failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Profile update failed",
        ) from None
    except IdentityProviderError as e:
        logger.error("Finalizing email change failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Sign out failed",
        ) from None
    return FinalizeResponse(message="Email changed, please sign in again", email=flow.session.candidate_email)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave the email change",
)
async def discard(registry: SessionRegistry = Depends(get_registry)) -> Response:
    await registry.discard()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
