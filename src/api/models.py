"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from pydantic import BaseModel, Field

from src.domain.email_change import EmailChangeFlow
from src.domain.feedback import describe
from src.domain.ports import CheckResult, ErrorKind, SessionState


class SubmitRequest(BaseModel):
    """Request model for submitting a new email."""

    # Plain str: format problems are reported as session feedback, not 422.
    candidate_email: str = Field(..., max_length=320, description="New email address")
    password: str = Field("", description="Current password (required for password accounts)")


class ErrorFeedback(BaseModel):
    """Last error of the session with its user-facing message."""

    kind: ErrorKind
    message: str
    email_invalid: bool
    password_invalid: bool

    @classmethod
    def from_kind(cls, kind: ErrorKind) -> "ErrorFeedback":
        feedback = describe(kind)
        return cls(
            kind=kind,
            message=feedback.message,
            email_invalid=feedback.email_invalid,
            password_invalid=feedback.password_invalid,
        )


class SessionResponse(BaseModel):
    """Snapshot of the active email change session."""

    state: SessionState
    current_email: str
    candidate_email: str
    has_password_credential: bool
    polling: bool
    error: ErrorFeedback | None = None

    @classmethod
    def from_flow(cls, flow: EmailChangeFlow) -> "SessionResponse":
        session = flow.session
        return cls(
            state=session.state,
            current_email=session.current_email,
            candidate_email=session.candidate_email,
            has_password_credential=session.has_password_credential,
            polling=flow.polling,
            error=ErrorFeedback.from_kind(session.last_error) if session.last_error else None,
        )


class CheckResponse(BaseModel):
    """Response model for a manual verification check."""

    result: CheckResult
    message: str
    session: SessionResponse


class FinalizeResponse(BaseModel):
    """Response model for a finalized email change."""

    message: str
    email: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
