"""
Domain exceptions and their HTTP mapping.

Services raise these; the FastAPI handlers registered in
register_exception_handlers() turn them into JSON responses.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class LeadBrokerError(Exception):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"detail": self.detail}


class ValidationError(LeadBrokerError):
    """Malformed or missing input."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class MissingLoanAmount(ValidationError):
    """Accepting a lead requires the final loan amount."""

    def __init__(self, detail: str = "Loan amount is required for commissions"):
        super().__init__(detail)


class InvalidLoanAmount(ValidationError):
    """Loan amount is not a positive number."""


class NotFoundError(LeadBrokerError):
    """Lead, agent or commission id could not be resolved."""

    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(LeadBrokerError):
    """The requester's role or ownership does not allow the action."""

    status_code = status.HTTP_403_FORBIDDEN


class InvalidTransition(LeadBrokerError):
    """The lead status graph does not allow the requested move."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Invalid status transition from '{current}' to '{requested}'"
        )
        self.current = current
        self.requested = requested

    def to_dict(self) -> dict:
        return {"detail": self.detail, "from": self.current, "to": self.requested}


class ConflictError(LeadBrokerError):
    """Uniqueness or lifecycle rule violated (duplicate phone, immutable field)."""

    status_code = status.HTTP_409_CONFLICT


class DirectoryUnavailable(LeadBrokerError):
    """The backing store could not be reached. Safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class CommissionInvariantError(LeadBrokerError):
    """A computed split does not add up. Indicates a bug, never user input."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def leadbroker_error_handler(request: Request, exc: LeadBrokerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.detail}")
    else:
        logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.detail}")

    headers = None
    if isinstance(exc, DirectoryUnavailable):
        headers = {"Retry-After": "5"}

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach domain error handlers to the application."""
    app.add_exception_handler(LeadBrokerError, leadbroker_error_handler)
