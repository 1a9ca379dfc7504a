# flowshape/client/errors.py

from typing import Optional


class FrontendApiError(Exception):
    """Base class for failures talking to the editor frontend API."""

    default_message = "Frontend API error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(FrontendApiError):
    """Token rejected (HTTP 401). The user has to re-authenticate."""

    default_message = "Unauthorized"


class RequestFailed(FrontendApiError):
    """Any other non-success outcome, transport errors included."""

    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class InvalidResponse(FrontendApiError):
    """The server answered with success but the body is not what we expect."""

    default_message = "Invalid API response"
