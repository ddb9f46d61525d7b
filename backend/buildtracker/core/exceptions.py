"""Custom exceptions for application-specific error handling."""

from __future__ import annotations

from typing import Optional, Dict, Any


class BuildTrackerException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class NotFoundError(BuildTrackerException):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "not_found", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="NOT_FOUND", details=details, status_code=404)


class BadRequestError(BuildTrackerException):
    """Raised when request is invalid."""

    def __init__(self, message: str = "bad_request", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="BAD_REQUEST", details=details, status_code=400)


# ===== ISSUE TRACKER EXCEPTIONS =====


class IssueTrackerException(BuildTrackerException):
    """Base exception for issue-tracker errors."""


class IssueTrackerUnavailable(IssueTrackerException):
    """Raised on network, auth or timeout failures talking to the tracker.

    Recoverable: the cycle is skipped and the next build retries.
    """

    def __init__(self, message: str = "Issue tracker unavailable", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="ISSUE_TRACKER_UNAVAILABLE", details=details, status_code=503)


class LookupFailed(IssueTrackerException):
    """Raised when a ticket cannot be fetched (deleted, or the tracker rejected the call)."""

    def __init__(self, ticket_key: str, message: Optional[str] = None, *, status: Optional[int] = None):
        details: Dict[str, Any] = {"ticket_key": ticket_key}
        if status is not None:
            details["status"] = status
        super().__init__(
            message or f"Lookup of {ticket_key} failed",
            error_code="LOOKUP_FAILED",
            details=details,
            status_code=502,
        )


class UnknownIssueStatus(IssueTrackerException):
    """Raised when the tracker reports a status outside the known mapping."""

    def __init__(self, raw_status: str):
        super().__init__(
            f"Unknown issue status: {raw_status!r}",
            error_code="UNKNOWN_ISSUE_STATUS",
            details={"raw_status": raw_status},
            status_code=502,
        )


class ApplyError(IssueTrackerException):
    """Base exception for a rejected remote call while applying an action."""


class CreateFailed(ApplyError):
    """Raised when the tracker rejects issue creation."""

    def __init__(self, message: str = "Issue creation failed", *, status: Optional[int] = None):
        details = {"status": status} if status is not None else {}
        super().__init__(message, error_code="CREATE_FAILED", details=details, status_code=502)


class CommentFailed(ApplyError):
    """Raised when the tracker rejects a comment."""

    def __init__(self, ticket_key: str, message: Optional[str] = None, *, status: Optional[int] = None):
        details: Dict[str, Any] = {"ticket_key": ticket_key}
        if status is not None:
            details["status"] = status
        super().__init__(
            message or f"Comment on {ticket_key} failed",
            error_code="COMMENT_FAILED",
            details=details,
            status_code=502,
        )


# ===== STORE EXCEPTIONS =====


class StoreUnavailable(BuildTrackerException):
    """Raised when the ticket store cannot be read or written."""

    def __init__(self, message: str = "Ticket store unavailable", *, job_name: Optional[str] = None):
        details = {"job_name": job_name} if job_name else {}
        super().__init__(message, error_code="STORE_UNAVAILABLE", details=details, status_code=503)


# ===== CONFIGURATION / AUTH EXCEPTIONS =====


class InvalidConfigurationError(BuildTrackerException):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else {}
        super().__init__(message, error_code="INVALID_CONFIG", details=details, status_code=500)


class InvalidAPIKeyError(BuildTrackerException):
    """Raised when the CI token is missing or wrong."""

    def __init__(self, message: str = "Invalid API key"):
        super().__init__(message, error_code="INVALID_API_KEY", status_code=401)
