"""Error taxonomy for the authorization and delegation flows.

Provider-level failures are caught at the boundary of each external call and
translated into one of these kinds. Messages are safe to log: they never carry
authorization codes, tokens, or client secrets.
"""

from __future__ import annotations


class SchedulerError(Exception):
    """Base class for all domain errors raised by adhd_scheduler."""


class AuthorizationError(SchedulerError):
    """Raised when the OAuth authorization flow cannot be completed."""

    status_code: int = 500

    def __init__(self, message: str, *, error_code: str = "authorization_failed") -> None:
        self.error_code = error_code
        super().__init__(message)


class MissingAuthorizationCode(AuthorizationError):
    """The provider callback arrived without an authorization code."""

    status_code = 400

    def __init__(self, message: str = "Authorization code is missing from the callback.") -> None:
        super().__init__(message, error_code="missing_code")


class AuthorizationExchangeError(AuthorizationError):
    """The authorization code could not be exchanged for a credential bundle."""

    def __init__(
        self,
        message: str,
        *,
        error_code: str = "token_exchange_failed",
        status_code: int = 500,
    ) -> None:
        super().__init__(message, error_code=error_code)
        self.status_code = status_code


class CalendarSubmissionError(SchedulerError):
    """At least one calendar event could not be created.

    Describes the first failure in template order. Events created before or
    alongside the failing one are left in place.
    """

    def __init__(
        self,
        *,
        index: int,
        label: str,
        message: str,
        status_code: int | None = None,
        failed_count: int = 1,
    ) -> None:
        self.index = index
        self.label = label
        self.message = message
        self.status_code = status_code
        self.failed_count = failed_count
        status = f" ({status_code})" if status_code is not None else ""
        super().__init__(f"Calendar event #{index + 1} '{label}' failed{status}: {message}")


class MailSubmissionError(SchedulerError):
    """The summary message could not be delivered.

    Never propagated to request handlers; ``DelegationGateway.send_summary``
    folds it into an ``Outcome``.
    """
