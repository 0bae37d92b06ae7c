"""FunilDash — Error Taxonomy.

Every error raised on purpose by the service carries the HTTP status it maps to
and a message that is safe to show to the caller. Internal details stay in the
server log.
"""


class DashboardError(Exception):
    """Base class for errors rendered as ``{"error": message}``."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        super().__init__(message)


class Unauthenticated(DashboardError):
    """No valid session."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFound(DashboardError):
    status_code = 404


class Forbidden(DashboardError):
    """The record exists (or may exist) but belongs to another company."""

    status_code = 403


class ValidationFailed(DashboardError):
    status_code = 400


class StoreFailure(DashboardError):
    """The database call itself failed."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
