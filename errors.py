"""
Errors raised by the service modules.

Missing records are normally reported with None/False; these exceptions cover
requests the services refuse outright.
"""


class DealershipError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DealershipError):
    status_code = 400


class NotFoundError(DealershipError):
    status_code = 404


class AuthenticationError(DealershipError):
    status_code = 401


class ForbiddenError(DealershipError):
    status_code = 403


class BannedError(ForbiddenError):
    """Raised when a banned user tries to sign in or use a session."""

    def __init__(self, ban_status: dict):
        super().__init__(ban_status.get("message") or "Account suspended")
        self.ban_status = ban_status
