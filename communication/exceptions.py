"""
Communication Exceptions

Domain errors raised by the access resolver, the admin hierarchy guard and
the communication services. Each carries the HTTP status the REST layer
answers with.
"""


class HuddleError(Exception):
    """Base exception for workspace errors"""
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code


class NotFound(HuddleError):
    """Unknown channel, message or actor"""
    status_code = 404


class PermissionDenied(HuddleError):
    """Access resolver or admin guard said no"""
    status_code = 403


class Conflict(HuddleError):
    """Duplicate channel name and similar uniqueness violations"""
    status_code = 400


class ValidationFailed(HuddleError):
    """Malformed client input"""
    status_code = 400
