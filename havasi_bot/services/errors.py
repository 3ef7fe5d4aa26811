"""Platform client errors."""


class HavasiError(Exception):
    """Base class for errors that carry a message fit to show the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationExpiredError(HavasiError):
    def __init__(self, message: str = "Authentication token has expired"):
        super().__init__(message)


class ApiError(HavasiError):
    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class ApiClientError(ApiError):
    """4xx answer from the platform."""


class ApiServerError(ApiError):
    """5xx answer from the platform."""


class ValidationError(HavasiError):
    """Local input problem, raised before any request is made."""


class RowBusyError(HavasiError):
    pass


UNKNOWN_ERROR = "Unknown error occurred"


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, HavasiError):
        return exc.message
    return UNKNOWN_ERROR
