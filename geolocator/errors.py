from http import HTTPStatus


class LocatorError(Exception):
    """Base error for geolocation service failures."""


class InvalidEndpointError(LocatorError, ValueError):
    """Raised when a locator is constructed with a malformed service URL."""


class BadRequestError(LocatorError):
    """Raised on HTTP 400: the request payload or the API key was rejected."""


class ForbiddenError(LocatorError):
    """Raised on HTTP 403: the daily request quota is exhausted."""


class NotFoundError(LocatorError):
    """Raised on HTTP 404: the service could not determine a location."""


class UnexpectedStatusError(LocatorError):
    """Raised for any other non-200 status; the message is the HTTP reason phrase."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(status_text(status_code))


class ResponseDecodeError(LocatorError):
    """Raised when a 200 response body cannot be decoded into a location."""


def status_text(status_code: int) -> str:
    """Return the standard reason phrase for a status code, or "" when unknown."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""
