"""Contains custom exceptions for the ytrelay package."""

__all__ = ["FeedParseError", "HTTPError"]

import sys
from http import HTTPStatus

if sys.version_info >= (3, 12):  # pragma: no cover
    from typing import override  # novm
else:
    from typing_extensions import override


class HTTPError(Exception):
    """Exception raised when the hub or a webhook answers with an unexpected status."""

    @override
    def __init__(self, message: str, status_code: int | HTTPStatus) -> None:
        """Initialize the HTTPError object.

        :param message: The error message
        :param status_code: The status code of the response
        """
        super().__init__(message)
        try:
            self.status_code: int | HTTPStatus = HTTPStatus(status_code)
        except ValueError:
            # Non-standard codes are kept as plain integers
            self.status_code = status_code
        self.message = message

    @override
    def __str__(self) -> str:
        """Return a string representation of the HTTPError object."""
        return f"Status code: {self.status_code}: {self.message}"


class FeedParseError(ValueError):
    """Exception raised when a pushed feed is not XML or carries no video entry."""
