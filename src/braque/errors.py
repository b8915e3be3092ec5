"""Error types raised or reported by the client.

Configuration errors are raised synchronously while a client is being built.
Everything else is reported through the call result and the caller's callback.
"""

import json


class BraqueError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code

    @property
    def data(self):
        """The message decoded as JSON when possible, else the raw message."""
        try:
            return json.loads(self.message)
        except (TypeError, ValueError):
            return self.message


class ConfigurationError(BraqueError):
    """Route table, handler registry or auth options are inconsistent."""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class ValidationError(BraqueError):
    """A message failed parameter validation; never reaches the transport."""

    def __init__(self, message: str, param: str | None = None):
        super().__init__(message, code=400)
        self.param = param


class HttpError(BraqueError):
    """The server answered with an error status. `message` is the raw body."""


class NotFound(HttpError):
    def __init__(self, message: str):
        super().__init__(message, code=404)


class InternalServerError(HttpError):
    def __init__(self, message: str, response=None):
        super().__init__(message, code=500)
        self.response = response


class TransportError(BraqueError):
    """Connection-level failure reported by the transport."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error
