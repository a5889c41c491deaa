# src/crudforge/core/errors.py
"""Error taxonomy shared by the parser, compiler, provider and routes."""


class RestError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ParseError(RestError):
    """Malformed query string or body input. Never retried."""

    status_code = 400


class NotFound(RestError):
    """No row matches the requested id."""

    status_code = 404

    def __init__(self, message: str = "record not found"):
        super().__init__(message)


class NotDeletable(RestError):
    """A deletability check or the deletion policy vetoed the delete."""

    status_code = 409

    def __init__(self, message: str = "cannot delete record"):
        super().__init__(message)


class StoreError(RestError):
    """Any other persistence failure."""

    status_code = 500
