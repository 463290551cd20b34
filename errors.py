"""
Error taxonomy for the trading-state layer. Each error knows the HTTP status
it surfaces as; the message is returned to the caller verbatim.
"""

from __future__ import annotations


class StateError(Exception):
    """Base class for every error the state layer reports to a caller."""
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(StateError):
    """Malformed or missing required input."""
    status_code = 400


class NotFoundError(StateError):
    """Unknown resource name."""
    status_code = 404


class MethodError(StateError):
    """Unsupported HTTP method."""
    status_code = 405

    def __init__(self, message: str = "Method not allowed") -> None:
        super().__init__(message)


class StoreError(StateError):
    """Remote store rejected the operation or could not be reached."""
    status_code = 500


class ConfigurationError(StateError):
    """Store credentials or backend selection missing at startup."""
    status_code = 500
