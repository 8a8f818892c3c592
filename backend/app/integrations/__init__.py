"""External service integrations for the studio platform."""

from .line_client import LineApiError, LineClient

__all__ = ["LineApiError", "LineClient"]
