class GatewayError(Exception):
    """Raised when the relay answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"relay returned HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class TransportError(Exception):
    """Raised when the relay could not be reached or its reply could not be read."""


class MalformedResponseError(TransportError):
    """Raised when a successful relay reply lacks a string `text` field."""


__all__ = ["GatewayError", "TransportError", "MalformedResponseError"]
