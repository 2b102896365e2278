from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from backend.app.gateway.errors import GatewayError, MalformedResponseError, TransportError
from backend.app.journal.errors import ValidationError


class BannerKind(str, Enum):
    INPUT = "INPUT"
    CONNECTION = "CONNECTION"
    SERVICE = "SERVICE"


@dataclass(frozen=True)
class Banner:
    kind: BannerKind
    message: str
    dismissible: bool = True


CONNECTION_MESSAGE = "We couldn't reach the server. Check your connection and try again."
SERVICE_MESSAGE = "Something went wrong while thinking of the next question. Please try again."


def banner_for(exc: BaseException) -> Optional[Banner]:
    """Banner the UI shows for ``exc``; None when the error is absorbed with a fallback."""
    if isinstance(exc, ValidationError):
        return Banner(kind=BannerKind.INPUT, message=exc.message)
    if isinstance(exc, MalformedResponseError):
        return None
    if isinstance(exc, TransportError):
        return Banner(kind=BannerKind.CONNECTION, message=CONNECTION_MESSAGE)
    if isinstance(exc, GatewayError):
        # upstream detail stays in the logs
        return Banner(kind=BannerKind.SERVICE, message=SERVICE_MESSAGE)
    return None


__all__ = ["Banner", "BannerKind", "CONNECTION_MESSAGE", "SERVICE_MESSAGE", "banner_for"]
