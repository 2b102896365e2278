from .client import RELAY_ROUTE, GatewayClient, ModelGateway
from .errors import GatewayError, MalformedResponseError, TransportError

__all__ = [
    "RELAY_ROUTE",
    "GatewayClient",
    "ModelGateway",
    "GatewayError",
    "MalformedResponseError",
    "TransportError",
]
