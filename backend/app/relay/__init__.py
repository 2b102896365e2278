from backend.app.relay.guard import RelayRequestError
from backend.app.relay.upstream import UpstreamError, UpstreamUnavailableError, generate_text

__all__ = ["RelayRequestError", "UpstreamError", "UpstreamUnavailableError", "generate_text"]
