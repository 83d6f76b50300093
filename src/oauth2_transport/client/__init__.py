from .auth import Transport, TransportState
from .exchange import TokenExchanger

__all__ = ["TokenExchanger", "Transport", "TransportState"]
