from .client.auth import Transport, TransportState
from .client.exchange import TokenExchanger
from .errors import ConfigError, ExchangeError, OAuthError, RefreshError, Unauthenticated
from .shared.auth import Config, Token

__all__ = [
    "Config",
    "ConfigError",
    "ExchangeError",
    "OAuthError",
    "RefreshError",
    "Token",
    "TokenExchanger",
    "Transport",
    "TransportState",
    "Unauthenticated",
]
