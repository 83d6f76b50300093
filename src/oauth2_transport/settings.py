from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from oauth2_transport.errors import ConfigError
from oauth2_transport.shared.auth import OUT_OF_BAND_REDIRECT, Config


class OAuth2Settings(BaseSettings):
    """OAuth2 client registration read from OAUTH2_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="OAUTH2_", env_file=".env", extra="ignore")

    client_id: str = ""
    client_secret: SecretStr = SecretStr("")
    scope: str | None = None
    auth_url: str = ""
    token_url: str = ""
    redirect_url: str = OUT_OF_BAND_REDIRECT

    def to_config(self) -> Config:
        missing = [
            f"OAUTH2_{name.upper()}" for name in ("client_id", "auth_url", "token_url") if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")

        return Config(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=self.scope,
            auth_url=self.auth_url,
            token_url=self.token_url,
            redirect_url=self.redirect_url,
        )
