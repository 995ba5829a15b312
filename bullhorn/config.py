"""
Bullhorn configuration.

Loads OAuth client settings and session policy from environment variables.
"""
import os
from dataclasses import dataclass
from typing import Optional

# Bullhorn REST sessions are re-established after this age.
SESSION_VALIDITY_SECONDS = 8 * 60 * 60


def parse_int_env(key: str, default: int) -> int:
    """
    Parse integer environment variable, stripping comments and whitespace.

    Handles cases like:
    - "28800  # eight hours" -> 28800
    - "28800" -> 28800
    - None -> default
    """
    value = os.environ.get(key)
    if not value:
        return default

    if "#" in value:
        value = value.split("#")[0]

    value = value.strip()

    if not value:
        return default

    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class BullhornConfig:
    """Bullhorn OAuth + REST configuration."""

    client_id: str
    client_secret: str
    redirect_uri: str

    auth_base_url: str = "https://auth.bullhornstaffing.com/oauth"
    login_url: str = "https://rest.bullhornstaffing.com/rest-services/login"

    timeout_seconds: int = 10

    @property
    def authorize_url(self) -> str:
        return f"{self.auth_base_url}/authorize"

    @property
    def token_url(self) -> str:
        return f"{self.auth_base_url}/token"

    @classmethod
    def from_env(cls) -> "BullhornConfig":
        """Load configuration from environment variables."""
        return cls(
            client_id=os.environ["BULLHORN_CLIENT_ID"],
            client_secret=os.environ["BULLHORN_CLIENT_SECRET"],
            redirect_uri=os.environ["BULLHORN_REDIRECT_URI"],
            auth_base_url=os.environ.get("BULLHORN_AUTH_URL", "https://auth.bullhornstaffing.com/oauth"),
            login_url=os.environ.get("BULLHORN_LOGIN_URL", "https://rest.bullhornstaffing.com/rest-services/login"),
            timeout_seconds=parse_int_env("BULLHORN_TIMEOUT_SECONDS", default=10),
        )


def get_config() -> BullhornConfig:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = BullhornConfig.from_env()
    return _config


# Global config instance (lazy loaded)
_config: Optional[BullhornConfig] = None
