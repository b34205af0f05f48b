"""Service configuration, loaded once from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv


class ConfigError(RuntimeError):
    """Required configuration is missing or malformed."""


@dataclass(frozen=True)
class ServiceConfig:
    """Immutable settings shared by the API server and the admin CLI."""

    owner_wallet: str
    admin_secret: str
    tonapi_key: str = ""
    tonapi_base_url: str = "https://tonapi.io"
    redis_url: str = "redis://localhost:6379/0"
    host: str = "0.0.0.0"
    port: int = 3000
    static_dir: str = "web"
    log_level: str = "INFO"

    @property
    def masked_redis_url(self) -> str:
        """Redis URL with any password hidden, for logs."""
        if "@" not in self.redis_url:
            return self.redis_url
        scheme, _, rest = self.redis_url.partition("://")
        return f"{scheme}://*****@{rest.split('@', 1)[1]}"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ServiceConfig":
        """
        Build from environment variables (``.env`` is honoured).

        Raises:
            ConfigError: when OWNER_TON_WALLET or ADMIN_SECRET is missing,
                or PORT is not an integer
        """
        if env is None:
            load_dotenv()
            env = os.environ

        missing = [name for name in ("OWNER_TON_WALLET", "ADMIN_SECRET") if not env.get(name)]
        if missing:
            raise ConfigError(f"Missing required environment: {', '.join(missing)}")

        redis_url = env.get("REDIS_URL") or (
            f"redis://{env.get('REDIS_HOST', 'localhost')}:{env.get('REDIS_PORT', '6379')}"
            f"/{env.get('REDIS_DB', '0')}"
        )

        try:
            port = int(env.get("PORT", "3000"))
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got {env.get('PORT')!r}")

        return cls(
            owner_wallet=env["OWNER_TON_WALLET"],
            admin_secret=env["ADMIN_SECRET"],
            tonapi_key=env.get("TONAPI_KEY", ""),
            tonapi_base_url=env.get("TONAPI_BASE_URL") or "https://tonapi.io",
            redis_url=redis_url,
            host=env.get("HOST", "0.0.0.0"),
            port=port,
            static_dir=env.get("STATIC_DIR", "web"),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
