"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration — reads from environment / .env file."""

    environment: str = "development"

    # History storage
    history_backend: str = "cookie"             # cookie | redis
    history_cookie_name: str = "searchHistory"
    history_session_cookie_name: str = "historySession"
    history_cookie_http_only: bool = True
    history_max_entries: int = 50               # cookie backend only fits ~15-20 entries in 4 KB
    history_ttl_seconds: int = 604800           # 7 days

    # Redis (key-value history backend)
    redis_url: str = "redis://localhost:6379"

    # Hyper3D Rodin
    rodin_api_key: str = ""
    rodin_base_url: str = "https://hyperhuman.deemos.com/api/v2"
    rodin_timeout_seconds: int = 30

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "*"
    rate_limit_per_minute: int = 10
    trust_proxy: bool = False                   # honour X-Forwarded-For

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def has_rodin_key(self) -> bool:
        return bool(self.rodin_api_key)

    @property
    def is_demo_mode(self) -> bool:
        return not self.has_rodin_key

    @property
    def cookie_secure(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origins(self) -> list[str]:
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",")]


settings = Settings()
