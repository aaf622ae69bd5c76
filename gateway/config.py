from pydantic_settings import BaseSettings

from gateway.errors import ConfigurationError


class Settings(BaseSettings):
    # MT5 Web API
    mt5_api_url: str = ""
    mt5_api_key: str = ""
    mt5_server_id: str = ""
    mt5_login: str = ""
    mt5_password: str = ""

    # Transport
    mt5_timeout_ms: int = 30000
    mt5_retry_attempts: int = 3
    mt5_retry_delay_ms: int = 1000
    mt5_connection_check_interval_ms: int = 30000
    mt5_ping_timeout_ms: int = 5000

    # Web server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Auth
    jwt_secret: str = "change-this-to-a-random-secret"
    jwt_expiry_hours: int = 168  # 7 days

    # Logging
    log_file: str = "data/gateway.log"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def validate_required(self) -> None:
        """Raise ConfigurationError for the first missing broker setting."""
        for field in ("mt5_api_url", "mt5_api_key", "mt5_server_id", "mt5_login", "mt5_password"):
            if not getattr(self, field):
                raise ConfigurationError(f"Missing required MT5 configuration: {field}")

    @property
    def credentials(self) -> dict[str, str]:
        return {
            "login": self.mt5_login,
            "password": self.mt5_password,
            "server": self.mt5_server_id,
        }


settings = Settings()
