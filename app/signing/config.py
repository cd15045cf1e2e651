from pydantic_settings import BaseSettings, SettingsConfigDict


class SigningSettings(BaseSettings):
    """Signing client configuration, read from SIGNING_* environment variables."""
    model_config = SettingsConfigDict(env_prefix="SIGNING_", env_file=".env", extra="ignore")

    API_URL: str = "http://localhost:8008"
    IP_ECHO_URL: str = "https://api.ipify.org?format=json"
    # No client-side timeout unless one is configured
    REQUEST_TIMEOUT: float | None = None
