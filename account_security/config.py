"""
Configuration management for the account security service.

Loads and validates environment variables for the application.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    """

    # Service Configuration
    APP_NAME: str = "Account Security Service"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8020

    # Supabase Configuration
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_KEY: str = ""
    ACCOUNT_TABLE: str = "user_profiles"
    ACCOUNT_IDENTIFIER_COLUMN: str = "email"
    SECURITY_TABLE: str = "user_security"
    SECURITY_EVENT_RPC: str = "log_security_event"

    # Use dictionaries instead of Supabase (local development and tests)
    USE_IN_MEMORY_STORE: bool = False

    # Login attempt governor
    MAX_FAILED_ATTEMPTS: int = 5
    INITIAL_LOCKOUT_MINUTES: int = 5
    MAX_LOCKOUT_MINUTES: int = 60
    ATTEMPT_WINDOW_MINUTES: int = 15
    LOCKOUT_WARNING_THRESHOLD: int = 2

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are present."""
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_KEY)


# Global settings instance
settings = Settings()
