"""Application configuration using Pydantic Settings."""

from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# NOTE: logfire.configure() is not called here. Logfire is configured once at
# application startup (main.py via observability/logfire_config.py) or in the
# pytest hooks (conftest.py).


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are validated at startup to ensure the application
    has the required configuration before it starts.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Settings
    app_name: str = Field(default="AdminKit", description="Display name used in emails and merge tags")
    app_url: str = Field(default="http://localhost:8000", description="Public base URL of the application")
    environment: str = Field(default="development", description="Environment: development, staging, production")
    debug: bool = Field(default=False, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # CORS Settings
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    # Database Configuration
    # Either a full SQLAlchemy URL or the individual Postgres parts.
    db_url: Optional[str] = Field(default=None, description="Full SQLAlchemy database URL (overrides db_* parts)")
    db_user: str = Field(default="", description="Database user")
    db_password: str = Field(default="", description="Database password")
    db_host: str = Field(default="", description="Database host")
    db_port: int = Field(default=5432, description="Database port")
    db_name: str = Field(default="adminkit", description="Database name")
    db_sslmode: str = Field(default="prefer", description="Postgres sslmode")

    # Localisation
    default_locale: str = Field(default="en_US", description="Default locale for email templates")
    fallback_locale: str = Field(default="en_US", description="Locale used when a translation is missing")
    supported_locales: str = Field(default="en_US,fr_FR", description="Comma-separated supported locales")

    # DataTable / pagination
    datatable_default_per_page: int = Field(default=12, description="Initial rows per page for datatables")
    datatable_per_page_options: str = Field(
        default="12,25,50,100,200",
        description="Comma-separated allowed rows-per-page values"
    )
    pagination_default_limit: int = Field(default=20, description="Default page size for plain list endpoints")
    pagination_max_limit: int = Field(default=100, description="Maximum page size for plain list endpoints")

    # Authorization
    super_admin_role: str = Field(default="super_admin", description="Role that bypasses permission checks")
    token_bytes: int = Field(default=32, description="Entropy of issued API tokens")
    password_iterations: int = Field(default=260_000, description="PBKDF2 iterations for password hashes")

    # Mail defaults (used when no MailSettings row applies)
    mail_provider: str = Field(default="smtp", description="Default mail provider")
    mail_host: str = Field(default="localhost", description="Default SMTP host")
    mail_port: int = Field(default=1025, description="Default SMTP port")
    mail_username: str = Field(default="", description="Default SMTP username")
    mail_password: str = Field(default="", description="Default SMTP password")
    mail_encryption: Optional[str] = Field(default=None, description="Default SMTP encryption (tls, ssl)")
    mail_from_address: str = Field(default="no-reply@example.com", description="Default sender address")
    mail_from_name: str = Field(default="AdminKit", description="Default sender name")

    # Notifications
    notifications_prune_after_days: int = Field(default=30, description="Read notifications older than this are pruned")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Observability
    logfire_token: str = Field(default="", description="Logfire observability token")

    @field_validator("allowed_origins")
    @classmethod
    def parse_origins(cls, v: str) -> List[str]:
        """Parse comma-separated origins into a list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("datatable_per_page_options")
    @classmethod
    def parse_per_page_options(cls, v: str) -> List[int]:
        """Parse comma-separated per-page options into a sorted list of ints."""
        if isinstance(v, str):
            values = sorted({int(part) for part in v.split(",") if part.strip()})
            if not values:
                raise ValueError("At least one per-page option is required")
            return values
        return v

    @field_validator("supported_locales")
    @classmethod
    def parse_locales(cls, v: str) -> List[str]:
        """Parse comma-separated locales into a list."""
        if isinstance(v, str):
            return [locale.strip() for locale in v.split(",") if locale.strip()]
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment.lower() == "production"

    @property
    def database_url(self) -> str:
        """
        Construct the SQLAlchemy database URL.

        An explicit DB_URL wins. Otherwise a Postgres URL (psycopg2 driver) is
        built when DB_HOST is set, and a local SQLite file is used as the
        development fallback.
        """
        if self.db_url:
            return self.db_url
        if self.db_host.strip():
            return (
                f"postgresql+psycopg2://{self.db_user}:{self.db_password}@"
                f"{self.db_host}:{self.db_port}/{self.db_name}?sslmode={self.db_sslmode}"
            )
        return "sqlite:///./adminkit.db"


# Create a singleton instance
settings = Settings()


def get_settings() -> "Settings":
    """Return the singleton settings instance."""
    return settings
