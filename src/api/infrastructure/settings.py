"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from enum import StrEnum
from functools import lru_cache

from pydantic import Field, HttpUrl, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        NEUROSHIELD_DB_HOST: Database host (default: localhost)
        NEUROSHIELD_DB_PORT: Database port (default: 5432)
        NEUROSHIELD_DB_DATABASE: Database name (default: neuroshield)
        NEUROSHIELD_DB_USERNAME: Database user (default: neuroshield)
        NEUROSHIELD_DB_PASSWORD: Database password (required in production)
        NEUROSHIELD_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        NEUROSHIELD_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
    """

    model_config = SettingsConfigDict(
        env_prefix="NEUROSHIELD_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="neuroshield", description="Database name")
    username: str = Field(default="neuroshield", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class OIDCSettings(BaseSettings):
    """OIDC provider settings for key owner authentication.

    Environment variables:
        NEUROSHIELD_OIDC_ISSUER_URL: Issuer URL of the identity provider
        NEUROSHIELD_OIDC_AUDIENCE: Expected audience claim
        NEUROSHIELD_OIDC_USER_ID_CLAIM: Claim holding the user ID (default: sub)
        NEUROSHIELD_OIDC_ADMIN_CLAIM: Claim checked for the admin role (default: role)
        NEUROSHIELD_OIDC_ADMIN_CLAIM_VALUE: Value marking an admin (default: admin)
    """

    model_config = SettingsConfigDict(
        env_prefix="NEUROSHIELD_OIDC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    issuer_url: str = Field(
        default="http://localhost:8080/realms/neuroshield",
        description="OIDC issuer URL",
    )
    audience: str = Field(default="neuroshield-api", description="Expected audience")
    user_id_claim: str = Field(default="sub", description="Claim holding the user ID")
    admin_claim: str = Field(
        default="role", description="Claim checked for the admin role"
    )
    admin_claim_value: str = Field(
        default="admin", description="Claim value that marks an administrator"
    )


class APIKeyStoreBackend(StrEnum):
    """Where API key records are kept."""

    POSTGRES = "postgres"
    MEMORY = "memory"


class APIKeySettings(BaseSettings):
    """API key issuance and validation settings.

    Environment variables:
        NEUROSHIELD_API_KEYS_STORE_BACKEND: postgres or memory (default: postgres)
        NEUROSHIELD_API_KEYS_MAX_ACTIVE_KEYS_PER_OWNER: Cap for non-admins (default: 10)
        NEUROSHIELD_API_KEYS_STORE_RETRY_ATTEMPTS: Validation attempts (default: 3)
        NEUROSHIELD_API_KEYS_STORE_RETRY_BACKOFF_SECONDS: Base back-off (default: 0.05)

    The memory backend is volatile and per process. Use it for development
    and single-instance deployments only.
    """

    model_config = SettingsConfigDict(
        env_prefix="NEUROSHIELD_API_KEYS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    store_backend: APIKeyStoreBackend = Field(
        default=APIKeyStoreBackend.POSTGRES,
        description="API key store backend",
    )
    max_active_keys_per_owner: int = Field(
        default=10,
        description="Maximum active keys for a non-admin owner",
        ge=1,
    )
    store_retry_attempts: int = Field(
        default=3,
        description="Attempts made when the key store is unavailable",
        ge=1,
        le=10,
    )
    store_retry_backoff_seconds: float = Field(
        default=0.05,
        description="Base delay between attempts, grows linearly",
        ge=0,
        le=5,
    )


class ScannerSettings(BaseSettings):
    """Remote scanner settings.

    Environment variables:
        NEUROSHIELD_SCANNER_EMBER_API_URL: Base URL of the file inference service
        NEUROSHIELD_SCANNER_FILE_SCAN_TIMEOUT_SECONDS: File scan timeout (default: 300)
        NEUROSHIELD_SCANNER_VIRUSTOTAL_API_URL: VirusTotal API base URL
        NEUROSHIELD_SCANNER_VIRUSTOTAL_API_KEY: VirusTotal API key (URL scans disabled if unset)
        NEUROSHIELD_SCANNER_URL_POLL_INTERVAL_SECONDS: Analysis poll interval (default: 10)
        NEUROSHIELD_SCANNER_URL_MAX_POLLS: Maximum analysis polls (default: 6)
    """

    model_config = SettingsConfigDict(
        env_prefix="NEUROSHIELD_SCANNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ember_api_url: HttpUrl = Field(
        default=HttpUrl("http://localhost:8000"),
        description="Base URL of the file inference service",
    )
    file_scan_timeout_seconds: float = Field(default=300.0, gt=0)
    virustotal_api_url: HttpUrl = Field(
        default=HttpUrl("https://www.virustotal.com/api/v3"),
        description="VirusTotal API base URL",
    )
    virustotal_api_key: SecretStr | None = Field(
        default=None,
        description="VirusTotal API key",
    )
    url_poll_interval_seconds: float = Field(default=10.0, ge=0)
    url_max_polls: int = Field(default=6, ge=1, le=60)


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="NEUROSHIELD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="NeuroShield API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def api_keys(self) -> APIKeySettings:
        """Get API key settings."""
        return get_api_key_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_oidc_settings() -> OIDCSettings:
    """Get cached OIDC settings."""
    return OIDCSettings()


@lru_cache
def get_api_key_settings() -> APIKeySettings:
    """Get cached API key settings."""
    return APIKeySettings()


@lru_cache
def get_scanner_settings() -> ScannerSettings:
    """Get cached scanner settings."""
    return ScannerSettings()
