# pkgregistry/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # General
    ENV: str = "dev"
    APP_NAME: str = "Package Registry"

    # Metadata store
    METADATA_BACKEND: str = "memory"               # memory | sql
    DB_URL: str = "sqlite:///./data/registry.db"
    SCAN_PAGE_SIZE: int = 100

    # Blob store
    STORAGE_BACKEND: str = "memory"                # memory | local | s3
    BLOB_ROOT: str = "./data/blobs"
    S3_BUCKET: str = ""
    AWS_REGION: str = "us-east-1"

    # Secrets / upstream sources
    SECRET_BACKEND: str = "settings"               # settings | aws
    GITHUB_TOKEN: str = ""
    GITHUB_TOKEN_SECRET_NAME: str = "GITHUB_TOKEN"
    GITHUB_API_URL: str = "https://api.github.com"
    NPM_REGISTRY_URL: str = "https://registry.npmjs.org"
    FETCH_TIMEOUT_S: float = 30.0
    MAX_REDIRECTS: int = 1

    # Ingestion rules
    REQUIRE_JSPROGRAM_ON_PUBLISH: bool = False
    REQUIRE_JSPROGRAM_ON_UPDATE: bool = False

    # Query limits
    MAX_QUERY_RESULTS: int = 100
    MAX_REGEX_LENGTH: int = 100

    # Reset
    RESET_WORKERS: int = 4

    # Auth
    JWT_SECRET: str = "dev-secret-please-change-before-deploying"
    JWT_ISSUER: str = "pkgregistry"
    JWT_AUDIENCE: str = "pkgregistry-users"
    JWT_EXPIRE_HOURS: int = 10
    ADMIN_USERNAME: str = "registryadmin"
    ADMIN_PASSWORD: str = "ChangeMe!123"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

_settings: Settings | None = None

def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
