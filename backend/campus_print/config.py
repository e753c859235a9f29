"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded in handlers)
    - get_settings() is cached (lru_cache) — single instance per process
    - The lifespan builds services from one Settings object; request handlers
      never read the environment themselves

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box locally
    - Rates are Decimal: env strings like "2.50" parse exactly
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from campus_print.core.domain_types import BlobBackend


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://campus:campus@db:5432/campus_print"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Pricing
    bw_rate_per_page: Decimal = Field(Decimal("2"), ge=0)
    color_rate_per_page: Decimal = Field(Decimal("10"), ge=0)
    service_fee: Decimal = Field(Decimal("5"), ge=0)

    # Intake
    max_file_size_bytes: int = Field(20 * 1024 * 1024, gt=0)
    max_document_pages: int = Field(2000, gt=0)
    upload_timeout_seconds: float = Field(30.0, gt=0)
    upload_workers: int = Field(4, ge=1)

    # Orders
    max_code_gen_attempts: int = Field(10, ge=1)
    reject_out_of_range_pages: bool = False

    # Blob storage
    blob_backend: BlobBackend = BlobBackend.LOCAL
    blob_root: str = "var/blobs"
    blob_namespace: str = "campus_print"
    public_base_url: str = "http://localhost:8000"
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""

    # Admin
    admin_username: str = "admin"
    admin_password: str = "change-me"
    admin_token_secret: str = "dev-admin-token-secret-change-me-0000"
    admin_token_ttl_seconds: int = Field(86_400, gt=0)

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
