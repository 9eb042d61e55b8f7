"""Application configuration settings.

This module defines the application-wide settings using Pydantic's BaseSettings.
It allows for loading configurations from environment variables and .env files,
providing type validation and default values.
"""

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Default list of CORS allowed origins
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8000",
    "https://localhost:3000",
    "https://localhost:8000",
    "http://0.0.0.0:8000",
]


class Settings(BaseSettings):
    """Manages application settings, loading them from environment variables or an .env file.

    Attributes:
        aws_access_key_id: Access key for the S3 bucket holding documents and logos.
        aws_secret_access_key: Secret key for the S3 bucket.
        aws_region: Region of the S3 bucket.
        s3_bucket_name: Bucket where source documents, generated documents and logos live.
        s3_public_base_url: Base URL used to build public object URLs. Defaults to the
            virtual-hosted S3 URL of the bucket when unset.
        supabase_url: URL of the Supabase project holding the metadata tables.
        supabase_key: Service key for the Supabase project.
        max_upload_size_mb: Size limit for source document uploads.
        logo_max_size_mb: Size limit for company logo uploads.
        retry_max_retries: Additional attempts after the first failed storage call.
        retry_initial_delay_ms: First backoff delay in milliseconds.
        retry_max_delay_ms: Cap for the backoff delay in milliseconds.
        retry_backoff_multiplier: Factor applied to the delay after every retry.
        generation_delay_seconds: Simulated latency of the text generation step.
        logo_fetch_timeout: Timeout in seconds when downloading the company logo.
        signature_city: City printed before the date in the closing block.
        log_level: Level of the ``peticao`` loggers (storage and retry loggers keep their own).
        cors_allowed_origins: List of allowed origins for CORS.
    """

    aws_access_key_id: str | None = Field(default=None)
    aws_secret_access_key: str | None = Field(default=None)
    aws_region: str = Field(default="sa-east-1")
    s3_bucket_name: str | None = Field(default=None)
    s3_public_base_url: str | None = Field(default=None)

    supabase_url: str | None = Field(default=None)
    supabase_key: str | None = Field(default=None)

    max_upload_size_mb: int = Field(default=50)
    logo_max_size_mb: int = Field(default=5)

    retry_max_retries: int = Field(default=3)
    retry_initial_delay_ms: int = Field(default=1000)
    retry_max_delay_ms: int = Field(default=10000)
    retry_backoff_multiplier: float = Field(default=2.0)

    generation_delay_seconds: float = Field(default=3.0, description="Simulated generation latency in seconds.")
    logo_fetch_timeout: float = Field(default=10.0, description="Logo download timeout in seconds.")
    signature_city: str = Field(default="São Paulo")
    log_level: str = Field(default="DEBUG", description="Level of the application loggers.")

    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),
    )

    model_config = {
        "env_file": ".env",
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",  # Ignore extra fields
    }

    @field_validator("cors_allowed_origins", mode="before")  # type: ignore
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str] | None) -> list[str]:
        """Assembles the list of CORS allowed origins.

        If 'v' is a string, it splits it by commas. If 'v' is already a list,
        it's used directly. Otherwise, returns the default list of origins.
        """
        if isinstance(v, str) and v:
            return [origin.strip() for origin in v.split(",")]
        elif isinstance(v, list):
            return v
        return list(DEFAULT_CORS_ORIGINS)


settings = Settings()
