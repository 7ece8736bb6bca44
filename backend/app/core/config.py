"""Application settings and configuration."""

from typing import Literal

from pydantic import Field, model_validator  # type: ignore
from pydantic_settings import BaseSettings, SettingsConfigDict  # type: ignore

DEFAULT_DATABASE_URL = "sqlite:///./quiz_bank.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ENV: Literal["dev", "staging", "prod", "test"] = Field(default="dev")
    PROJECT_NAME: str = Field(default="Quiz Question Bank API")

    # API
    API_PREFIX: str = Field(default="/api")

    # Database
    DATABASE_URL: str = Field(default=DEFAULT_DATABASE_URL)

    # CORS - Accept string or list, will be normalized to list
    CORS_ORIGINS: str | list[str] = Field(default="http://localhost:3000,http://localhost:5173")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")

    # Media store (Cloudinary)
    CLOUDINARY_CLOUD_NAME: str | None = Field(default=None)
    CLOUDINARY_API_KEY: str | None = Field(default=None)
    CLOUDINARY_API_SECRET: str | None = Field(default=None)
    MEDIA_ROOT_FOLDER: str = Field(default="quiz-bank")
    MAX_UPLOAD_BYTES: int = Field(default=5 * 1024 * 1024)  # 5MB per image

    # Bulk import
    IMPORT_MAX_ROWS: int = Field(default=5000)
    IMPORT_MAX_BYTES: int = Field(default=10 * 1024 * 1024)

    @model_validator(mode="before")
    @classmethod
    def parse_cors_origins(cls, data):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(data, dict) and "CORS_ORIGINS" in data:
            cors_origins = data["CORS_ORIGINS"]
            if isinstance(cors_origins, str):
                data["CORS_ORIGINS"] = [
                    origin.strip() for origin in cors_origins.split(",") if origin.strip()
                ]
        return data

    def __init__(self, **kwargs):
        """Validate settings on initialization."""
        super().__init__(**kwargs)
        # Values read from the environment bypass the before-validator
        if isinstance(self.CORS_ORIGINS, str):
            object.__setattr__(
                self,
                "CORS_ORIGINS",
                [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()],
            )
        # Fail fast in production if critical vars are missing
        if self.ENV == "prod":
            if not self.DATABASE_URL or self.DATABASE_URL == DEFAULT_DATABASE_URL:
                raise ValueError("DATABASE_URL must be set in production")
            if not self.cloudinary_configured:
                raise ValueError(
                    "CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET "
                    "must be set in production"
                )

    @property
    def cloudinary_configured(self) -> bool:
        return all(
            [self.CLOUDINARY_CLOUD_NAME, self.CLOUDINARY_API_KEY, self.CLOUDINARY_API_SECRET]
        )

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


# Global settings instance
settings = Settings()
