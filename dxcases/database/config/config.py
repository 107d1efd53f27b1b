"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- `SECRET_KEY` is required; a missing value raises a validation error at import time.
- `OPENAI_API_KEY` may be empty: the service still starts, but every AI-backed
  endpoint answers 500 until a key is provided.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from dxcases.database.config.config import settings

model = settings.OPEN_AI_MODEL
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # AI services
    OPENAI_API_KEY: str = Field("", description="API key for the completion, image and moderation endpoints.")
    OPEN_AI_MODEL: str = Field("gpt-4o", description="Chat model used for extraction, summaries and tags.")
    OPEN_AI_TEMPERATURE: float = Field(0.7, description="Sampling temperature for chat completions.")
    IMAGE_MODEL: str = Field("dall-e-3", description="Image synthesis model.")
    IMAGE_SIZE: str = Field("1024x1024", description="Size of generated illustrations.")
    IMAGE_QUALITY: str = Field("standard", description="Quality setting for generated illustrations.")

    # Database
    DATABASE_URL: Optional[str] = Field(None, description="Full SQLAlchemy URL; overrides the DB_* parts when set.")
    DB_DRIVER_NAME: str = Field("postgresql", description="Database driver (e.g., `postgresql`, `mysql`, `sqlite`).")
    DB_USERNAME: Optional[str] = Field(None, description="Database username credential.")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password credential.")
    DB_HOST: Optional[str] = Field(None, description="Hostname or IP address of the database server.")
    DB_DATABASE_NAME: Optional[str] = Field(None, description="Name of the application's database.")

    # Web
    FRONTEND_URL: str = Field("http://localhost:3000", description="Base URL of the frontend client application.")
    FRONTEND_DIST_DIR: str = Field("frontend/dist", description="Directory of the built frontend, served when present.")
    INIT_MODE: str = Field("runtime", description="`runtime` creates tables and preloads the completion client at startup.")

    # Admin authentication
    SECRET_KEY: str = Field(..., description="Secret key for signing admin tokens.")
    ALGORITHM: str = Field("HS256", description="JWT signing algorithm.")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60, description="Duration (in minutes) before admin tokens expire.")
    ADMIN_USERNAME: Optional[str] = Field(None, description="Username of the back-office administrator.")
    ADMIN_PASSWORD_HASH: Optional[str] = Field(None, description="bcrypt hash of the administrator password.")

    # Conversation policy
    CONVERSATION_TURN_THRESHOLD: int = Field(3, description="User turns before the assistant asks for suggestions.")
    SUGGESTION_TURN_LIMIT: int = Field(8, description="User turns after which a suggestion phase completes anyway (0 disables).")

    # Gallery
    CASES_PER_PAGE: int = Field(12, description="Default page size of the public gallery.")
    MAX_CASES_PER_PAGE: int = Field(100, description="Upper bound accepted for `per_page`.")


settings = Settings()
"""Defines a Settings object that contains the contents of the environment / .env file"""
