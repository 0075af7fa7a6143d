"""Configuration management for the Forum Shield service.

This module defines the Pydantic settings used throughout the application.
It handles environment variable loading (including a `.env` file) and
validation.
"""

from typing import List

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables.

    Attributes:
        PROJECT_NAME (str): The name of the application.
        MONGO_URI (SecretStr): The full connection string for MongoDB.
        MONGO_DB_NAME (str): The specific database name to use.
        FILTER_WORDS_PATH (str): The banned-term list file, one term per line.
        POLICY_PATH (str): The YAML policy file (markup allowlist, limits).
        SERVER_HOST (str): Interface uvicorn binds to.
        SERVER_PORT (int): Port uvicorn listens on.
        LOG_LEVEL (str): Root logging level.
        CORS_ORIGINS (List[str]): Origins allowed by the CORS middleware.
    """
    PROJECT_NAME: str = "Forum Shield"

    # Infrastructure
    MONGO_URI: SecretStr = SecretStr("mongodb://localhost:27017")
    MONGO_DB_NAME: str = "forum_shield"

    # Content safety
    FILTER_WORDS_PATH: str = "filter.txt"
    POLICY_PATH: str = "shield.yaml"

    SERVER_HOST: str = "127.0.0.1"
    SERVER_PORT: int = 3000

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # This allows loading from a .env file automatically
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


settings = Settings()
