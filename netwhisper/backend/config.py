"""
backend/config.py

Application configuration via Pydantic Settings.
All values can be overridden with environment variables or a .env file.

Quick start — create a .env file in your project root:
    API_PORT=8080
    INGEST_URL=http://10.0.2.2:8080/api
    SYNC_TIMEOUT_SECONDS=10
    LLM_ENABLED=true
    OLLAMA_URL=http://localhost:11434
"""

from __future__ import annotations

import json
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # API (ingest server)
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    API_PREFIX: str = "/api"
    CORS_ORIGINS: Annotated[list[str], NoDecode] = ["*"]

    # Reporting
    LOGS_DEFAULT_LIMIT: int = 10
    TOP_DESTINATIONS_LIMIT: int = 10

    # Client side
    BUFFER_CAPACITY: int = 100
    INGEST_URL: str = "http://localhost:8080/api"
    SYNC_TIMEOUT_SECONDS: float = 10.0

    # Risk explanations (LLM / Ollama)
    LLM_ENABLED: bool = False
    OLLAMA_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "phi3:3.8b"
    LLM_TIMEOUT_SECONDS: float = 8.0
    LLM_MAX_CALLS_PER_MINUTE: int = 10
    LLM_COOLDOWN_SECONDS: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_origins(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                try:
                    return json.loads(v)
                except ValueError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("BUFFER_CAPACITY")
    @classmethod
    def positive_capacity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("BUFFER_CAPACITY must be at least 1")
        return v


settings = Settings()
