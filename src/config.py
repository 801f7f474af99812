"""
Second Brain — Centralized configuration.

Loads all settings from .env and validates required keys.
Settings are loaded once by the entry point and handed to create_app();
no other module reads the environment directly.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # LLM: provider-agnostic (anthropic, gemini, openai, cohere)
    LLM_PROVIDER: str = "anthropic"
    LLM_MODEL: str = ""          # empty → smart default per provider
    LLM_API_KEY: str

    # Google Maps Distance Matrix, optional (travel time for tasks)
    GOOGLE_MAPS_API_KEY: str = ""

    # SQLite
    DATABASE_PATH: str = "data/second_brain.db"

    # Sessions: bearer token → user id
    API_TOKENS: dict[str, str] = {}

    # Local time used when resolving "today" / "tomorrow" in chat updates
    TIMEZONE: str = "UTC"

    # HTTP server
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    @field_validator("API_TOKENS", mode="before")
    @classmethod
    def parse_tokens(cls, v: str | dict[str, str]) -> dict[str, str]:
        if isinstance(v, dict):
            return v
        tokens: dict[str, str] = {}
        if isinstance(v, str) and v.strip():
            for pair in v.split(","):
                if not pair.strip():
                    continue
                token, sep, user_id = pair.strip().partition(":")
                if not sep or not token or not user_id:
                    raise ValueError(f"API_TOKENS entry must be 'token:user_id', got {pair!r}")
                tokens[token.strip()] = user_id.strip()
        return tokens

    @field_validator("PORT", mode="before")
    @classmethod
    def parse_port(cls, v: str | int) -> int:
        return int(v)


def load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    llm_api_key = os.getenv("LLM_API_KEY", "")

    if not llm_api_key or llm_api_key.startswith("your-"):
        print("ERROR: LLM_API_KEY is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        LLM_PROVIDER=os.getenv("LLM_PROVIDER", "anthropic"),
        LLM_MODEL=os.getenv("LLM_MODEL", ""),
        LLM_API_KEY=llm_api_key,
        GOOGLE_MAPS_API_KEY=os.getenv("GOOGLE_MAPS_API_KEY", ""),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/second_brain.db"),
        API_TOKENS=os.getenv("API_TOKENS", ""),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        HOST=os.getenv("HOST", "127.0.0.1"),
        PORT=os.getenv("PORT", "8000"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )
