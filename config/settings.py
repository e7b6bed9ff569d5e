# config/settings.py
import os
import sys
from typing import Optional
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(..., validation_alias="APP_ENV")
    REDIS_URL: str = Field(..., validation_alias="REDIS_URL")

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(default="*", validation_alias="ALLOWED_ORIGIN")
    RATE_LIMIT_TIMES: int = Field(default=10, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Secrets
    CRON_SECRET: str = Field(..., validation_alias="CRON_SECRET")
    GITHUB_TOKEN: str = Field(..., validation_alias="GITHUB_TOKEN")
    ANTHROPIC_API_KEY: Optional[str] = Field(
        default=None, validation_alias="ANTHROPIC_API_KEY"
    )

    # Repository provider
    GITHUB_API_URL: str = "https://api.github.com"
    FETCH_MAX_ATTEMPTS: int = Field(default=5, validation_alias="FETCH_MAX_ATTEMPTS")
    FETCH_BACKOFF_SECONDS: float = Field(
        default=1.0, validation_alias="FETCH_BACKOFF_SECONDS"
    )
    FETCH_TIMEOUT_SECONDS: float = Field(
        default=30.0, validation_alias="FETCH_TIMEOUT_SECONDS"
    )

    # Tree traversal guards
    MAX_TREE_DEPTH: int = Field(default=32, validation_alias="MAX_TREE_DEPTH")
    MAX_TREE_NODES: int = Field(default=20_000, validation_alias="MAX_TREE_NODES")

    # Scheduling
    STALE_JOB_SECONDS: int = Field(default=6 * 60, validation_alias="STALE_JOB_SECONDS")
    PROCESS_BATCH_LIMIT: int = Field(default=50, validation_alias="PROCESS_BATCH_LIMIT")

    # Artifacts
    ARTIFACT_DIR: str = Field(default="artifacts", validation_alias="ARTIFACT_DIR")

    # Anthropic Settings
    ANTHROPIC_API_URL: str = "https://api.anthropic.com/v1/messages"
    ANTHROPIC_MODEL: str = Field(
        default="claude-3-5-haiku-latest", validation_alias="ANTHROPIC_MODEL"
    )
    ANTHROPIC_VERSION: str = "2023-06-01"
    SUMMARY_RATE_WINDOW_MS: int = Field(
        default=1000, validation_alias="SUMMARY_RATE_WINDOW_MS"
    )

    # Logging knobs
    LOGGER_NAME: str = "repo-indexer"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts
    SUMMARY_SYSTEM_PROMPT: str = (
        "You are a helpful repository assistant. Be concise but insightful.\n"
        "Given a single source file, summarize its purpose for a working web developer:\n"
        "- what the file is for and where it fits in the project\n"
        "- the functions, classes, components or UI elements it defines\n"
        "- notable dependencies or side effects\n"
        "Answer in plain prose, at most a short paragraph. No code fences."
    )


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
