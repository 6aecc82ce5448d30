"""Configuration management for the Offerte Engine."""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Separator between the human-readable header and the prompt body
PROMPT_HEADER_SEPARATOR = "---"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Anthropic configuration (checked per request, not at startup)
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key")

    # Environment
    OFFERTE_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")
    OFFERTE_LOG_LEVEL: str | None = Field(
        default=None, description="Log level override (DEBUG, INFO, ...); defaults by environment"
    )

    # Proposal generation
    OFFERTE_MODEL: str = Field(
        default="claude-sonnet-4-5-20250929", description="Model for proposal generation"
    )
    OFFERTE_MAX_TOKENS: int = Field(
        default=3000, description="Output token limit for one proposal generation"
    )
    OFFERTE_PROGRESS_EVERY: int = Field(
        default=15, description="Emit a progress event every N text deltas", ge=1
    )
    OFFERTE_STREAM_TIMEOUT_SECONDS: float | None = Field(
        default=180.0, description="Upper bound for one upstream generation call"
    )

    # Prompt and output locations
    SYSTEM_PROMPT_PATH: str = Field(
        default=str(PROJECT_ROOT / "prompt" / "system-prompt.md"),
        description="Markdown file holding the system prompt below a '---' header",
    )
    PDF_OUTPUT_DIR: str = Field(
        default=str(PROJECT_ROOT / "output"), description="Default CLI output directory"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance
    """
    return Settings()


def parse_system_prompt(raw: str) -> str:
    """
    Strip the header above the first '---' separator from a prompt file.

    Files without a separator are used verbatim.

    Args:
        raw: Full file contents

    Returns:
        Prompt body
    """
    parts = raw.split(PROMPT_HEADER_SEPARATOR)
    if len(parts) == 1:
        return raw.strip()
    return PROMPT_HEADER_SEPARATOR.join(parts[1:]).strip()


@lru_cache
def get_system_prompt() -> str | None:
    """
    Load the system prompt once per process.

    Returns:
        Prompt text, or None when the file is missing or unreadable
    """
    path = Path(get_settings().SYSTEM_PROMPT_PATH)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return None
    return parse_system_prompt(raw) or None
