"""Pytest configuration and fixtures."""

import json
import os
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
    os.environ["OFFERTE_ENV"] = "test"

    from offerte.core.config import get_settings, get_system_prompt

    # Modules imported during collection may have cached settings already
    get_settings.cache_clear()
    get_system_prompt.cache_clear()


@pytest.fixture
def example_offerte_data() -> dict:
    """Complete offerte as the model would return it."""
    return json.loads((FIXTURES_DIR / "example_offerte.json").read_text(encoding="utf-8"))


@pytest.fixture
def example_offerte_path() -> Path:
    return FIXTURES_DIR / "example_offerte.json"
