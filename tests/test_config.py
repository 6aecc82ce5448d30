"""Tests for settings and system prompt loading."""

from unittest.mock import MagicMock, patch

import pytest

from offerte.core.config import Settings, get_system_prompt, parse_system_prompt


class TestParseSystemPrompt:
    def test_header_is_dropped(self):
        raw = "# Titel\nUitleg\n\n---\n\nJe bent een assistent.\n"
        assert parse_system_prompt(raw) == "Je bent een assistent."

    def test_later_separators_are_kept(self):
        raw = "kop\n---\ndeel een\n---\ndeel twee"
        assert parse_system_prompt(raw) == "deel een\n---\ndeel twee"

    def test_no_separator_uses_whole_file(self):
        assert parse_system_prompt("  Alleen prompt  ") == "Alleen prompt"


class TestGetSystemPrompt:
    @pytest.fixture(autouse=True)
    def clear_cache(self):
        get_system_prompt.cache_clear()
        yield
        get_system_prompt.cache_clear()

    def test_reads_file(self, tmp_path):
        path = tmp_path / "prompt.md"
        path.write_text("kop\n---\nPrompt tekst", encoding="utf-8")

        with patch("offerte.core.config.get_settings", return_value=MagicMock(SYSTEM_PROMPT_PATH=str(path))):
            assert get_system_prompt() == "Prompt tekst"

    def test_missing_file_returns_none(self, tmp_path):
        settings = MagicMock(SYSTEM_PROMPT_PATH=str(tmp_path / "ontbreekt.md"))
        with patch("offerte.core.config.get_settings", return_value=settings):
            assert get_system_prompt() is None

    def test_bundled_prompt_describes_schema(self):
        prompt = get_system_prompt()
        assert prompt is not None
        assert "offerte_nummer" in prompt
        assert "System prompt" not in prompt


class TestSettings:
    def test_defaults(self, monkeypatch):
        for key in ("OFFERTE_MODEL", "OFFERTE_MAX_TOKENS", "OFFERTE_PROGRESS_EVERY"):
            monkeypatch.delenv(key, raising=False)

        settings = Settings()

        assert settings.OFFERTE_MAX_TOKENS == 3000
        assert settings.OFFERTE_PROGRESS_EVERY == 15
        assert settings.OFFERTE_MODEL.startswith("claude-")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("OFFERTE_MAX_TOKENS", "8000")
        monkeypatch.setenv("OFFERTE_STREAM_TIMEOUT_SECONDS", "30")

        settings = Settings()

        assert settings.OFFERTE_MAX_TOKENS == 8000
        assert settings.OFFERTE_STREAM_TIMEOUT_SECONDS == 30.0
