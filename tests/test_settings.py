"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from wardrobe.config.settings import Settings, get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.chdir(tmp_path)
    # setenv first so values written by the .env loader are undone afterwards
    for name in ("AITUNNEL_API_KEY", "WARDROBE_RECOMMENDATION_COUNT", "WARDROBE_SEED_DEFAULTS"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_without_key() -> None:
    settings = get_settings()

    assert settings.api_key_configured is False
    assert settings.image_aspect_ratio == "3:4"
    assert settings.recommendation_count == 3
    assert settings.seed_defaults is True


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AITUNNEL_API_KEY", "sk-live")
    monkeypatch.setenv("WARDROBE_RECOMMENDATION_COUNT", "5")
    monkeypatch.setenv("WARDROBE_SEED_DEFAULTS", "off")

    settings = get_settings()

    assert settings.api_key_configured is True
    assert settings.recommendation_count == 5
    assert settings.seed_defaults is False


def test_env_file_does_not_override_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "# local overrides\nexport AITUNNEL_API_KEY=\"from-file\"\nWARDROBE_RECOMMENDATION_COUNT=4\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("WARDROBE_RECOMMENDATION_COUNT", "2")

    settings = get_settings()

    assert settings.aitunnel_api_key == "from-file"
    assert settings.recommendation_count == 2


def test_blank_key_is_not_configured() -> None:
    assert Settings(aitunnel_api_key="   ").api_key_configured is False
