"""Tests for the AITunnel startup checks."""

from __future__ import annotations

import pytest
import pytest_mock

from wardrobe.config.settings import get_settings
from wardrobe.integrations.checks import MISSING_KEY, check_aitunnel, check_models, run_all_checks


@pytest.fixture(autouse=True)
def _setup_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AITUNNEL_API_KEY", "test-aitunnel")
    monkeypatch.setenv("AITUNNEL_BASE_URL", "https://aitunnel.test")
    monkeypatch.setenv("AITUNNEL_CHAT_MODEL", "chat-model")
    monkeypatch.setenv("AITUNNEL_IMAGE_MODEL", "image-model")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def client_instance(mocker: pytest_mock.MockerFixture):
    client_mock = mocker.patch("wardrobe.integrations.checks.AITunnelClient", autospec=True)
    instance = client_mock.return_value
    instance.close = mocker.AsyncMock(return_value=None)
    return instance


@pytest.mark.asyncio
async def test_check_aitunnel_success(client_instance, mocker: pytest_mock.MockerFixture) -> None:
    client_instance.ping = mocker.AsyncMock(return_value=True)

    result = await check_aitunnel()

    assert result.success
    assert str(result).startswith("✅ AITunnel")
    client_instance.ping.assert_awaited_once()
    client_instance.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_aitunnel_failure(client_instance, mocker: pytest_mock.MockerFixture) -> None:
    client_instance.ping = mocker.AsyncMock(return_value=False)

    result = await check_aitunnel()

    assert not result.success
    assert "non-success" in result.message.lower()


@pytest.mark.asyncio
async def test_check_aitunnel_reports_exceptions(client_instance, mocker: pytest_mock.MockerFixture) -> None:
    client_instance.ping = mocker.AsyncMock(side_effect=RuntimeError("401 invalid key"))

    result = await check_aitunnel()

    assert not result.success
    assert result.message == "401 invalid key"
    client_instance.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_models_lists_missing(client_instance, mocker: pytest_mock.MockerFixture) -> None:
    client_instance.list_models = mocker.AsyncMock(return_value=["chat-model", "other"])

    result = await check_models()

    assert not result.success
    assert result.message.endswith("image-model")


@pytest.mark.asyncio
async def test_check_models_success(client_instance, mocker: pytest_mock.MockerFixture) -> None:
    client_instance.list_models = mocker.AsyncMock(return_value=["image-model", "chat-model"])

    result = await check_models()

    assert result.success


@pytest.mark.asyncio
async def test_checks_without_key(monkeypatch: pytest.MonkeyPatch, mocker: pytest_mock.MockerFixture) -> None:
    monkeypatch.setenv("AITUNNEL_API_KEY", "")
    get_settings.cache_clear()
    client_mock = mocker.patch("wardrobe.integrations.checks.AITunnelClient", autospec=True)

    results = await run_all_checks()

    assert [result.name for result in results] == ["AITunnel", "Models"]
    assert all(not result.success and result.message == MISSING_KEY for result in results)
    client_mock.assert_not_called()
