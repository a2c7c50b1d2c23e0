"""Startup checks for the AITunnel account used by the pipelines."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from wardrobe.api.aitunnel_client import AITunnelClient
from wardrobe.config.settings import Settings, get_settings

MISSING_KEY = "AITUNNEL_API_KEY is not configured."

CheckFn = Callable[[AITunnelClient, Settings], Awaitable["IntegrationCheckResult"]]


@dataclass(slots=True)
class IntegrationCheckResult:
    """Structured result describing the integration check outcome."""

    name: str
    success: bool
    message: str

    def __str__(self) -> str:
        status = "✅" if self.success else "❌"
        return f"{status} {self.name}: {self.message}"


async def _with_client(name: str, run_check: CheckFn) -> IntegrationCheckResult:
    """Run ``run_check`` against a short-lived client; failures become results."""

    settings = get_settings()
    if not settings.api_key_configured:
        return IntegrationCheckResult(name=name, success=False, message=MISSING_KEY)

    client = AITunnelClient(settings)
    try:
        return await run_check(client, settings)
    except Exception as exc:  # pragma: no cover - reported, not raised
        return IntegrationCheckResult(name=name, success=False, message=str(exc))
    finally:
        await client.close()


async def check_aitunnel() -> IntegrationCheckResult:
    """Ping the AITunnel API and return the result."""

    async def run_check(client: AITunnelClient, _: Settings) -> IntegrationCheckResult:
        if await client.ping():
            return IntegrationCheckResult(name="AITunnel", success=True, message="AITunnel API is reachable.")
        return IntegrationCheckResult(
            name="AITunnel",
            success=False,
            message="Service responded with non-success status.",
        )

    return await _with_client("AITunnel", run_check)


async def check_models() -> IntegrationCheckResult:
    """Verify the configured chat and image models are offered by the proxy."""

    async def run_check(client: AITunnelClient, settings: Settings) -> IntegrationCheckResult:
        available = set(await client.list_models())
        wanted = {settings.aitunnel_chat_model, settings.aitunnel_image_model}
        missing = sorted(wanted - available)
        if missing:
            return IntegrationCheckResult(
                name="Models",
                success=False,
                message=f"Not offered by the proxy: {', '.join(missing)}",
            )
        return IntegrationCheckResult(name="Models", success=True, message="Chat and image models are available.")

    return await _with_client("Models", run_check)


async def run_all_checks() -> list[IntegrationCheckResult]:
    """Execute all integration checks concurrently."""

    return list(await asyncio.gather(check_aitunnel(), check_models()))
