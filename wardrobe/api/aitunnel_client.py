"""Async wrapper around the AITunnel OpenAI-compatible endpoints."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import httpx
from openai import AsyncOpenAI

from wardrobe.config.settings import Settings

JPEG_MIME = "image/jpeg"

logger = logging.getLogger(__name__)


class AITunnelRequestError(RuntimeError):
    """Raised when AITunnel responds with an error status code."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


def image_part(base64_data: str, mime_type: str = JPEG_MIME) -> dict[str, Any]:
    """Return a chat content part carrying an inline image."""

    return {
        "type": "image_url",
        "image_url": {"url": f"data:{mime_type};base64,{base64_data}"},
    }


def text_part(text: str) -> dict[str, Any]:
    """Return a chat content part carrying plain text."""

    return {"type": "text", "text": text}


class AITunnelClient:
    """Provides chat-completion and connectivity helpers for the AI service."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        base_url = settings.aitunnel_base_url.rstrip("/")
        self._settings = settings
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=settings.request_timeout,
            headers={
                "Authorization": f"Bearer {settings.aitunnel_api_key}",
            },
            transport=transport,
        )
        self._openai: AsyncOpenAI | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    async def close(self) -> None:
        """Close the underlying HTTP clients."""

        await self._client.aclose()
        if self._openai is not None:
            await self._openai.close()

    async def _request_json(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(method, endpoint, json=json_body)
            response.raise_for_status()
            if not response.content:
                return {}
            body = response.json()
        except httpx.TimeoutException as exc:
            raise AITunnelRequestError("AITunnel request timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise AITunnelRequestError(
                f"AITunnel returned {exc.response.status_code}: {exc.response.text}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.TransportError as exc:
            raise AITunnelRequestError(f"AITunnel is unreachable: {exc}") from exc
        except ValueError as exc:
            raise AITunnelRequestError("AITunnel returned a non-JSON body") from exc

        if not isinstance(body, dict):
            raise AITunnelRequestError("AITunnel returned a non-object body")
        return body

    async def chat_completion(
        self,
        messages: Sequence[Mapping[str, Any]],
        *,
        model: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Call the OpenAI-compatible chat completions endpoint."""

        payload: dict[str, Any] = {
            "model": model or self._settings.aitunnel_chat_model,
            "messages": list(messages),
        }
        payload.update(kwargs)
        return await self._request_json("POST", "/chat/completions", json_body=payload)

    async def list_models(self) -> list[str]:
        """Return the ids of the models the proxy exposes to this key."""

        if self._openai is None:
            self._openai = AsyncOpenAI(
                api_key=self._settings.aitunnel_api_key,
                base_url=self._settings.aitunnel_base_url.rstrip("/"),
            )
        page = await self._openai.models.list()
        return [model.id for model in page.data]

    async def ping(self) -> bool:
        """Return ``True`` when the service responds to a model listing call."""

        return bool(await self.list_models())

    @staticmethod
    def _first_message(payload: Any) -> Mapping[str, Any]:
        """Return the message of the first choice, or an empty mapping for malformed payloads."""

        if not isinstance(payload, Mapping):
            return {}
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], Mapping):
            return {}
        message = choices[0].get("message")
        return message if isinstance(message, Mapping) else {}

    @staticmethod
    def first_choice_content(payload: Mapping[str, Any]) -> str | None:
        """Return the text content of the first choice, if any."""

        content = AITunnelClient._first_message(payload).get("content")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            texts = [
                part.get("text", "")
                for part in content
                if isinstance(part, Mapping) and part.get("type") == "text"
            ]
            return "".join(texts) or None
        return None

    @staticmethod
    def image_payload_to_result(payload: Mapping[str, Any]) -> str | None:
        """Extract the first generated image of the first choice as a data URI."""

        message = AITunnelClient._first_message(payload)
        if not message:
            logger.warning("AITunnel image response has no message")
            return None
        image_url = None

        for image_entry in message.get("images") or []:
            if not isinstance(image_entry, Mapping):
                continue
            image_info = image_entry.get("image_url") or {}
            if isinstance(image_info, Mapping) and image_info.get("url"):
                image_url = image_info["url"]
                break

        content = message.get("content")
        if image_url is None and isinstance(content, str) and content.startswith("data:"):
            image_url = content
        elif image_url is None and isinstance(content, list):
            for part in content:
                if (
                    isinstance(part, Mapping)
                    and part.get("type") == "image_url"
                    and isinstance(part.get("image_url"), Mapping)
                ):
                    image_url = part["image_url"].get("url")
                    if image_url:
                        break

        if not isinstance(image_url, str) or not image_url:
            logger.warning("AITunnel image response contains no image data")
            return None

        if image_url.startswith(("data:", "http://", "https://")):
            return image_url
        # bare base64 payload
        return f"data:image/png;base64,{image_url}"
