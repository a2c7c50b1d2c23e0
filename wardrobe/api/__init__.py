"""Clients for the external AI service."""

from .aitunnel_client import AITunnelClient, AITunnelRequestError, image_part, text_part

__all__ = ["AITunnelClient", "AITunnelRequestError", "image_part", "text_part"]
