"""Root logger setup for the API process and scripts."""

from __future__ import annotations

import logging

from wardrobe.config.settings import Settings, get_settings

# httpx logs every request line at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logger according to project conventions."""

    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
