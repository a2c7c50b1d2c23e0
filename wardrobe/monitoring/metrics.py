"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter


uploads_total = Counter(
    "wardrobe_uploads_total",
    "Uploaded images processed by the upload pipelines.",
    ["kind", "outcome"],
)

generations_total = Counter(
    "wardrobe_generations_total",
    "Composite image generation requests.",
    ["pipeline", "outcome"],
)

recommendation_requests_total = Counter(
    "wardrobe_recommendation_requests_total",
    "Outfit recommendation requests.",
    ["outcome"],
)
