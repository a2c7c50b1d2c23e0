"""Construction of the multimodal message for try-on generation."""

from __future__ import annotations

from typing import Any, Sequence

from wardrobe.api.aitunnel_client import image_part, text_part

SUBJECT_INSTRUCTION = "This is the model person. Keep their face and body identity consistent."
GARMENT_CAPTION = "Clothing item #{index} to be worn by the model."
CLOSING_INSTRUCTION = (
    "Generate a photorealistic image of the model wearing the provided clothing items. "
    "Ensure the clothes fit naturally and the lighting is professional. "
    "Output only the final image."
)


class TryOnPromptBuilder:
    """Builds the content parts: subject, captioned garments, closing instruction."""

    def build(self, subject_base64: str, garments_base64: Sequence[str]) -> list[dict[str, Any]]:
        """Return chat content parts in (subject, garment #1..#n, instruction) order."""

        parts: list[dict[str, Any]] = [image_part(subject_base64), text_part(SUBJECT_INSTRUCTION)]
        for index, garment in enumerate(garments_base64, start=1):
            parts.append(image_part(garment))
            parts.append(text_part(GARMENT_CAPTION.format(index=index)))
        parts.append(text_part(CLOSING_INSTRUCTION))
        return parts
