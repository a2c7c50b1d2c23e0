"""Tests for outfit recommendation prompts and parsing."""

from __future__ import annotations

from datetime import date

import pytest

from wardrobe.api.aitunnel_client import AITunnelClient, AITunnelRequestError
from wardrobe.errors import InvalidInputError, RecommendationError
from wardrobe.recommender.outfits import OutfitRecommender, build_inventory, current_season
from wardrobe.storage.repository import WardrobeState

from helpers import chat_response

OUTFIT = {
    "title": "Weekend casual",
    "description": "Relaxed tee and jeans",
    "items": ["White tee", "Denim jeans"],
    "relatedItemIds": ["1", "99"],
    "reasoning": "Easy classic pairing",
}


def test_build_inventory_lists_one_line_per_item(state: WardrobeState) -> None:
    inventory = build_inventory(state.clothes)

    assert inventory.splitlines() == [
        "ID: 1 | 上装: Classic white tee (White)",
        "ID: 2 | 下装: Denim jeans (Blue)",
    ]


def test_current_season() -> None:
    assert current_season(date(2024, 1, 15)) == "winter"
    assert current_season(date(2024, 7, 1)) == "summer"
    assert current_season(date(2024, 10, 18)) == "autumn"


@pytest.mark.asyncio
async def test_recommend_parses_wrapped_outfits(client: AITunnelClient, state: WardrobeState) -> None:
    client.chat_completion.return_value = chat_response({"outfits": [OUTFIT]})

    recommendations = await OutfitRecommender(client).recommend(state.clothes)

    assert len(recommendations) == 1
    rec = recommendations[0]
    assert rec.title == "Weekend casual"
    assert rec.items == ("White tee", "Denim jeans")
    assert rec.related_item_ids == ("1", "99")
    assert rec.generated_image_url is None
    prompt = client.chat_completion.await_args.args[0][0]["content"]
    assert "suggest 3 stylish" in prompt
    assert "ID: 1 | 上装: Classic white tee (White)" in prompt


@pytest.mark.asyncio
async def test_recommend_accepts_bare_array(client: AITunnelClient, state: WardrobeState) -> None:
    client.chat_completion.return_value = chat_response([OUTFIT, {**OUTFIT, "title": "Second"}])

    recommendations = await OutfitRecommender(client).recommend(state.clothes)

    assert [rec.title for rec in recommendations] == ["Weekend casual", "Second"]
    assert recommendations[0].id != recommendations[1].id


@pytest.mark.asyncio
async def test_recommend_coerces_numeric_ids(client: AITunnelClient, state: WardrobeState) -> None:
    client.chat_completion.return_value = chat_response([{**OUTFIT, "relatedItemIds": [1, 2]}])

    recommendations = await OutfitRecommender(client).recommend(state.clothes)

    assert recommendations[0].related_item_ids == ("1", "2")


@pytest.mark.asyncio
async def test_recommend_rejects_empty_wardrobe(client: AITunnelClient) -> None:
    with pytest.raises(InvalidInputError):
        await OutfitRecommender(client).recommend([])

    client.chat_completion.assert_not_awaited()


@pytest.mark.asyncio
async def test_recommend_wraps_failures(client: AITunnelClient, state: WardrobeState) -> None:
    client.chat_completion.side_effect = AITunnelRequestError("down")

    with pytest.raises(RecommendationError):
        await OutfitRecommender(client).recommend(state.clothes)


@pytest.mark.asyncio
async def test_recommend_rejects_invalid_json(client: AITunnelClient, state: WardrobeState) -> None:
    client.chat_completion.return_value = chat_response("three lovely outfits")

    with pytest.raises(RecommendationError):
        await OutfitRecommender(client).recommend(state.clothes)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", {"suggestions": []}, {"outfits": "none"}, ["not an object"]])
async def test_recommend_rejects_incomplete_payloads(
    client: AITunnelClient, state: WardrobeState, content: object
) -> None:
    client.chat_completion.return_value = chat_response(content)

    with pytest.raises(RecommendationError):
        await OutfitRecommender(client).recommend(state.clothes)
