"""Shared fixtures for the wardrobe test suite."""

from __future__ import annotations

import pytest
import pytest_mock

from wardrobe.api.aitunnel_client import AITunnelClient
from wardrobe.config.settings import Settings
from wardrobe.imaging.encoder import ImageEncoder
from wardrobe.imggen.image_gen import TryOnGenerator
from wardrobe.logic import WardrobeOrchestrator
from wardrobe.recommender.outfits import OutfitRecommender
from wardrobe.storage.models import Category, ClothingItem, ModelProfile
from wardrobe.storage.repository import WardrobeState
from wardrobe.vision.classifier import ClothingClassifier

from helpers import make_data_uri


@pytest.fixture
def settings() -> Settings:
    return Settings(aitunnel_api_key="test-key", aitunnel_base_url="https://aitunnel.test/v1")


@pytest.fixture
def client(settings: Settings, mocker: pytest_mock.MockerFixture) -> AITunnelClient:
    """AITunnel client whose chat endpoint is replaced by an AsyncMock."""

    instance = AITunnelClient(settings)
    instance.chat_completion = mocker.AsyncMock(name="chat_completion")  # type: ignore[method-assign]
    return instance


@pytest.fixture
def state() -> WardrobeState:
    state = WardrobeState()
    state.add_model(ModelProfile(id="m1", name="默认模特", image_url=make_data_uri("gray"), is_user=False))
    state.add_item(
        ClothingItem(
            id="1",
            image_url=make_data_uri("white"),
            category=Category.TOPS,
            color="White",
            description="Classic white tee",
            tags=("casual",),
            created_at=state.next_timestamp(),
        )
    )
    state.add_item(
        ClothingItem(
            id="2",
            image_url=make_data_uri("blue"),
            category=Category.BOTTOMS,
            color="Blue",
            description="Denim jeans",
            tags=("denim",),
            created_at=state.next_timestamp(),
        )
    )
    return state


@pytest.fixture
def orchestrator(state: WardrobeState, client: AITunnelClient) -> WardrobeOrchestrator:
    return WardrobeOrchestrator(
        state,
        ImageEncoder(),
        ClothingClassifier(client),
        TryOnGenerator(client),
        OutfitRecommender(client),
        client=client,
    )
