"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from angle_studio.adapters.api_key_store import ApiKeyStore
from angle_studio.config import Settings, parse_auth_error_patterns
from angle_studio.containers import AppContainer
from angle_studio.domain.images import AspectRatio, QualityTier
from angle_studio.services.authorization import (
    AuthErrorMatcher,
    AuthorizationService,
    AuthorizationState,
)
from angle_studio.services.images import ImageClient, ImageGenerationService
from angle_studio.services.results import InMemoryResultStore
from angle_studio.services.studio import StudioService

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"source-image"
ENTITLEMENT_ERROR = "404 NOT_FOUND. Requested entity was not found."


@dataclass
class FakeImageClient(ImageClient):
    """Fake image client that records calls and fails on demand.

    ``edit_failures`` maps a substring of the edit instruction to the error
    message raised for matching calls. ``edit_delays`` maps a substring to a
    sleep in seconds, to control completion order.
    """

    generate_calls: list[dict[str, object]] = field(default_factory=list)
    edit_calls: list[dict[str, object]] = field(default_factory=list)
    upscale_calls: list[dict[str, object]] = field(default_factory=list)
    edit_failures: dict[str, str] = field(default_factory=dict)
    edit_delays: dict[str, float] = field(default_factory=dict)
    generate_error: str | None = None
    upscale_error: str | None = None
    closed: bool = False

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        quality: QualityTier,
        aspect_ratio: AspectRatio,
    ) -> bytes:
        self.generate_calls.append(
            {
                "model": model,
                "prompt": prompt,
                "quality": quality,
                "aspect_ratio": aspect_ratio,
            }
        )
        if self.generate_error is not None:
            raise RuntimeError(self.generate_error)
        return b"generated:" + prompt.encode()

    async def edit(
        self,
        *,
        model: str,
        image: bytes,
        instruction: str,
        aspect_ratio: AspectRatio,
    ) -> bytes:
        self.edit_calls.append(
            {
                "model": model,
                "image": image,
                "instruction": instruction,
                "aspect_ratio": aspect_ratio,
            }
        )
        for key, delay in self.edit_delays.items():
            if key in instruction:
                await asyncio.sleep(delay)
        for key, message in self.edit_failures.items():
            if key in instruction:
                raise RuntimeError(message)
        return b"edited:" + instruction.encode()

    async def upscale(
        self,
        *,
        model: str,
        image: bytes,
        prompt: str,
        quality: QualityTier,
    ) -> bytes:
        self.upscale_calls.append(
            {"model": model, "image": image, "prompt": prompt, "quality": quality}
        )
        if self.upscale_error is not None:
            raise RuntimeError(self.upscale_error)
        return b"upscaled:" + image

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> Settings:
    return Settings(gemini_api_key="gemini-key", openai_api_key="openai-key")


@pytest.fixture
def image_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def auth_matcher(settings: Settings) -> AuthErrorMatcher:
    return AuthErrorMatcher(parse_auth_error_patterns(settings.auth_error_patterns))


@pytest.fixture
def image_service(
    settings: Settings,
    image_client: FakeImageClient,
    auth_matcher: AuthErrorMatcher,
) -> ImageGenerationService:
    return ImageGenerationService(
        client=image_client,
        generate_model=settings.gemini_generate_model,
        edit_model=settings.gemini_edit_model,
        auth_matcher=auth_matcher,
    )


@pytest.fixture
def container(
    settings: Settings,
    image_client: FakeImageClient,
    image_service: ImageGenerationService,
) -> AppContainer:
    state = AuthorizationState()
    authorization_service = AuthorizationService(
        selector=ApiKeyStore(api_key=settings.api_key), state=state
    )
    studio_service = StudioService(
        image_service=image_service,
        results=InMemoryResultStore(),
        authorization=state,
    )

    async def close_resources() -> None:
        await image_client.close()

    return AppContainer(
        settings=settings,
        image_client=image_client,
        image_service=image_service,
        authorization_service=authorization_service,
        studio_service=studio_service,
        close_resources=close_resources,
    )
