"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from angle_studio.adapters.api_key_store import ApiKeyStore
from angle_studio.adapters.gemini_image_client import GeminiImageClient
from angle_studio.adapters.openai_image_client import OpenAIImageClient
from angle_studio.config import Settings, parse_auth_error_patterns
from angle_studio.services.authorization import (
    AuthErrorMatcher,
    AuthorizationService,
    AuthorizationState,
)
from angle_studio.services.images import ImageClient, ImageGenerationService
from angle_studio.services.results import InMemoryResultStore
from angle_studio.services.studio import StudioService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    image_client: ImageClient
    image_service: ImageGenerationService
    authorization_service: AuthorizationService
    studio_service: StudioService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    key_store = ApiKeyStore(api_key=resolved_settings.api_key)

    image_client: ImageClient
    if resolved_settings.image_backend == "openai":
        image_client = OpenAIImageClient.create(
            key_store, timeout_seconds=resolved_settings.request_timeout_seconds
        )
        generate_model = resolved_settings.openai_image_model
        edit_model = resolved_settings.openai_image_model
    else:
        image_client = GeminiImageClient.create(
            key_store,
            timeout_seconds=resolved_settings.request_timeout_seconds,
            sized_models=frozenset({resolved_settings.gemini_generate_model}),
        )
        generate_model = resolved_settings.gemini_generate_model
        edit_model = resolved_settings.gemini_edit_model

    image_service = ImageGenerationService(
        client=image_client,
        generate_model=generate_model,
        edit_model=edit_model,
        auth_matcher=AuthErrorMatcher(
            parse_auth_error_patterns(resolved_settings.auth_error_patterns)
        ),
    )
    authorization_state = AuthorizationState()
    authorization_service = AuthorizationService(
        selector=key_store, state=authorization_state
    )
    studio_service = StudioService(
        image_service=image_service,
        results=InMemoryResultStore(),
        authorization=authorization_state,
    )

    async def close_resources() -> None:
        await image_client.close()

    return AppContainer(
        settings=resolved_settings,
        image_client=image_client,
        image_service=image_service,
        authorization_service=authorization_service,
        studio_service=studio_service,
        close_resources=close_resources,
    )
