"""Gemini image client built on the google-genai SDK."""

from collections.abc import Callable
from dataclasses import dataclass, field

from google import genai
from google.genai import types

from angle_studio.adapters.api_key_store import ApiKeyStore
from angle_studio.domain.images import AspectRatio, QualityTier
from angle_studio.services.images import ImageClient, detect_mime_type

GeminiClientFactory = Callable[[str], genai.Client]


@dataclass
class GeminiImageClient(ImageClient):
    """Image client backed by Gemini image models."""

    key_store: ApiKeyStore
    client_factory: GeminiClientFactory
    sized_models: frozenset[str] = frozenset()
    _client: genai.Client | None = field(default=None, repr=False)
    _client_key: str | None = field(default=None, repr=False)

    @classmethod
    def create(
        cls,
        key_store: ApiKeyStore,
        *,
        timeout_seconds: float,
        sized_models: frozenset[str] = frozenset(),
    ) -> "GeminiImageClient":
        """Create a Gemini client that follows the selected API key."""
        http_options = types.HttpOptions(timeout=int(timeout_seconds * 1000))

        def factory(api_key: str) -> genai.Client:
            return genai.Client(api_key=api_key, http_options=http_options)

        return cls(
            key_store=key_store, client_factory=factory, sized_models=sized_models
        )

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        quality: QualityTier,
        aspect_ratio: AspectRatio,
    ) -> bytes:
        """Generate an image from text."""
        return await self._request(
            model,
            [types.Part.from_text(text=prompt)],
            types.ImageConfig(
                aspect_ratio=aspect_ratio.value,
                image_size=self._image_size(model, quality),
            ),
        )

    async def edit(
        self,
        *,
        model: str,
        image: bytes,
        instruction: str,
        aspect_ratio: AspectRatio,
    ) -> bytes:
        """Edit the source image following the instruction."""
        return await self._request(
            model,
            [_image_part(image), types.Part.from_text(text=instruction)],
            types.ImageConfig(aspect_ratio=aspect_ratio.value),
        )

    async def upscale(
        self,
        *,
        model: str,
        image: bytes,
        prompt: str,
        quality: QualityTier,
    ) -> bytes:
        """Re-render the image at a larger size."""
        instruction = (
            f"Upscale this image to {quality.value} resolution. "
            f"Preserve the composition and every detail. Original prompt: {prompt}"
        )
        return await self._request(
            model,
            [_image_part(image), types.Part.from_text(text=instruction)],
            types.ImageConfig(image_size=self._image_size(model, quality)),
        )

    async def close(self) -> None:
        """Close the SDK client for the selected key, if one was created."""
        client = self._client
        self._client = None
        self._client_key = None
        if client is not None:
            await client.aio.aclose()

    async def _request(
        self,
        model: str,
        parts: list[types.Part],
        image_config: types.ImageConfig,
    ) -> bytes:
        client = await self._current_client()
        response = await client.aio.models.generate_content(
            model=model,
            contents=[types.Content(role="user", parts=parts)],
            config=types.GenerateContentConfig(
                response_modalities=["IMAGE"],
                image_config=image_config,
            ),
        )
        return _extract_image(response)

    async def _current_client(self) -> genai.Client:
        """Return the client for the selected key, replacing a stale one."""
        api_key = self.key_store.current()
        if not api_key:
            raise RuntimeError("API key is not selected")
        if self._client is not None and self._client_key == api_key:
            return self._client

        stale = self._client
        client = self.client_factory(api_key)
        self._client = client
        self._client_key = api_key
        if stale is not None:
            await stale.aio.aclose()
        return client

    def _image_size(self, model: str, quality: QualityTier) -> str | None:
        """Return the size hint, only for models that accept one."""
        if model in self.sized_models:
            return quality.value
        return None


def _image_part(image: bytes) -> types.Part:
    return types.Part.from_bytes(data=image, mime_type=detect_mime_type(image))


def _extract_image(response: types.GenerateContentResponse) -> bytes:
    """Return the first inline image from a generate_content response."""
    for candidate in response.candidates or []:
        content = candidate.content
        if content is None:
            continue
        for part in content.parts or []:
            inline = part.inline_data
            if inline is not None and inline.data:
                return inline.data
    raise RuntimeError("Gemini returned no image data")
