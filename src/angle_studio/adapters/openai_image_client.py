"""OpenAI Images API client."""

import base64
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx
from openai import AsyncOpenAI

from angle_studio.adapters.api_key_store import ApiKeyStore
from angle_studio.domain.images import AspectRatio, QualityTier
from angle_studio.services.images import ImageClient, detect_mime_type

_SIZES = {
    AspectRatio.SQUARE: "1024x1024",
    AspectRatio.LANDSCAPE: "1536x1024",
    AspectRatio.STANDARD: "1536x1024",
    AspectRatio.PORTRAIT: "1024x1536",
    AspectRatio.VERTICAL: "1024x1536",
}

_QUALITIES = {
    QualityTier.STANDARD: "medium",
    QualityTier.HIGH: "high",
    QualityTier.ULTRA: "high",
}

OpenAIClientFactory = Callable[[str], AsyncOpenAI]


@dataclass
class OpenAIImageClient(ImageClient):
    """Image client backed by the OpenAI Images API."""

    key_store: ApiKeyStore
    client_factory: OpenAIClientFactory
    http_client: httpx.AsyncClient | None = None
    _active: tuple[str, AsyncOpenAI] | None = field(default=None, repr=False)

    @classmethod
    def create(
        cls, key_store: ApiKeyStore, *, timeout_seconds: float
    ) -> "OpenAIImageClient":
        """Create an OpenAI client sharing one managed httpx session."""
        http_client = httpx.AsyncClient(timeout=timeout_seconds)

        def factory(api_key: str) -> AsyncOpenAI:
            return AsyncOpenAI(api_key=api_key, http_client=http_client)

        return cls(key_store=key_store, client_factory=factory, http_client=http_client)

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        quality: QualityTier,
        aspect_ratio: AspectRatio,
    ) -> bytes:
        """Generate an image from text."""
        response = await self._client().images.generate(
            model=model,
            prompt=prompt,
            size=_SIZES[aspect_ratio],
            quality=_QUALITIES[quality],
            n=1,
        )
        return _decode_first_image(response)

    async def edit(
        self,
        *,
        model: str,
        image: bytes,
        instruction: str,
        aspect_ratio: AspectRatio,
    ) -> bytes:
        """Edit the source image following the instruction."""
        response = await self._client().images.edit(
            model=model,
            image=_upload(image),
            prompt=instruction,
            size=_SIZES[aspect_ratio],
            n=1,
        )
        return _decode_first_image(response)

    async def upscale(
        self,
        *,
        model: str,
        image: bytes,
        prompt: str,
        quality: QualityTier,
    ) -> bytes:
        """Re-render the image at the highest available quality."""
        response = await self._client().images.edit(
            model=model,
            image=_upload(image),
            prompt=(
                "Recreate this image at maximum detail and sharpness without "
                f"changing its content. Original prompt: {prompt}"
            ),
            quality=_QUALITIES[quality],
            size="auto",
            n=1,
        )
        return _decode_first_image(response)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self.http_client is not None:
            await self.http_client.aclose()

    def _client(self) -> AsyncOpenAI:
        api_key = self.key_store.current()
        if not api_key:
            raise RuntimeError("API key is not selected")
        if self._active is not None and self._active[0] == api_key:
            return self._active[1]
        # Replaced clients share the managed http session and are not closed.
        client = self.client_factory(api_key)
        self._active = (api_key, client)
        return client


def _upload(image: bytes) -> tuple[str, bytes, str]:
    mime_type = detect_mime_type(image)
    extension = mime_type.split("/")[-1]
    return (f"source.{extension}", image, mime_type)


def _decode_first_image(response: object) -> bytes:
    """Decode the base64 payload of the first returned image."""
    data = getattr(response, "data", None) or []
    encoded = data[0].b64_json if data else None
    if not encoded:
        raise RuntimeError("OpenAI returned an empty response")
    return base64.b64decode(encoded)
