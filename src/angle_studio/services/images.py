"""Image generation orchestration over a remote model service."""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Protocol

from angle_studio.domain.angles import ANGLES, AngleSpec, build_angle_prompt
from angle_studio.domain.errors import (
    AlreadyUpscaledError,
    AuthorizationError,
    AuthorizationRequiredError,
    BatchExhaustionError,
    CapabilityError,
    ValidationError,
)
from angle_studio.domain.images import (
    AspectRatio,
    BatchRequest,
    GeneratedArtifact,
    GenerationMode,
    QualityTier,
    upscaled_model_name,
)
from angle_studio.services.authorization import AuthErrorMatcher, AuthorizationState

_logger = logging.getLogger(__name__)

_GENERATE_FALLBACK = "An error occurred during generation"
_BATCH_FALLBACK = "Failed to generate any variations."
_UPSCALE_FALLBACK = "Failed to upscale"
_UNAUTHORIZED_MESSAGE = "Select a billing-enabled API key to continue."


class ImageClient(Protocol):
    """Interface for the remote image generation capability."""

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        quality: QualityTier,
        aspect_ratio: AspectRatio,
    ) -> bytes:
        """Generate a new image from a text prompt."""

    async def edit(
        self,
        *,
        model: str,
        image: bytes,
        instruction: str,
        aspect_ratio: AspectRatio,
    ) -> bytes:
        """Return an edited version of the source image."""

    async def upscale(
        self,
        *,
        model: str,
        image: bytes,
        prompt: str,
        quality: QualityTier,
    ) -> bytes:
        """Re-render the source image at a higher quality tier."""

    async def close(self) -> None:
        """Release network resources."""


@dataclass
class ImageGenerationService:
    """Dispatches generate, edit-by-angle and upscale requests."""

    client: ImageClient
    generate_model: str
    edit_model: str
    auth_matcher: AuthErrorMatcher

    async def submit(
        self, request: BatchRequest, authorization: AuthorizationState
    ) -> list[GeneratedArtifact]:
        """Run a batch request and return the produced artifacts."""
        match request.mode:
            case GenerationMode.GENERATE:
                artifact = await self.generate(
                    request.prompt,
                    quality=request.quality,
                    aspect_ratio=request.aspect_ratio,
                    authorization=authorization,
                )
                return [artifact]
            case GenerationMode.EDIT_ANGLES:
                return await self.edit_angles(
                    request.source_image,
                    request.prompt,
                    aspect_ratio=request.aspect_ratio,
                    authorization=authorization,
                )
        raise ValidationError(f"Unsupported generation mode: {request.mode}")

    async def generate(
        self,
        prompt: str | None,
        *,
        quality: QualityTier,
        aspect_ratio: AspectRatio,
        authorization: AuthorizationState,
    ) -> GeneratedArtifact:
        """Generate a single image with the high-quality model."""
        text = (prompt or "").strip()
        if not text:
            raise ValidationError("Please enter a prompt description.")
        _require_authorized(authorization)

        try:
            payload = await self.client.generate(
                model=self.generate_model,
                prompt=text,
                quality=quality,
                aspect_ratio=aspect_ratio,
            )
        except Exception as exc:
            raise self._classify(exc, authorization, _GENERATE_FALLBACK) from exc
        return GeneratedArtifact(
            payload=payload,
            source_prompt=text,
            producing_model=self.generate_model,
        )

    async def edit_angles(
        self,
        source_image: bytes | None,
        instruction: str | None,
        *,
        aspect_ratio: AspectRatio,
        authorization: AuthorizationState,
    ) -> list[GeneratedArtifact]:
        """Edit the source image once per camera angle, concurrently.

        All calls are awaited before returning, and failures of individual
        angles are dropped as long as at least one angle succeeded. The
        returned artifacts follow the order of ``ANGLES``.
        """
        if not source_image:
            raise ValidationError("Please upload an image first.")
        text = (instruction or "").strip() or None

        outcomes = await asyncio.gather(
            *(
                self._edit_angle(angle, source_image, text, aspect_ratio)
                for angle in ANGLES
            ),
            return_exceptions=True,
        )

        artifacts: list[GeneratedArtifact] = []
        failures: list[BaseException] = []
        for angle, outcome in zip(ANGLES, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                _logger.warning(
                    "Angle edit failed: angle=%s error=%s", angle.name, outcome
                )
                failures.append(outcome)
            else:
                artifacts.append(outcome)

        auth_failure = next(
            (exc for exc in failures if self.auth_matcher(str(exc))), None
        )
        if auth_failure is not None:
            authorization.revoke()

        if not artifacts:
            if auth_failure is not None:
                raise AuthorizationError(str(auth_failure)) from auth_failure
            representative = failures[0]
            raise BatchExhaustionError(
                str(representative) or _BATCH_FALLBACK, failures
            ) from representative

        if failures:
            _logger.info(
                "Angle batch partially succeeded: ok=%s failed=%s",
                len(artifacts),
                len(failures),
            )
        return artifacts

    async def upscale(
        self, artifact: GeneratedArtifact, authorization: AuthorizationState
    ) -> GeneratedArtifact:
        """Re-submit an artifact at the ultra tier and return the new artifact."""
        if artifact.is_upscaled:
            raise AlreadyUpscaledError("This image has already been upscaled.")
        _require_authorized(authorization)

        try:
            payload = await self.client.upscale(
                model=self.generate_model,
                image=artifact.payload,
                prompt=artifact.source_prompt,
                quality=QualityTier.ULTRA,
            )
        except Exception as exc:
            raise self._classify(exc, authorization, _UPSCALE_FALLBACK) from exc
        return GeneratedArtifact(
            payload=payload,
            source_prompt=artifact.source_prompt,
            producing_model=upscaled_model_name(self.generate_model),
        )

    async def _edit_angle(
        self,
        angle: AngleSpec,
        source_image: bytes,
        instruction: str | None,
        aspect_ratio: AspectRatio,
    ) -> GeneratedArtifact:
        full_prompt = build_angle_prompt(angle, instruction)
        payload = await self.client.edit(
            model=self.edit_model,
            image=source_image,
            instruction=full_prompt,
            aspect_ratio=aspect_ratio,
        )
        return GeneratedArtifact(
            payload=payload,
            source_prompt=f"{angle.name}: {full_prompt}",
            producing_model=self.edit_model,
        )

    def _classify(
        self, exc: Exception, authorization: AuthorizationState, fallback: str
    ) -> CapabilityError:
        """Map a remote failure to a studio error, revoking auth if needed."""
        message = str(exc) or fallback
        if self.auth_matcher(message):
            _logger.warning("Image service rejected credentials: %s", message)
            authorization.revoke()
            return AuthorizationError(message)
        _logger.warning("Image service call failed: %s", message)
        return CapabilityError(message)


def _require_authorized(authorization: AuthorizationState) -> None:
    if not authorization.authorized:
        raise AuthorizationRequiredError(_UNAUTHORIZED_MESSAGE)


def decode_image_data(value: str) -> bytes:
    """Decode a data URL or bare base64 string into image bytes."""
    encoded = value.strip()
    if encoded.startswith("data:"):
        header, _, encoded = encoded.partition(",")
        if not header.endswith(";base64"):
            raise ValidationError("Image data URL must be base64 encoded.")
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Image data is not valid base64.") from exc
    if not data:
        raise ValidationError("Please upload an image first.")
    return data


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/png"
