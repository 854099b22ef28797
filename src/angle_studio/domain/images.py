"""Domain models for generated images and generation requests."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4

MEDIA_TYPE = "image/png"
UPSCALED_MARKER = "(Upscaled)"


class GenerationMode(StrEnum):
    """How a batch request is dispatched."""

    GENERATE = "GENERATE"
    EDIT_ANGLES = "EDIT_ANGLES"


class AspectRatio(StrEnum):
    """Supported output aspect ratios."""

    SQUARE = "1:1"
    PORTRAIT = "9:16"
    LANDSCAPE = "16:9"
    STANDARD = "4:3"
    VERTICAL = "3:4"


class QualityTier(StrEnum):
    """Output size tiers offered by the high-quality model."""

    STANDARD = "1K"
    HIGH = "2K"
    ULTRA = "4K"


@dataclass(frozen=True)
class GeneratedArtifact:
    """A single image produced by the remote model service."""

    payload: bytes = field(repr=False)
    source_prompt: str
    producing_model: str
    id: str = field(default_factory=lambda: uuid4().hex)
    media_type: str = MEDIA_TYPE
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def is_upscaled(self) -> bool:
        return UPSCALED_MARKER in self.producing_model

    @property
    def badge(self) -> str:
        """Short label for the model family that produced the image."""
        return "Flash" if "flash" in self.producing_model else "Pro"


@dataclass(frozen=True)
class BatchRequest:
    """Parameters for one orchestration call."""

    mode: GenerationMode
    prompt: str | None = None
    source_image: bytes | None = field(default=None, repr=False)
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    quality: QualityTier = QualityTier.STANDARD


def upscaled_model_name(model: str) -> str:
    """Return the model identifier used to tag an upscaled artifact."""
    return f"{model} {UPSCALED_MARKER}"
