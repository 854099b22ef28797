"""Pydantic models for the studio HTTP API."""

from datetime import datetime

from pydantic import BaseModel, Field

from angle_studio.domain.images import (
    AspectRatio,
    BatchRequest,
    GeneratedArtifact,
    GenerationMode,
    QualityTier,
)
from angle_studio.services.studio import StudioSnapshot


class BatchRequestIn(BaseModel):
    """Form values submitted with a generate or angle-variation request."""

    mode: GenerationMode = GenerationMode.EDIT_ANGLES
    prompt: str | None = Field(default=None, max_length=4000)
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    quality: QualityTier = QualityTier.STANDARD

    def to_domain(self) -> BatchRequest:
        return BatchRequest(
            mode=self.mode,
            prompt=self.prompt,
            aspect_ratio=self.aspect_ratio,
            quality=self.quality,
        )


class SourceImageIn(BaseModel):
    """Source image as a data URL or bare base64 string."""

    image: str = Field(min_length=1)


class ApiKeyIn(BaseModel):
    """Key chosen by the user; omit to re-use the configured key."""

    api_key: str | None = None


class ArtifactOut(BaseModel):
    """Artifact metadata returned to the UI."""

    id: str
    prompt: str
    model: str
    media_type: str
    badge: str
    is_upscaled: bool
    created_at: datetime
    content_url: str
    download_url: str

    @classmethod
    def from_artifact(cls, artifact: GeneratedArtifact) -> "ArtifactOut":
        return cls(
            id=artifact.id,
            prompt=artifact.source_prompt,
            model=artifact.producing_model,
            media_type=artifact.media_type,
            badge=artifact.badge,
            is_upscaled=artifact.is_upscaled,
            created_at=artifact.created_at,
            content_url=f"/images/{artifact.id}/content",
            download_url=f"/images/{artifact.id}/download",
        )


class AuthStatusOut(BaseModel):
    """Authorization flag as seen by the UI."""

    authorized: bool


class StudioStateOut(BaseModel):
    """Full studio snapshot for rendering."""

    authorized: bool
    has_source_image: bool
    is_generating: bool
    is_upscaling: bool
    error: str | None
    viewing_id: str | None
    images: list[ArtifactOut]

    @classmethod
    def from_snapshot(cls, snapshot: StudioSnapshot) -> "StudioStateOut":
        return cls(
            authorized=snapshot.authorized,
            has_source_image=snapshot.has_source_image,
            is_generating=snapshot.is_generating,
            is_upscaling=snapshot.is_upscaling,
            error=snapshot.error,
            viewing_id=snapshot.viewing_id,
            images=[ArtifactOut.from_artifact(item) for item in snapshot.artifacts],
        )
