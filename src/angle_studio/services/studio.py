"""Studio session state driving the generation workflow."""

import logging
from dataclasses import dataclass, field, replace

from angle_studio.domain.errors import (
    ArtifactNotFoundError,
    StudioBusyError,
    StudioError,
)
from angle_studio.domain.images import BatchRequest, GeneratedArtifact
from angle_studio.services.authorization import AuthorizationState
from angle_studio.services.images import ImageGenerationService
from angle_studio.services.results import ResultStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudioSnapshot:
    """Read-only view of the studio state for rendering."""

    authorized: bool
    has_source_image: bool
    is_generating: bool
    is_upscaling: bool
    error: str | None
    viewing_id: str | None
    artifacts: list[GeneratedArtifact]


@dataclass
class StudioService:
    """Holds form and viewer state and applies results to the store."""

    image_service: ImageGenerationService
    results: ResultStore
    authorization: AuthorizationState
    source_image: bytes | None = field(default=None, repr=False)
    error: str | None = None
    viewing_id: str | None = None
    is_generating: bool = False
    is_upscaling: bool = False

    def set_source_image(self, image: bytes) -> None:
        """Store a new source image and clear results from the previous one."""
        self.source_image = image
        self.results.clear()
        self.viewing_id = None

    async def run(self, request: BatchRequest) -> list[GeneratedArtifact]:
        """Run a batch request and replace the results on success."""
        if self.is_generating:
            raise StudioBusyError("A generation is already in progress.")
        self.error = None
        if request.source_image is None and self.source_image is not None:
            request = replace(request, source_image=self.source_image)

        self.is_generating = True
        try:
            artifacts = await self.image_service.submit(request, self.authorization)
        except StudioError as exc:
            self.error = str(exc)
            raise
        finally:
            self.is_generating = False

        self.results.replace_all(artifacts)
        if self.viewing_id is not None and self.results.select(self.viewing_id) is None:
            self.viewing_id = None
        _logger.info(
            "Batch completed: mode=%s artifacts=%s", request.mode, len(artifacts)
        )
        return artifacts

    async def upscale(self, artifact_id: str) -> GeneratedArtifact:
        """Upscale a stored artifact, prepend the result and open it."""
        artifact = self.get(artifact_id)
        if self.is_upscaling:
            raise StudioBusyError("An upscale is already in progress.")

        self.is_upscaling = True
        try:
            upscaled = await self.image_service.upscale(artifact, self.authorization)
        except StudioError as exc:
            self.error = str(exc)
            raise
        finally:
            self.is_upscaling = False

        self.viewing_id = upscaled.id
        self.results.prepend(upscaled)
        return upscaled

    def get(self, artifact_id: str) -> GeneratedArtifact:
        artifact = self.results.select(artifact_id)
        if artifact is None:
            raise ArtifactNotFoundError(f"Image {artifact_id} was not found.")
        return artifact

    def view(self, artifact_id: str) -> GeneratedArtifact:
        """Open an artifact in the viewer."""
        artifact = self.get(artifact_id)
        self.viewing_id = artifact.id
        return artifact

    def close_view(self) -> None:
        self.viewing_id = None

    def snapshot(self) -> StudioSnapshot:
        return StudioSnapshot(
            authorized=self.authorization.authorized,
            has_source_image=self.source_image is not None,
            is_generating=self.is_generating,
            is_upscaling=self.is_upscaling,
            error=self.error,
            viewing_id=self.viewing_id,
            artifacts=self.results.list_artifacts(),
        )
