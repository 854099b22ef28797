"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status

from angle_studio.api.studio_models import (
    ApiKeyIn,
    ArtifactOut,
    AuthStatusOut,
    BatchRequestIn,
    SourceImageIn,
    StudioStateOut,
)
from angle_studio.api.studio_ui import router as ui_router
from angle_studio.app_logging import configure_logging
from angle_studio.containers import AppContainer
from angle_studio.domain.errors import (
    AlreadyUpscaledError,
    ArtifactNotFoundError,
    AuthorizationError,
    StudioBusyError,
    StudioError,
    ValidationError,
)
from angle_studio.services.images import decode_image_data


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.authorization_service.refresh()
        except Exception:
            logger.exception("Failed to query API key selection")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(ui_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/state")
    async def studio_state(request: Request) -> StudioStateOut:
        """Return the current studio snapshot."""
        state_container: AppContainer = request.app.state.container
        return StudioStateOut.from_snapshot(
            state_container.studio_service.snapshot()
        )

    @app.get("/auth/status")
    async def auth_status(request: Request) -> AuthStatusOut:
        """Return whether generation is currently authorized."""
        state_container: AppContainer = request.app.state.container
        return AuthStatusOut(
            authorized=state_container.authorization_service.state.authorized
        )

    @app.post("/auth/refresh")
    async def auth_refresh(request: Request) -> AuthStatusOut:
        """Re-query the key selector."""
        state_container: AppContainer = request.app.state.container
        authorized = await state_container.authorization_service.refresh()
        return AuthStatusOut(authorized=authorized)

    @app.post("/auth/key")
    async def auth_select_key(body: ApiKeyIn, request: Request) -> AuthStatusOut:
        """Select an API key and mark the studio authorized."""
        state_container: AppContainer = request.app.state.container
        authorized = await state_container.authorization_service.select_key(
            body.api_key
        )
        return AuthStatusOut(authorized=authorized)

    @app.post("/source")
    async def upload_source(body: SourceImageIn, request: Request) -> StudioStateOut:
        """Store the sample image used by the angle variations."""
        state_container: AppContainer = request.app.state.container
        try:
            image = decode_image_data(body.image)
        except StudioError as exc:
            raise _http_error(exc) from exc
        state_container.studio_service.set_source_image(image)
        return StudioStateOut.from_snapshot(
            state_container.studio_service.snapshot()
        )

    @app.post("/batches")
    async def run_batch(body: BatchRequestIn, request: Request) -> list[ArtifactOut]:
        """Generate an image or the seven angle variations."""
        state_container: AppContainer = request.app.state.container
        try:
            artifacts = await state_container.studio_service.run(body.to_domain())
        except StudioError as exc:
            raise _http_error(exc) from exc
        return [ArtifactOut.from_artifact(artifact) for artifact in artifacts]

    @app.get("/images")
    async def list_images(request: Request) -> list[ArtifactOut]:
        """Return the results grid in display order."""
        state_container: AppContainer = request.app.state.container
        return [
            ArtifactOut.from_artifact(artifact)
            for artifact in state_container.studio_service.results.list_artifacts()
        ]

    @app.get("/images/{artifact_id}")
    async def view_image(artifact_id: str, request: Request) -> ArtifactOut:
        """Open an image in the viewer."""
        state_container: AppContainer = request.app.state.container
        try:
            artifact = state_container.studio_service.view(artifact_id)
        except StudioError as exc:
            raise _http_error(exc) from exc
        return ArtifactOut.from_artifact(artifact)

    @app.get("/images/{artifact_id}/content")
    async def image_content(artifact_id: str, request: Request) -> Response:
        """Return the encoded image bytes."""
        state_container: AppContainer = request.app.state.container
        try:
            artifact = state_container.studio_service.get(artifact_id)
        except StudioError as exc:
            raise _http_error(exc) from exc
        return Response(content=artifact.payload, media_type=artifact.media_type)

    @app.get("/images/{artifact_id}/download")
    async def download_image(artifact_id: str, request: Request) -> Response:
        """Return the image as a file attachment."""
        state_container: AppContainer = request.app.state.container
        try:
            artifact = state_container.studio_service.get(artifact_id)
        except StudioError as exc:
            raise _http_error(exc) from exc
        return Response(
            content=artifact.payload,
            media_type=artifact.media_type,
            headers={
                "Content-Disposition": (
                    f'attachment; filename="image-{artifact.id}.png"'
                )
            },
        )

    @app.post("/images/{artifact_id}/upscale")
    async def upscale_image(artifact_id: str, request: Request) -> ArtifactOut:
        """Upscale an image to the ultra tier."""
        state_container: AppContainer = request.app.state.container
        try:
            artifact = await state_container.studio_service.upscale(artifact_id)
        except StudioError as exc:
            raise _http_error(exc) from exc
        return ArtifactOut.from_artifact(artifact)

    @app.delete("/viewer")
    async def close_viewer(request: Request) -> dict[str, str]:
        """Close the image viewer."""
        state_container: AppContainer = request.app.state.container
        state_container.studio_service.close_view()
        return {"status": "ok"}

    return app


def _http_error(exc: StudioError) -> HTTPException:
    """Map a studio error to an HTTP error carrying its message verbatim."""
    return HTTPException(status_code=_status_for(exc), detail=str(exc))


def _status_for(exc: StudioError) -> int:
    if isinstance(exc, ArtifactNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, AlreadyUpscaledError | StudioBusyError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, AuthorizationError):
        return status.HTTP_401_UNAUTHORIZED
    return status.HTTP_502_BAD_GATEWAY
