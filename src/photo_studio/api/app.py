"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, Response

from photo_studio.api.models import FilterSelection
from photo_studio.app_logging import configure_logging
from photo_studio.containers import AppContainer
from photo_studio.domain.errors import DeviceError, InvalidTransition, UnknownFilter
from photo_studio.domain.filters import FilterSpec
from photo_studio.domain.session import SessionSnapshot
from photo_studio.domain.uploads import UploadStatus
from photo_studio.services.studio import StudioService


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        frame_source = app.state.container.frame_source
        camera = await asyncio.to_thread(frame_source.status)
        logger.info("Camera status at startup: %s", camera)
        yield
        try:
            await app.state.container.close_resources()
        except Exception:
            logger.exception("Failed to release studio resources")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/filters")
    async def list_filters(request: Request) -> dict[str, object]:
        """Return the filters in display order."""
        studio = _studio(request)
        return {"filters": [_format_filter(spec) for spec in studio.filters()]}

    @app.get("/camera")
    async def camera_status(request: Request) -> dict[str, str]:
        """Report the capture device status."""
        return {"status": await asyncio.to_thread(_studio(request).camera_status)}

    @app.post("/camera/retry")
    async def retry_camera(request: Request) -> dict[str, str]:
        """Release and re-acquire the capture device."""
        return {"status": await asyncio.to_thread(_studio(request).retry_camera)}

    @app.get("/session")
    async def get_session(request: Request) -> dict[str, object]:
        """Return the current session and its upload status."""
        studio = _studio(request)
        return _format_session(studio.snapshot(), studio.upload_status())

    @app.put("/session/filter")
    async def select_filter(
        selection: FilterSelection, request: Request
    ) -> dict[str, object]:
        """Choose the filter for the next run."""
        studio = _studio(request)
        try:
            spec = studio.select_filter(selection.name)
        except UnknownFilter as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        except InvalidTransition as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        return {"filter": _format_filter(spec)}

    @app.post("/session/start")
    async def start_session(request: Request) -> dict[str, object]:
        """Begin the countdown for a new run."""
        studio = _studio(request)
        try:
            snapshot = studio.start()
        except DeviceError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={"status": exc.status, "message": str(exc)},
            ) from exc
        except InvalidTransition as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        return _format_session(snapshot, studio.upload_status())

    @app.post("/session/retake")
    async def retake(request: Request) -> dict[str, object]:
        """Discard the current session so a new run can begin."""
        studio = _studio(request)
        return _format_session(studio.retake(), studio.upload_status())

    @app.post("/session/back")
    async def back(request: Request) -> dict[str, object]:
        """Leave the studio screen."""
        studio = _studio(request)
        return _format_session(studio.back(), studio.upload_status())

    @app.get("/session/shots/{index}")
    async def get_shot(index: int, request: Request) -> Response:
        """Return one captured shot as JPEG."""
        try:
            shot = _studio(request).shot(index)
        except IndexError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from None
        return Response(
            content=shot.image_data,
            media_type="image/jpeg",
            headers={"X-Filter": shot.filter_name},
        )

    @app.get("/session/strip")
    async def download_strip(
        request: Request,
        strip_format: Literal["jpeg", "data-uri"] = Query("jpeg", alias="format"),
    ) -> Response:
        """Return the composited strip as a JPEG download or a data URI."""
        try:
            artifact = _studio(request).download_strip()
        except InvalidTransition as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        if strip_format == "data-uri":
            return JSONResponse(
                {
                    "filename": artifact.filename,
                    "caption": artifact.caption,
                    "data_uri": artifact.data_uri,
                }
            )
        return Response(
            content=artifact.content,
            media_type=artifact.media_type,
            headers={
                "Content-Disposition": f'attachment; filename="{artifact.filename}"',
                "Cache-Control": "no-cache, no-store, must-revalidate",
            },
        )

    return app


def _studio(request: Request) -> StudioService:
    container: AppContainer = request.app.state.container
    return container.studio_service


def _format_filter(spec: FilterSpec) -> dict[str, str]:
    return {"name": spec.name, "css_class": spec.css_class}


def _format_session(
    snapshot: SessionSnapshot, upload: UploadStatus
) -> dict[str, object]:
    """Build the JSON view of a session and its upload."""
    outcome = upload.outcome
    return {
        "generation": snapshot.generation,
        "phase": snapshot.phase,
        "countdown": snapshot.countdown,
        "is_capturing": snapshot.is_capturing,
        "selected_filter": snapshot.selected_filter,
        "shots": [
            {"index": index, "filter": shot.filter_name}
            for index, shot in enumerate(snapshot.shots)
        ],
        "last_error": snapshot.last_error,
        "upload": {
            "generation": upload.generation,
            "state": upload.state,
            "error": outcome.error_message if outcome else None,
            "results": [
                {"url": result.url, "uploaded": result.uploaded}
                for result in upload.per_image_results
            ],
        },
    }
