"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from photo_studio.adapters.frame_source import FrameSource, OpenCVFrameSource
from photo_studio.adapters.scheduler import AsyncioScheduler
from photo_studio.adapters.upload_client import HttpxUploadClient, UploadClient
from photo_studio.config import Settings
from photo_studio.services.compositor import FrameCompositor
from photo_studio.services.filters import FilterCatalog
from photo_studio.services.images import ImagePreprocessor
from photo_studio.services.sequencer import CaptureSequencer
from photo_studio.services.strip import StripExporter
from photo_studio.services.studio import StudioService
from photo_studio.services.uploads import UploadPipeline


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    frame_source: FrameSource
    upload_client: UploadClient
    studio_service: StudioService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    frame_source = OpenCVFrameSource(camera_index=resolved_settings.camera_index)
    upload_client = HttpxUploadClient.create(
        base_url=resolved_settings.upload_base_url,
        timeout=resolved_settings.upload_timeout_seconds,
    )
    sequencer = CaptureSequencer(
        frame_source=frame_source,
        compositor=FrameCompositor(),
        catalog=FilterCatalog(),
        scheduler=AsyncioScheduler(),
        step_interval=resolved_settings.countdown_interval_seconds,
        cooldown=resolved_settings.cooldown_seconds,
        shots_per_session=resolved_settings.shots_per_session,
        max_frame_misses=resolved_settings.max_frame_misses,
    )
    upload_pipeline = UploadPipeline(
        client=upload_client,
        preprocessor=ImagePreprocessor(
            max_width=resolved_settings.preprocess_max_width,
            quality=resolved_settings.preprocess_quality,
        ),
    )
    studio_service = StudioService(
        sequencer=sequencer,
        upload_pipeline=upload_pipeline,
        strip_exporter=StripExporter(),
    )

    async def close_resources() -> None:
        await upload_client.close()
        frame_source.close()

    return AppContainer(
        settings=resolved_settings,
        frame_source=frame_source,
        upload_client=upload_client,
        studio_service=studio_service,
        close_resources=close_resources,
    )
