"""Facade tying the capture sequence, upload and strip export together."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from photo_studio.domain.errors import InvalidTransition
from photo_studio.domain.filters import FilterSpec
from photo_studio.domain.session import CapturedShot, DeviceStatus, SessionSnapshot
from photo_studio.domain.strip import StripArtifact
from photo_studio.domain.uploads import UploadStatus
from photo_studio.services.sequencer import CaptureSequencer
from photo_studio.services.strip import StripExporter
from photo_studio.services.uploads import UploadPipeline

logger = logging.getLogger(__name__)


def _stay() -> None:
    return None


@dataclass
class StudioService:
    """Single entry point for the studio screen."""

    sequencer: CaptureSequencer
    upload_pipeline: UploadPipeline
    strip_exporter: StripExporter
    navigate_back: Callable[[], None] = field(default=_stay)

    def __post_init__(self) -> None:
        self.sequencer.on_change.append(self._follow_generation)
        self.sequencer.on_complete.append(self._upload_completed)

    def snapshot(self) -> SessionSnapshot:
        return self.sequencer.snapshot()

    def upload_status(self) -> UploadStatus:
        return self.upload_pipeline.status()

    def filters(self) -> list[FilterSpec]:
        return list(self.sequencer.catalog)

    def camera_status(self) -> DeviceStatus:
        return self.sequencer.frame_source.status()

    def select_filter(self, name: str) -> FilterSpec:
        return self.sequencer.select_filter(name)

    def start(self) -> SessionSnapshot:
        return self.sequencer.start()

    def retake(self) -> SessionSnapshot:
        """Discard the session and its upload so a new run can begin."""
        return self.sequencer.reset()

    def back(self) -> SessionSnapshot:
        """Leave the studio, cancelling any run in progress."""
        snapshot = self.sequencer.reset()
        self.navigate_back()
        return snapshot

    def retry_camera(self) -> DeviceStatus:
        status = self.sequencer.frame_source.reconnect()
        logger.info("Camera reconnect returned %s", status)
        return status

    def shot(self, index: int) -> CapturedShot:
        """Return one captured shot; raises IndexError when out of range."""
        shots = self.sequencer.snapshot().shots
        if index < 0:
            raise IndexError(index)
        return shots[index]

    def download_strip(self) -> StripArtifact:
        """Export the finished session as a single strip."""
        snapshot = self.sequencer.snapshot()
        if not snapshot.is_complete:
            raise InvalidTransition("Strip is available once the session is complete")
        return self.strip_exporter.export(snapshot.shots)

    def _follow_generation(self, snapshot: SessionSnapshot) -> None:
        self.upload_pipeline.observe(snapshot.generation)

    def _upload_completed(self, snapshot: SessionSnapshot) -> None:
        self.upload_pipeline.schedule(snapshot)
