"""Shared test fixtures."""

import asyncio
import io
from collections.abc import Callable
from dataclasses import dataclass, field

import pytest
from PIL import Image

from photo_studio.adapters.frame_source import FrameSource
from photo_studio.adapters.upload_client import UploadClient
from photo_studio.config import Settings
from photo_studio.containers import AppContainer
from photo_studio.domain.errors import TransportError
from photo_studio.domain.session import DeviceStatus, Frame
from photo_studio.domain.uploads import UploadRequest, UploadResponse
from photo_studio.services.compositor import FrameCompositor
from photo_studio.services.filters import FilterCatalog
from photo_studio.services.images import ImagePreprocessor
from photo_studio.services.sequencer import CaptureSequencer
from photo_studio.services.strip import StripExporter
from photo_studio.services.studio import StudioService
from photo_studio.services.uploads import UploadPipeline

# Countdown (4 x 1s) per shot plus a 0.4s pause between shots.
FULL_RUN_SECONDS = 12.8


def make_frame(width: int = 64, height: int = 48, color: tuple[int, int, int] = (200, 120, 40)) -> Frame:
    """Build a solid-colour RGB frame."""
    return Frame(width=width, height=height, pixels=bytes(color) * (width * height))


def make_jpeg(width: int = 64, height: int = 48, color: str = "orange") -> bytes:
    """Encode a solid-colour JPEG."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="JPEG")
    return buffer.getvalue()


@dataclass
class FakeFrameSource(FrameSource):
    """Frame source returning a fixed frame, optionally missing some reads."""

    device_status: DeviceStatus = DeviceStatus.READY
    frame: Frame = field(default_factory=make_frame)
    misses: int = 0
    reads: int = 0
    reconnects: int = 0
    status_checks: int = 0
    closed: bool = False

    def status(self) -> DeviceStatus:
        self.status_checks += 1
        return self.device_status

    def read_frame(self) -> Frame | None:
        self.reads += 1
        if self.misses > 0:
            self.misses -= 1
            return None
        return self.frame

    def reconnect(self) -> DeviceStatus:
        self.reconnects += 1
        self.device_status = DeviceStatus.READY
        return self.device_status

    def close(self) -> None:
        self.closed = True


@dataclass
class _ManualTimer:
    due: float
    order: int
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """Fast-forwardable clock for driving timed transitions in tests."""

    now: float = 0.0
    timers: list[_ManualTimer] = field(default_factory=list)
    _counter: int = 0

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualTimer:
        self._counter += 1
        timer = _ManualTimer(due=self.now + delay, order=self._counter, callback=callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for timer in self.timers if not timer.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [
                timer
                for timer in self.timers
                if not timer.cancelled and timer.due <= target + 1e-9
            ]
            if not due:
                break
            timer = min(due, key=lambda item: (item.due, item.order))
            self.timers.remove(timer)
            self.now = timer.due
            timer.callback()
        self.now = target


@dataclass
class FakeUploadClient(UploadClient):
    """Upload client that records requests and returns a canned response."""

    response: UploadResponse = field(
        default_factory=lambda: UploadResponse(
            status_code=200,
            text=(
                '{"success": true, "results": ['
                '{"url": "https://store/a.jpg", "uploaded": true}, '
                '{"url": "https://store/b.jpg", "uploaded": true}, '
                '{"url": "https://store/c.jpg", "uploaded": true}]}'
            ),
        )
    )
    error: str | None = None
    gate: asyncio.Event | None = None
    requests: list[UploadRequest] = field(default_factory=list)

    async def post_images(self, request: UploadRequest) -> UploadResponse:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise TransportError(self.error)
        return self.response

    async def close(self) -> None:
        return None


@pytest.fixture
def settings() -> Settings:
    return Settings(upload_base_url="https://store.test")


@pytest.fixture
def frame_source() -> FakeFrameSource:
    return FakeFrameSource()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def upload_client() -> FakeUploadClient:
    return FakeUploadClient()


@pytest.fixture
def sequencer(frame_source: FakeFrameSource, scheduler: ManualScheduler) -> CaptureSequencer:
    return CaptureSequencer(
        frame_source=frame_source,
        compositor=FrameCompositor(),
        catalog=FilterCatalog(),
        scheduler=scheduler,
    )


@pytest.fixture
def studio_service(
    sequencer: CaptureSequencer, upload_client: FakeUploadClient
) -> StudioService:
    return StudioService(
        sequencer=sequencer,
        upload_pipeline=UploadPipeline(
            client=upload_client, preprocessor=ImagePreprocessor(max_width=32)
        ),
        strip_exporter=StripExporter(),
    )


@pytest.fixture
def container(
    settings: Settings,
    frame_source: FakeFrameSource,
    upload_client: FakeUploadClient,
    studio_service: StudioService,
) -> AppContainer:
    async def close_resources() -> None:
        frame_source.close()

    return AppContainer(
        settings=settings,
        frame_source=frame_source,
        upload_client=upload_client,
        studio_service=studio_service,
        close_resources=close_resources,
    )
