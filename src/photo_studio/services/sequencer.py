"""Timer-driven state machine for a multi-shot capture run."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from photo_studio.adapters.frame_source import FrameSource
from photo_studio.adapters.scheduler import Scheduler, TimerHandle
from photo_studio.domain.errors import DeviceError, FrameMiss, InvalidTransition
from photo_studio.domain.filters import FilterSpec
from photo_studio.domain.session import (
    COUNTDOWN_STEPS,
    SHOTS_PER_SESSION,
    DeviceStatus,
    Session,
    SessionPhase,
    SessionSnapshot,
)
from photo_studio.services.compositor import FrameCompositor
from photo_studio.services.filters import DEFAULT_FILTER, FilterCatalog

logger = logging.getLogger(__name__)

DEVICE_MESSAGES: dict[DeviceStatus, str] = {
    DeviceStatus.LOADING: "Camera is still initializing.",
    DeviceStatus.DENIED: "Camera access denied. Please allow camera permissions.",
    DeviceStatus.ABSENT: "No camera found. Please connect a camera and retry.",
    DeviceStatus.UNSUPPORTED: "Camera not supported on this device.",
}
FRAME_MISS_MESSAGE = "Could not capture a photo from the camera. Please retry."
SHOT_SKIPPED_MESSAGE = "A photo could not be captured and was skipped."

SnapshotListener = Callable[[SessionSnapshot], None]
AbortListener = Callable[[SessionSnapshot, str], None]


@dataclass
class CaptureSequencer:
    """Runs countdown, capture and cooldown for each shot of a session.

    Every timed step is a scheduled transition rather than a sleep, so the
    host loop stays responsive and tests can fast-forward the clock. A slot
    whose frame keeps missing is skipped; shots already taken are kept. Each
    run carries a generation number; callbacks scheduled for an older
    generation are ignored once ``reset`` or ``start`` supersedes them.
    """

    frame_source: FrameSource
    compositor: FrameCompositor
    catalog: FilterCatalog
    scheduler: Scheduler
    step_interval: float = 1.0
    cooldown: float = 0.4
    shots_per_session: int = SHOTS_PER_SESSION
    max_frame_misses: int = 3
    on_change: list[SnapshotListener] = field(default_factory=list)
    on_complete: list[SnapshotListener] = field(default_factory=list)
    on_abort: list[AbortListener] = field(default_factory=list)
    _session: Session = field(init=False)
    _selected: FilterSpec = field(init=False)
    _pending: TimerHandle | None = field(default=None, init=False)
    _step_index: int = field(default=0, init=False)
    _slot: int = field(default=0, init=False)
    _misses: int = field(default=0, init=False)
    _last_error: str | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self._session = Session(generation=0)
        if DEFAULT_FILTER in self.catalog:
            self._selected = self.catalog.resolve(DEFAULT_FILTER)
        else:
            self._selected = next(iter(self.catalog))

    @property
    def generation(self) -> int:
        return self._session.generation

    @property
    def phase(self) -> SessionPhase:
        return self._session.phase

    @property
    def selected_filter(self) -> FilterSpec:
        return self._selected

    def snapshot(self) -> SessionSnapshot:
        """Return a read-only view of the current session."""
        session = self._session
        return SessionSnapshot(
            generation=session.generation,
            phase=session.phase,
            countdown=session.countdown,
            shots=tuple(session.shots),
            selected_filter=self._selected.name,
            last_error=self._last_error,
            countdown_history=tuple(session.countdown_history),
        )

    def select_filter(self, name: str) -> FilterSpec:
        """Choose the filter used for subsequent shots."""
        if self.snapshot().is_capturing:
            raise InvalidTransition("Cannot change filter while capturing")
        self._selected = self.catalog.resolve(name)
        self._emit_change()
        return self._selected

    def start(self) -> SessionSnapshot:
        """Begin a new run from ``Idle`` or ``Complete``."""
        if self._session.phase not in {SessionPhase.IDLE, SessionPhase.COMPLETE}:
            raise InvalidTransition(f"Cannot start while {self._session.phase}")

        status = self.frame_source.status()
        if status != DeviceStatus.READY:
            message = DEVICE_MESSAGES.get(status, "Camera unavailable.")
            self._last_error = message
            logger.warning("Camera not ready (%s); session not started", status)
            self._emit_change()
            raise DeviceError(status, message)

        self._cancel_pending()
        self._session = Session(generation=self._session.generation + 1)
        self._last_error = None
        self._slot = 0
        self._misses = 0
        logger.info(
            "Starting capture session %d with filter %s",
            self._session.generation,
            self._selected.name,
        )
        self._begin_shot()
        return self.snapshot()

    def reset(self) -> SessionSnapshot:
        """Discard shots and return to ``Idle`` under a new generation."""
        self._cancel_pending()
        previous = self._session
        self._session = Session(generation=previous.generation + 1)
        self._last_error = None
        self._slot = 0
        self._misses = 0
        logger.info(
            "Session %d reset from %s", previous.generation, previous.phase
        )
        self._emit_change()
        return self.snapshot()

    def _begin_shot(self) -> None:
        self._step_index = 0
        self._show_step()

    def _show_step(self) -> None:
        token = COUNTDOWN_STEPS[self._step_index]
        session = self._session
        is_last = self._step_index == len(COUNTDOWN_STEPS) - 1
        session.phase = SessionPhase.SMILE if is_last else SessionPhase.COUNTDOWN
        session.countdown = token
        session.countdown_history.append(token)
        self._emit_change()
        self._schedule(self.step_interval, self._advance_step)

    def _advance_step(self) -> None:
        self._step_index += 1
        if self._step_index < len(COUNTDOWN_STEPS):
            self._show_step()
        else:
            self._capture()

    def _capture(self) -> None:
        session = self._session
        session.phase = SessionPhase.CAPTURING
        self._emit_change()
        try:
            shot = self.compositor.capture(
                self.frame_source.read_frame(), self._selected
            )
        except FrameMiss as exc:
            self._misses += 1
            logger.warning(
                "Frame miss on slot %d of session %d (%d/%d): %s",
                self._slot + 1,
                session.generation,
                self._misses,
                self.max_frame_misses,
                exc,
            )
            if self._misses < self.max_frame_misses:
                self._cool_down()
                return
            logger.warning(
                "Skipping slot %d of session %d", self._slot + 1, session.generation
            )
            self._last_error = SHOT_SKIPPED_MESSAGE
        else:
            session.shots.append(shot)

        self._misses = 0
        self._slot += 1
        if self._slot < self.shots_per_session:
            self._cool_down()
        elif session.shots:
            self._complete()
        else:
            self._abort(FRAME_MISS_MESSAGE)

    def _cool_down(self) -> None:
        session = self._session
        session.countdown = None
        session.phase = SessionPhase.COOLDOWN
        self._emit_change()
        self._schedule(self.cooldown, self._begin_shot)

    def _complete(self) -> None:
        session = self._session
        session.countdown = None
        session.phase = SessionPhase.COMPLETE
        logger.info(
            "Session %d complete with %d shots", session.generation, len(session.shots)
        )
        snapshot = self.snapshot()
        self._emit_change()
        for listener in list(self.on_complete):
            self._call_listener(listener, snapshot)

    def _abort(self, reason: str) -> None:
        session = self._session
        session.countdown = None
        session.phase = SessionPhase.IDLE
        self._last_error = reason
        logger.warning("Session %d abandoned: %s", session.generation, reason)
        snapshot = self.snapshot()
        self._emit_change()
        for listener in list(self.on_abort):
            self._call_listener(listener, snapshot, reason)

    def _schedule(self, delay: float, action: Callable[[], None]) -> None:
        generation = self._session.generation

        def fire() -> None:
            if generation != self._session.generation:
                return
            self._pending = None
            action()

        self._pending = self.scheduler.call_later(delay, fire)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _emit_change(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self.on_change):
            self._call_listener(listener, snapshot)

    def _call_listener(self, listener: Callable[..., None], *args: object) -> None:
        try:
            listener(*args)
        except Exception:
            logger.exception("Session listener failed")
