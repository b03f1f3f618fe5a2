"""Domain models for capture sessions."""

from dataclasses import dataclass, field
from enum import StrEnum

COUNTDOWN_STEPS: tuple[str, ...] = ("3", "2", "1", "Smile 😄")
SHOTS_PER_SESSION = 3


class SessionPhase(StrEnum):
    """Visible phases of a capture run."""

    IDLE = "idle"
    COUNTDOWN = "countdown"
    SMILE = "smile"
    CAPTURING = "capturing"
    COOLDOWN = "cooldown"
    COMPLETE = "complete"


class DeviceStatus(StrEnum):
    """Readiness reported by a frame source."""

    READY = "ready"
    LOADING = "loading"
    DENIED = "denied"
    ABSENT = "absent"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class Frame:
    """Raw RGB frame pulled from a capture device."""

    width: int
    height: int
    pixels: bytes


@dataclass(frozen=True)
class CapturedShot:
    """Encoded still image plus the filter it was rendered with."""

    image_data: bytes
    filter_name: str


@dataclass
class Session:
    """Mutable state of one capture run, owned by the sequencer."""

    generation: int
    phase: SessionPhase = SessionPhase.IDLE
    countdown: str | None = None
    shots: list[CapturedShot] = field(default_factory=list)
    countdown_history: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session handed to collaborators."""

    generation: int
    phase: SessionPhase
    countdown: str | None
    shots: tuple[CapturedShot, ...]
    selected_filter: str
    last_error: str | None = None
    countdown_history: tuple[str, ...] = ()

    @property
    def is_capturing(self) -> bool:
        return self.phase not in {SessionPhase.IDLE, SessionPhase.COMPLETE}

    @property
    def is_complete(self) -> bool:
        return self.phase == SessionPhase.COMPLETE
