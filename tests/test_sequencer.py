"""Tests for the capture sequencer state machine."""

import pytest

from photo_studio.domain.errors import DeviceError, InvalidTransition, UnknownFilter
from photo_studio.domain.session import (
    COUNTDOWN_STEPS,
    DeviceStatus,
    SessionPhase,
    SessionSnapshot,
)
from photo_studio.services.compositor import FrameCompositor
from photo_studio.services.sequencer import (
    FRAME_MISS_MESSAGE,
    SHOT_SKIPPED_MESSAGE,
    CaptureSequencer,
)
from tests.conftest import (
    FULL_RUN_SECONDS,
    FakeFrameSource,
    ManualScheduler,
    make_frame,
)


def test_start_shows_first_countdown_token(sequencer: CaptureSequencer) -> None:
    snapshot = sequencer.start()

    assert snapshot.phase == SessionPhase.COUNTDOWN
    assert snapshot.countdown == "3"
    assert snapshot.generation == 1
    assert snapshot.is_capturing


def test_countdown_steps_are_held_for_one_interval(
    sequencer: CaptureSequencer, scheduler: ManualScheduler
) -> None:
    sequencer.start()

    scheduler.advance(0.99)
    assert sequencer.snapshot().countdown == "3"

    scheduler.advance(0.01)
    assert sequencer.snapshot().countdown == "2"

    scheduler.advance(2.0)
    snapshot = sequencer.snapshot()
    assert snapshot.countdown == "Smile 😄"
    assert snapshot.phase == SessionPhase.SMILE


def test_shot_is_followed_by_cooldown(
    sequencer: CaptureSequencer, scheduler: ManualScheduler
) -> None:
    sequencer.start()

    scheduler.advance(4.0)
    snapshot = sequencer.snapshot()
    assert snapshot.phase == SessionPhase.COOLDOWN
    assert snapshot.countdown is None
    assert len(snapshot.shots) == 1

    scheduler.advance(0.39)
    assert sequencer.snapshot().phase == SessionPhase.COOLDOWN

    scheduler.advance(0.01)
    assert sequencer.snapshot().countdown == "3"


def test_full_run_completes_with_three_shots(
    sequencer: CaptureSequencer, scheduler: ManualScheduler
) -> None:
    completed: list[SessionSnapshot] = []
    sequencer.on_complete.append(completed.append)
    sequencer.select_filter("noir")

    sequencer.start()
    scheduler.advance(FULL_RUN_SECONDS)

    snapshot = sequencer.snapshot()
    assert snapshot.phase == SessionPhase.COMPLETE
    assert snapshot.countdown is None
    assert len(snapshot.shots) == 3
    assert {shot.filter_name for shot in snapshot.shots} == {"Noir"}
    assert snapshot.countdown_history == COUNTDOWN_STEPS * 3
    assert len(completed) == 1
    assert scheduler.pending == 0


def test_start_is_rejected_mid_sequence(sequencer: CaptureSequencer) -> None:
    sequencer.start()

    with pytest.raises(InvalidTransition):
        sequencer.start()


def test_start_from_complete_begins_new_generation(
    sequencer: CaptureSequencer, scheduler: ManualScheduler
) -> None:
    sequencer.start()
    scheduler.advance(FULL_RUN_SECONDS)

    snapshot = sequencer.start()

    assert snapshot.generation == 2
    assert snapshot.shots == ()
    assert snapshot.countdown_history == ("3",)


def test_start_requires_ready_camera(
    sequencer: CaptureSequencer, frame_source: FakeFrameSource
) -> None:
    seen: list[SessionSnapshot] = []
    sequencer.on_change.append(seen.append)
    frame_source.device_status = DeviceStatus.DENIED

    with pytest.raises(DeviceError) as exc_info:
        sequencer.start()

    assert exc_info.value.status == DeviceStatus.DENIED
    assert [item.last_error for item in seen] == [str(exc_info.value)]
    snapshot = sequencer.snapshot()
    assert snapshot.phase == SessionPhase.IDLE
    assert snapshot.last_error is not None
    assert "denied" in snapshot.last_error.lower()


def test_frame_miss_retries_same_slot(
    sequencer: CaptureSequencer,
    scheduler: ManualScheduler,
    frame_source: FakeFrameSource,
) -> None:
    frame_source.misses = 1

    sequencer.start()
    scheduler.advance(4.0)
    assert sequencer.snapshot().shots == ()
    assert sequencer.snapshot().phase == SessionPhase.COOLDOWN

    scheduler.advance(FULL_RUN_SECONDS + 4.4)

    snapshot = sequencer.snapshot()
    assert snapshot.phase == SessionPhase.COMPLETE
    assert len(snapshot.shots) == 3
    assert snapshot.countdown_history == COUNTDOWN_STEPS * 4


def test_exhausted_slot_is_skipped_and_earlier_shots_are_kept(
    sequencer: CaptureSequencer,
    scheduler: ManualScheduler,
    frame_source: FakeFrameSource,
) -> None:
    completed: list[SessionSnapshot] = []
    sequencer.on_complete.append(completed.append)
    first, second = make_frame(color=(255, 0, 0)), make_frame(color=(0, 0, 255))
    compositor = FrameCompositor()

    frame_source.frame = first
    sequencer.start()
    scheduler.advance(4.0)
    frame_source.frame = second
    scheduler.advance(4.8)
    assert len(sequencer.snapshot().shots) == 2

    frame_source.misses = 100
    scheduler.advance(60)

    snapshot = sequencer.snapshot()
    assert snapshot.phase == SessionPhase.COMPLETE
    assert [shot.image_data for shot in snapshot.shots] == [
        compositor.capture(first, sequencer.selected_filter).image_data,
        compositor.capture(second, sequencer.selected_filter).image_data,
    ]
    assert snapshot.last_error == SHOT_SKIPPED_MESSAGE
    assert frame_source.reads == 2 + sequencer.max_frame_misses
    assert len(completed) == 1
    assert scheduler.pending == 0


def test_skipped_middle_slot_continues_to_next_countdown(
    sequencer: CaptureSequencer,
    scheduler: ManualScheduler,
    frame_source: FakeFrameSource,
) -> None:
    sequencer.start()
    scheduler.advance(4.0)
    frame_source.misses = sequencer.max_frame_misses

    scheduler.advance(60)

    snapshot = sequencer.snapshot()
    assert snapshot.phase == SessionPhase.COMPLETE
    assert len(snapshot.shots) == 2
    assert snapshot.countdown_history == COUNTDOWN_STEPS * 5


def test_run_without_any_shot_returns_to_idle(
    sequencer: CaptureSequencer,
    scheduler: ManualScheduler,
    frame_source: FakeFrameSource,
) -> None:
    aborted: list[str] = []
    sequencer.on_abort.append(lambda snapshot, reason: aborted.append(reason))
    frame_source.misses = 100

    sequencer.start()
    scheduler.advance(60)

    snapshot = sequencer.snapshot()
    assert snapshot.phase == SessionPhase.IDLE
    assert snapshot.shots == ()
    assert snapshot.last_error == FRAME_MISS_MESSAGE
    assert aborted == [FRAME_MISS_MESSAGE]
    assert frame_source.reads == 3 * sequencer.max_frame_misses


def test_reset_mid_sequence_cancels_pending_steps(
    sequencer: CaptureSequencer, scheduler: ManualScheduler
) -> None:
    sequencer.start()
    scheduler.advance(5.0)

    snapshot = sequencer.reset()
    scheduler.advance(30)

    assert snapshot.generation == 2
    current = sequencer.snapshot()
    assert current.phase == SessionPhase.IDLE
    assert current.shots == ()
    assert current.countdown is None


def test_filter_cannot_change_while_capturing(sequencer: CaptureSequencer) -> None:
    sequencer.start()

    with pytest.raises(InvalidTransition):
        sequencer.select_filter("Glitch")

    assert sequencer.selected_filter.name == "90s"


def test_unknown_filter_is_rejected(sequencer: CaptureSequencer) -> None:
    with pytest.raises(UnknownFilter):
        sequencer.select_filter("Sparkle")


def test_failing_listener_does_not_break_sequence(
    sequencer: CaptureSequencer, scheduler: ManualScheduler
) -> None:
    def explode(snapshot: SessionSnapshot) -> None:
        raise RuntimeError("boom")

    sequencer.on_change.append(explode)
    sequencer.start()
    scheduler.advance(FULL_RUN_SECONDS)

    assert sequencer.phase == SessionPhase.COMPLETE
