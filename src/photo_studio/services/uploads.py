"""Upload pipeline for completed capture sessions."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from pydantic import ValidationError

from photo_studio.adapters.upload_client import UploadClient
from photo_studio.domain.errors import ProtocolError, ServerError, UploadError
from photo_studio.domain.session import CapturedShot, SessionSnapshot
from photo_studio.domain.uploads import (
    ImageUploadResult,
    UploadImage,
    UploadOutcome,
    UploadRequest,
    UploadResponse,
    UploadResponsePayload,
    UploadState,
    UploadStatus,
)
from photo_studio.services.images import ImagePreprocessor, to_data_url

logger = logging.getLogger(__name__)

BODY_PREVIEW_CHARS = 200


@dataclass
class UploadPipeline:
    """Uploads each completed session generation at most once.

    The pipeline tracks the generation it currently serves. A completion
    for that generation starts one upload; repeated completions, or a
    completion after an outcome was recorded, are ignored. Results that
    arrive after the generation moved on are discarded.
    """

    client: UploadClient
    preprocessor: ImagePreprocessor = field(default_factory=ImagePreprocessor)
    _generation: int = field(default=0, init=False)
    _state: UploadState = field(default=UploadState.IDLE, init=False)
    _outcome: UploadOutcome | None = field(default=None, init=False)
    _task: asyncio.Task[UploadOutcome] | None = field(default=None, init=False)
    _tasks: set[asyncio.Task[UploadOutcome]] = field(default_factory=set, init=False)

    def status(self) -> UploadStatus:
        """Return the upload status of the current generation."""
        return UploadStatus(
            generation=self._generation, state=self._state, outcome=self._outcome
        )

    def observe(self, generation: int) -> None:
        """Follow a newer session generation, dropping older upload state."""
        if generation <= self._generation:
            return
        if self._state == UploadState.UPLOADING:
            logger.info(
                "Generation %d superseded while uploading; result will be discarded",
                self._generation,
            )
        self._generation = generation
        self._state = UploadState.IDLE
        self._outcome = None
        self._task = None

    def schedule(self, snapshot: SessionSnapshot) -> asyncio.Task[UploadOutcome] | None:
        """Start the upload for a completed session if none exists yet."""
        if snapshot.generation < self._generation:
            logger.debug("Ignoring completion of stale generation %d", snapshot.generation)
            return None
        self.observe(snapshot.generation)
        if not snapshot.is_complete or not snapshot.shots:
            return None
        if self._state != UploadState.IDLE:
            logger.debug(
                "Upload for generation %d already %s", snapshot.generation, self._state
            )
            return None

        self._state = UploadState.UPLOADING
        task = asyncio.get_running_loop().create_task(self._run(snapshot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._task = task
        return task

    async def wait(self) -> UploadOutcome | None:
        """Wait for the in-flight upload of the current generation, if any."""
        task = self._task
        if task is not None:
            await task
        return self._outcome

    async def upload(self, snapshot: SessionSnapshot) -> UploadOutcome:
        """Preprocess, transmit and interpret one session's images."""
        generation = snapshot.generation
        try:
            shots = await self.preprocessor.prepare(snapshot.shots)
            request = build_request(generation, shots)
            response = await self.client.post_images(request)
            results = interpret_response(response, len(shots))
        except UploadError as exc:
            logger.warning(
                "Upload for generation %d failed (%s): %s", generation, exc.kind, exc
            )
            return UploadOutcome(
                generation=generation,
                succeeded=False,
                error_message=str(exc),
                error_kind=exc.kind,
            )
        uploaded = sum(1 for result in results if result.uploaded)
        logger.info(
            "Upload for generation %d succeeded (%d/%d images stored)",
            generation,
            uploaded,
            len(results),
        )
        return UploadOutcome(
            generation=generation, succeeded=True, per_image_results=results
        )

    async def _run(self, snapshot: SessionSnapshot) -> UploadOutcome:
        try:
            outcome = await self.upload(snapshot)
        except Exception as exc:
            logger.exception("Unexpected upload failure")
            outcome = UploadOutcome(
                generation=snapshot.generation,
                succeeded=False,
                error_message=str(exc) or exc.__class__.__name__,
                error_kind="unexpected",
            )
        if outcome.generation != self._generation:
            logger.info("Discarding stale upload result for generation %d", outcome.generation)
            return outcome
        self._outcome = outcome
        self._state = UploadState.SUCCEEDED if outcome.succeeded else UploadState.FAILED
        return outcome


def build_request(generation: int, shots: Sequence[CapturedShot]) -> UploadRequest:
    """Serialize shots as data URIs in capture order."""
    return UploadRequest(
        generation=generation,
        images=tuple(
            UploadImage(src=to_data_url(shot.image_data), filter=shot.filter_name)
            for shot in shots
        ),
    )


def interpret_response(
    response: UploadResponse, image_count: int
) -> tuple[ImageUploadResult, ...]:
    """Return per-image results, or raise a typed upload error."""
    try:
        payload = UploadResponsePayload.model_validate_json(response.text)
    except ValidationError as exc:
        preview = response.text[:BODY_PREVIEW_CHARS] or "(empty body)"
        raise ProtocolError(
            f"Invalid response from server (HTTP {response.status_code}): {preview}"
        ) from exc

    if response.is_success and payload.success:
        return _align_results(payload, image_count)
    if payload.error:
        raise ServerError(payload.error)
    raise ServerError(f"Upload failed with status {response.status_code}")


def _align_results(
    payload: UploadResponsePayload, image_count: int
) -> tuple[ImageUploadResult, ...]:
    results = []
    for index in range(image_count):
        if index < len(payload.results):
            item = payload.results[index]
            results.append(ImageUploadResult(url=item.url, uploaded=item.uploaded))
        else:
            results.append(ImageUploadResult(url=None, uploaded=False))
    return tuple(results)
