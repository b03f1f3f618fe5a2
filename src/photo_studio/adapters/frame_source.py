"""Live camera frame source adapter."""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import cv2

from photo_studio.domain.session import DeviceStatus, Frame

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """Interface for a live video capture device."""

    def status(self) -> DeviceStatus:
        """Return the current readiness of the device."""

    def read_frame(self) -> Frame | None:
        """Return the current frame, or None when no frame is ready."""

    def reconnect(self) -> DeviceStatus:
        """Release and re-acquire the device."""

    def close(self) -> None:
        """Release the device."""


@dataclass
class OpenCVFrameSource:
    """Frame source reading a camera through ``cv2.VideoCapture``.

    The device is opened lazily on first use. Frames are mirrored so the
    preview behaves like a selfie camera, and converted from BGR to RGB.
    """

    camera_index: int = 0
    mirror: bool = True
    _capture: Any = field(default=None, init=False, repr=False)
    _status: DeviceStatus = field(default=DeviceStatus.LOADING, init=False)

    def status(self) -> DeviceStatus:
        """Open the device if needed and report whether it is usable."""
        if self._capture is None:
            self._open()
        return self._status

    def read_frame(self) -> Frame | None:
        """Grab the current frame from the device."""
        if self.status() != DeviceStatus.READY:
            return None
        ok, image = self._capture.read()
        if not ok or image is None:
            return None
        if self.mirror:
            image = cv2.flip(image, 1)
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        height, width = rgb.shape[:2]
        return Frame(width=width, height=height, pixels=rgb.tobytes())

    def reconnect(self) -> DeviceStatus:
        """Release and re-open the device (the "retry camera" action)."""
        self.close()
        return self.status()

    def close(self) -> None:
        """Release the underlying capture handle."""
        if self._capture is not None:
            self._capture.release()
        self._capture = None
        self._status = DeviceStatus.LOADING

    def _open(self) -> None:
        capture = cv2.VideoCapture(self.camera_index)
        if not capture.isOpened():
            logger.warning("Camera %s could not be opened", self.camera_index)
            capture.release()
            self._capture = None
            self._status = DeviceStatus.ABSENT
            return
        self._capture = capture
        self._status = DeviceStatus.READY
