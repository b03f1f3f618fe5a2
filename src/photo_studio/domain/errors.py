"""Error taxonomy for the photo studio."""


class PhotoStudioError(Exception):
    """Base error for the photo studio."""


class UnknownFilter(PhotoStudioError, LookupError):
    """Requested filter is not registered in the catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown filter: {name!r}")
        self.name = name


class InvalidTransition(PhotoStudioError):
    """Operation is not legal in the current session phase."""


class DeviceError(PhotoStudioError):
    """Capture device is unavailable, denied or unsupported."""

    def __init__(self, status: str, message: str) -> None:
        super().__init__(message)
        self.status = status


class FrameMiss(PhotoStudioError):
    """No ready frame was available at the capture point."""


NoFrameAvailable = FrameMiss


class PreprocessError(PhotoStudioError):
    """An image could not be decoded or re-encoded."""


class UploadError(PhotoStudioError):
    """Base error for upload failures."""

    kind = "upload"


class TransportError(UploadError):
    """The upload request never completed."""

    kind = "transport"


class ProtocolError(UploadError):
    """The response body was not in the expected format."""

    kind = "protocol"


class ServerError(UploadError):
    """The remote store reported a failure."""

    kind = "server"
