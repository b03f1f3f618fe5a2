"""Domain models for visual filters."""

from dataclasses import dataclass

GRAYSCALE = "grayscale"
SEPIA = "sepia"
HUE_ROTATE = "hue-rotate"
SATURATE = "saturate"
CONTRAST = "contrast"
BRIGHTNESS = "brightness"
BLUR = "blur"

OPERATION_KINDS = frozenset(
    {GRAYSCALE, SEPIA, HUE_ROTATE, SATURATE, CONTRAST, BRIGHTNESS, BLUR}
)


@dataclass(frozen=True)
class FilterOperation:
    """Single step of a filter chain.

    ``amount`` follows the units of the equivalent CSS filter function:
    a ratio for colour adjustments, degrees for ``hue-rotate`` and pixels
    for ``blur``.
    """

    kind: str
    amount: float

    def __post_init__(self) -> None:
        if self.kind not in OPERATION_KINDS:
            raise ValueError(f"Unsupported filter operation: {self.kind}")


@dataclass(frozen=True)
class FilterSpec:
    """Named filter with its ordered rendering parameters."""

    name: str
    operations: tuple[FilterOperation, ...] = ()

    @property
    def css_class(self) -> str:
        """Return the display token used by booth front-ends."""
        lowered = self.name.lower()
        if lowered[:1].isdigit():
            return f"_{lowered}"
        return lowered
