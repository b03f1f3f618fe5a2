"""Catalog of the booth's visual filters."""

from collections.abc import Iterable, Iterator

from photo_studio.domain.errors import UnknownFilter
from photo_studio.domain.filters import (
    BLUR,
    BRIGHTNESS,
    CONTRAST,
    GRAYSCALE,
    HUE_ROTATE,
    SATURATE,
    SEPIA,
    FilterOperation,
    FilterSpec,
)

DEFAULT_FILTER = "90s"


def _chain(*steps: tuple[str, float]) -> tuple[FilterOperation, ...]:
    return tuple(FilterOperation(kind=kind, amount=amount) for kind, amount in steps)


DEFAULT_FILTERS: tuple[FilterSpec, ...] = (
    FilterSpec(
        "90s",
        _chain(
            (CONTRAST, 1.1),
            (SEPIA, 0.3),
            (HUE_ROTATE, -10),
            (SATURATE, 0.8),
            (BRIGHTNESS, 1.1),
        ),
    ),
    FilterSpec(
        "2000s",
        _chain(
            (SATURATE, 1.8),
            (CONTRAST, 1.05),
            (BRIGHTNESS, 1.1),
            (SEPIA, 0.1),
            (HUE_ROTATE, 10),
        ),
    ),
    FilterSpec("Noir", _chain((GRAYSCALE, 1), (CONTRAST, 0.8), (BRIGHTNESS, 1.1))),
    FilterSpec("Fisheye", _chain((BRIGHTNESS, 1.1))),
    FilterSpec("Rainbow", _chain((HUE_ROTATE, 90))),
    FilterSpec("Glitch", _chain((CONTRAST, 1.5), (SATURATE, 2))),
    FilterSpec("Crosshatch", _chain((GRAYSCALE, 0.5), (BLUR, 1))),
)


class FilterCatalog:
    """Fixed, ordered set of filters; order is the display order."""

    def __init__(self, filters: Iterable[FilterSpec] = DEFAULT_FILTERS) -> None:
        self._filters: dict[str, FilterSpec] = {}
        for spec in filters:
            key = spec.name.lower()
            if key in self._filters:
                raise ValueError(f"Duplicate filter name: {spec.name}")
            self._filters[key] = spec

    def resolve(self, name: str) -> FilterSpec:
        """Return the filter registered under ``name`` (case-insensitive)."""
        spec = self._filters.get(name.strip().lower())
        if spec is None:
            raise UnknownFilter(name)
        return spec

    def names(self) -> list[str]:
        """Return canonical filter names in display order."""
        return [spec.name for spec in self._filters.values()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._filters

    def __iter__(self) -> Iterator[FilterSpec]:
        return iter(self._filters.values())

    def __len__(self) -> int:
        return len(self._filters)
