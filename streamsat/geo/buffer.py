"""
Buffer variants applied to a region before filtering and export.

``NoBuffer`` keeps the region as given; ``BufferBy`` grows every feature by a
positive distance in metres on the Earth Engine side.
"""

import math
from dataclasses import dataclass
from typing import Optional, Union

import ee


@dataclass(frozen=True)
class NoBuffer:
    """Use the region unmodified."""

    is_buffered = False

    def apply(self, region: ee.FeatureCollection) -> ee.FeatureCollection:
        return region


@dataclass(frozen=True)
class BufferBy:
    """Replace each feature's geometry with its expansion by ``distance`` metres."""

    distance: float
    is_buffered = True

    def __post_init__(self) -> None:
        if isinstance(self.distance, bool) or not isinstance(
            self.distance, (int, float)
        ):
            raise ValueError(f"Buffer distance must be a number, got {self.distance!r}")
        if math.isnan(self.distance) or self.distance <= 0:
            raise ValueError(f"Buffer distance must be positive, got {self.distance}")

    def apply(self, region: ee.FeatureCollection) -> ee.FeatureCollection:
        distance = self.distance
        return region.map(lambda feat: feat.buffer(distance))


BufferSpec = Union[NoBuffer, BufferBy]


def buffer_from_flag(
    should_buffer: bool, distance: Optional[float] = None
) -> BufferSpec:
    """
    Map the boolean flag plus optional distance onto a buffer variant.

    Raises:
        ValueError: if buffering is requested without a positive distance.
    """
    if not should_buffer:
        return NoBuffer()
    if distance is None:
        raise ValueError("A buffer distance is required when buffering is requested")
    return BufferBy(distance)
