"""Region-of-interest model and buffer variants."""

from .buffer import BufferBy, BufferSpec, NoBuffer, buffer_from_flag
from .roi import RegionOfInterest, RoiFeature

__all__ = [
    "BufferBy",
    "BufferSpec",
    "NoBuffer",
    "buffer_from_flag",
    "RegionOfInterest",
    "RoiFeature",
]
