"""Visualization helpers."""

from .map_display import MapDisplay, MapLayer

__all__ = ["MapDisplay", "MapLayer"]
