"""Ingestion package: Earth Engine access, sensors and index formulas."""

from .eemanager import EarthEngineManager, ee_manager
from .indices import INDEX_REGISTRY, compute_index
from .sensorspec import SensorSpec

__all__ = [
    "EarthEngineManager",
    "ee_manager",
    "INDEX_REGISTRY",
    "compute_index",
    "SensorSpec",
]
