"""streamsat: NDVI, NDMI and NDWI mean composites on Google Earth Engine."""

from streamsat.core.pipeline import (
    IndexPipeline,
    PipelineResult,
    produce_combined_index_raster,
)
from streamsat.geo.buffer import BufferBy, NoBuffer, buffer_from_flag
from streamsat.geo.roi import RegionOfInterest
from streamsat.services.export import ExportError

__all__ = [
    "IndexPipeline",
    "PipelineResult",
    "produce_combined_index_raster",
    "BufferBy",
    "NoBuffer",
    "buffer_from_flag",
    "RegionOfInterest",
    "ExportError",
]
