from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

import ee

from streamsat.core.config import ConfigManager
from streamsat.core.logger import Logger
from streamsat.geo.buffer import BufferSpec, NoBuffer
from streamsat.geo.roi import RegionOfInterest
from streamsat.ingestion.sensorspec import SensorSpec
from streamsat.services.composite import build_composites, stack_composites
from streamsat.services.export import ExportError, ExportJob, ExportService
from streamsat.visualization.map_display import MapDisplay

RegionLike = Union[RegionOfInterest, ee.FeatureCollection]

# Band order of the combined raster: vegetation, moisture, water
INDICES: Tuple[str, ...] = ("ndvi", "ndmi", "ndwi")


@dataclass
class PipelineResult:
    """Everything one pipeline run produced."""

    region_name: str
    combined: ee.Image
    composites: Dict[str, ee.Image]
    region: ee.FeatureCollection
    raster_job: ExportJob
    vector_job: Optional[ExportJob]
    map_display: MapDisplay

    @property
    def band_order(self) -> List[str]:
        return list(self.composites)

    @property
    def jobs(self) -> List[ExportJob]:
        return [j for j in (self.vector_job, self.raster_job) if j is not None]


@dataclass
class IndexPipeline:
    """Encapsulate the buffer, composite, stack and export workflow."""

    sensor: SensorSpec
    config: ConfigManager = field(default_factory=ConfigManager)
    exporter: Optional[ExportService] = None
    map_display: MapDisplay = field(default_factory=MapDisplay)
    logger: logging.Logger = field(
        default_factory=lambda: Logger.get_logger(__name__)
    )

    def __post_init__(self) -> None:
        if self.exporter is None:
            self.exporter = ExportService(self.config, logger=self.logger)

    @property
    def indices(self) -> List[str]:
        return list(INDICES)

    def _check_inputs(self, region_name: str) -> None:
        if not isinstance(region_name, str) or not region_name.strip():
            raise ValueError("region_name must be a non-empty string")
        missing = self.sensor.missing_aliases(self.indices)
        if missing:
            raise ValueError(
                f"Sensor {self.sensor.collection_id} lacks bands for: {missing}"
            )

    def _apply_buffer(
        self, region_name: str, region: ee.FeatureCollection, buffer: BufferSpec
    ) -> tuple[ee.FeatureCollection, Optional[ExportJob]]:
        if not buffer.is_buffered:
            return region, None
        self.logger.info("Buffering %s by %s m", region_name, buffer.distance)
        buffered = buffer.apply(region)
        self.map_display.add_layer(
            buffered,
            self.config.vis_params_for("buffered_roi"),
            f"{region_name} buffered ROI",
        )
        return buffered, self.exporter.export_vector(buffered, region_name)

    def run(
        self,
        region_name: str,
        collection: ee.ImageCollection,
        roi: RegionLike,
        buffer: BufferSpec = NoBuffer(),
    ) -> PipelineResult:
        """Build the combined index raster for *roi*, submit its export and return the result."""
        self._check_inputs(region_name)
        region = (
            roi.to_feature_collection() if isinstance(roi, RegionOfInterest) else roi
        )
        self.map_display.add_layer(
            region, self.config.vis_params_for("roi"), f"{region_name} ROI"
        )
        region, vector_job = self._apply_buffer(region_name, region, buffer)

        filtered = collection.filterBounds(region)
        self.logger.info(
            "Computing %s composites for %s", ", ".join(self.indices), region_name
        )
        composites = build_composites(filtered, self.sensor, self.indices, region)
        for index, composite in composites.items():
            self.map_display.add_layer(
                composite,
                self.config.vis_params_for(index),
                f"{region_name} {index.upper()}",
                shown=False,
            )

        combined = stack_composites(list(composites.values()))
        combined_vis = self.config.vis_params_for("combined")
        combined_vis["bands"] = self.indices
        self.map_display.add_layer(
            combined, combined_vis, f"{region_name} combined indices", shown=False
        )

        try:
            raster_job = self.exporter.export_raster(combined, region_name, region)
        # pylint: disable=broad-exception-caught
        except Exception as err:
            self.logger.error("Raster export for %s failed: %s", region_name, err)
            raise ExportError(f"Export failed. {err}") from err

        return PipelineResult(
            region_name=region_name,
            combined=combined,
            composites=composites,
            region=region,
            raster_job=raster_job,
            vector_job=vector_job,
            map_display=self.map_display,
        )


def produce_combined_index_raster(
    region_name: str,
    image_collection: ee.ImageCollection,
    roi: RegionLike,
    buffer: BufferSpec = NoBuffer(),
    *,
    sensor: SensorSpec,
    config: Optional[ConfigManager] = None,
    exporter: Optional[ExportService] = None,
    map_display: Optional[MapDisplay] = None,
) -> PipelineResult:
    """
    Compute NDVI, NDMI and NDWI means over *image_collection* within *roi*,
    stack them in that order and submit the export.

    The returned result holds the combined image and the export job handles.
    """
    pipeline = IndexPipeline(
        sensor=sensor,
        config=config or ConfigManager(),
        exporter=exporter,
        map_display=map_display or MapDisplay(),
    )
    return pipeline.run(region_name, image_collection, roi, buffer)
