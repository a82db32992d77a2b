from __future__ import annotations

"""Submit Earth Engine export tasks and track them through job handles."""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict

import ee

from streamsat.core.config import ConfigManager
from .base import BaseService

_DESCRIPTION_MAX = 100
_TERMINAL_STATES = {"COMPLETED", "FAILED", "CANCELLED"}


class ExportError(RuntimeError):
    """Raised when an export cannot be submitted or ends unsuccessfully."""


def sanitize_description(text: str) -> str:
    """Restrict *text* to the characters and length EE accepts for task descriptions."""
    cleaned = re.sub(r"[^A-Za-z0-9_.,:;\-]", "_", text)
    return cleaned[:_DESCRIPTION_MAX] or "export"


@dataclass
class ExportJob:
    """Handle on a started export task."""

    task: Any
    kind: str
    description: str
    folder: str
    file_prefix: str

    @property
    def task_id(self) -> str | None:
        return getattr(self.task, "id", None)

    def status(self) -> Dict[str, Any]:
        """Return the task status dict reported by Earth Engine."""
        return self.task.status()

    @property
    def state(self) -> str:
        return self.status().get("state", "UNKNOWN")

    def wait(self, poll_interval: float = 30.0, timeout: float | None = None) -> str:
        """
        Poll until the task reaches a terminal state.

        Returns the final state; raises ExportError when the task failed or
        was cancelled and TimeoutError when *timeout* seconds pass first.
        """
        started = time.monotonic()
        while True:
            status = self.status()
            state = status.get("state", "UNKNOWN")
            if state in _TERMINAL_STATES:
                if state != "COMPLETED":
                    raise ExportError(
                        f"Export {self.description} ended in state {state}: "
                        f"{status.get('error_message', 'no details')}"
                    )
                return state
            if timeout is not None and time.monotonic() - started >= timeout:
                raise TimeoutError(
                    f"Export {self.description} still {state} after {timeout}s"
                )
            time.sleep(poll_interval)


class ExportService(BaseService):
    """Start raster and vector exports to Google Drive."""

    def __init__(
        self,
        config: ConfigManager | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger)
        self.config = config or ConfigManager()

    def export_raster(
        self, image: ee.Image, region_name: str, region: ee.FeatureCollection
    ) -> ExportJob:
        """Export *image* as a (cloud optimized) GeoTIFF clipped to *region*."""
        prefix = self.config.raster_prefix(region_name)
        folder = self.config.get("raster_folder")
        description = sanitize_description(prefix)
        task = ee.batch.Export.image.toDrive(
            image=image,
            description=description,
            folder=folder,
            fileNamePrefix=prefix,
            region=region.geometry(),
            scale=self.config.get("export_scale"),
            fileFormat=self.config.get("raster_file_format"),
            formatOptions={"cloudOptimized": bool(self.config.get("cloud_optimized"))},
            maxPixels=self.config.get("max_pixels"),
        )
        task.start()
        self.logger.info("Started raster export %s to folder '%s'", prefix, folder)
        return ExportJob(task, "raster", description, folder, prefix)

    def export_vector(
        self, collection: ee.FeatureCollection, region_name: str
    ) -> ExportJob:
        """Export *collection* as a shapefile (or the configured table format)."""
        prefix = self.config.vector_prefix(region_name)
        folder = self.config.get("vector_folder")
        description = sanitize_description(prefix)
        task = ee.batch.Export.table.toDrive(
            collection=collection,
            description=description,
            folder=folder,
            fileNamePrefix=prefix,
            fileFormat=self.config.get("vector_file_format"),
        )
        task.start()
        self.logger.info("Started vector export %s to folder '%s'", prefix, folder)
        return ExportJob(task, "vector", description, folder, prefix)
