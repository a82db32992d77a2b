"""Service-layer helpers used by the pipeline and the CLI."""

from .composite import build_composites, stack_composites, temporal_mean
from .export import ExportError, ExportJob, ExportService

__all__ = [
    "build_composites",
    "stack_composites",
    "temporal_mean",
    "ExportError",
    "ExportJob",
    "ExportService",
]
