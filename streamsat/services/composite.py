"""Per-index temporal composites and their stacking into one raster."""

from typing import Iterable, Sequence

import ee

from streamsat.ingestion.sensorspec import SensorSpec


def index_collection(
    collection: ee.ImageCollection, sensor: SensorSpec, index: str
) -> ee.ImageCollection:
    """Map the per-image index over *collection*, keeping acquisition time."""
    key = index.lower()
    return collection.map(
        lambda img: sensor.compute_index(img, key).copyProperties(
            img, ["system:time_start"]
        )
    ).select(key)


def temporal_mean(
    collection: ee.ImageCollection,
    sensor: SensorSpec,
    index: str,
    region: ee.FeatureCollection,
) -> ee.Image:
    """
    Unweighted mean of one index across every image in *collection*,
    clipped to *region*. An empty collection yields an image without valid
    pixels; nothing is checked client-side.
    """
    return index_collection(collection, sensor, index).mean().clipToCollection(region)


def stack_composites(composites: Sequence[ee.Image]) -> ee.Image:
    """Concatenate single-band composites into one image, order preserved."""
    if not composites:
        raise ValueError("No composites to stack")
    return ee.Image.cat(*composites)


def build_composites(
    collection: ee.ImageCollection,
    sensor: SensorSpec,
    indices: Iterable[str],
    region: ee.FeatureCollection,
) -> dict[str, ee.Image]:
    """Return ``{index: composite}`` in the order of *indices*."""
    return {
        index.lower(): temporal_mean(collection, sensor, index, region)
        for index in indices
    }
