"""
Module `ingestion.sensorspec` defines the SensorSpec class, which encapsulates
sensor metadata (band mappings, resolutions, reflectance scaling and mask
strategies) and provides cloud masking and spectral index computation.
"""

import json
import os
from pathlib import Path
from typing import Iterable, Optional

import ee

from .indices import compute_index, required_aliases

# Aliases of quality bands; they are used for masking, never for index maths
QUALITY_ALIASES = ("qa", "scl")


class SensorSpec:
    """
    Holds metadata for a sensor (bands, collection ID, etc).
    """

    _registry: Optional[dict] = None

    def __init__(
        self,
        collection_id: str,
        bands: dict,
        native_resolution: int,
        cloud_mask_method: str,
        fmask_exclude: list[int] | None = None,
        scl_exclude: list[int] | None = None,
        reflectance_scale: float = 1.0,
        reflectance_offset: float = 0.0,
    ):
        self.collection_id = collection_id
        self.bands = {alias.lower(): band for alias, band in bands.items()}
        self.native_resolution = native_resolution
        self.cloud_mask_method = cloud_mask_method
        # Bits to exclude in Fmask / QA_PIXEL (e.g., CIRRUS, CLOUD, SHADOW)
        self.fmask_exclude = fmask_exclude or [1, 2, 4, 8, 16]
        # Scene Classification Layer codes to drop for Sentinel-2
        self.scl_exclude = scl_exclude or []
        # DN -> surface reflectance; Landsat C2 L2 needs both terms
        self.reflectance_scale = reflectance_scale
        self.reflectance_offset = reflectance_offset

    @property
    def is_scaled(self) -> bool:
        """True when DNs must be rescaled before index maths."""
        return self.reflectance_scale != 1.0 or self.reflectance_offset != 0.0

    def cloud_mask(self, img: ee.Image) -> ee.Image:
        """
        Apply cloud mask based on this sensor's cloud_mask_method.
        Supports 'fmask' and 's2_scl'; anything else leaves the image as is.
        """
        method = self.cloud_mask_method.lower()
        if method == "fmask":
            # a pixel survives only if none of the excluded bits is set
            exclude_mask = sum(self.fmask_exclude)
            fmask = img.select(self.bands["qa"])
            valid = fmask.bitwiseAnd(exclude_mask).eq(0)
            return img.updateMask(valid)
        if method == "s2_scl" and self.scl_exclude:
            scl = img.select(self.bands["scl"])
            # AND together one "not this class" test per excluded SCL code
            mask = None
            for code in self.scl_exclude:
                cond = scl.neq(code)
                mask = cond if mask is None else mask.And(cond)
            return img.updateMask(mask)
        # No masking for other methods
        return img

    def alias_image(self, img: ee.Image) -> ee.Image:
        """
        Rename optical sensor bands to standard aliases ('nir', 'red', ...)
        and convert them to surface reflectance.
        """
        optical = {a: b for a, b in self.bands.items() if a not in QUALITY_ALIASES}
        aliased = img.select(list(optical.values()), list(optical.keys()))
        if not self.is_scaled:
            return aliased
        # the offset breaks scale invariance of normalized differences
        return aliased.multiply(self.reflectance_scale).add(self.reflectance_offset)

    def missing_aliases(self, indices: Iterable[str]) -> list[str]:
        """Return aliases required by *indices* that this sensor lacks."""
        return [a for a in required_aliases(indices) if a not in self.bands]

    def compute_index(self, img: ee.Image, index_name: str) -> ee.Image:
        """
        Compute a spectral index on the given EE Image using this sensor's band aliases.
        """
        # Delegate to the registry-driven formula on the aliased image
        return compute_index(self.alias_image(img), index_name)

    @classmethod
    def _load_registry(cls) -> dict:
        """Load sensor specs from resources/sensor_specs.json."""
        if cls._registry is None:
            default = Path(__file__).resolve().parent.parent / "resources"
            # env override lets deployments ship extra collections
            spec_file = Path(
                os.getenv("STREAMSAT_SENSOR_SPECS", default / "sensor_specs.json")
            )
            with open(spec_file, "r", encoding="utf-8") as f:
                cls._registry = json.load(f)
        return cls._registry

    @classmethod
    def from_collection_id(cls, collection_id: str) -> "SensorSpec":
        """
        Factory method: create a SensorSpec from a collection ID by reading the registry.
        """
        registry = cls._load_registry()
        spec = registry.get(collection_id)
        if spec is None:
            raise ValueError(
                f"Collection ID '{collection_id}' not found in sensor_specs.json"
            )
        return cls(
            collection_id=collection_id,
            bands=spec["bands"],
            native_resolution=spec["native_resolution"],
            cloud_mask_method=spec["cloud_mask_method"],
            fmask_exclude=spec.get("fmask_exclude"),
            scl_exclude=spec.get("scl_exclude"),
            reflectance_scale=spec.get("reflectance_scale", 1.0),
            reflectance_offset=spec.get("reflectance_offset", 0.0),
        )
