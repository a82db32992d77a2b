"""
Module `geo.roi` defines the RegionOfInterest class, which holds the named set
of features (polygons or lines) that bound the analysis and the exports.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

import ee
import geopandas as gpd
from shapely.geometry import GeometryCollection, mapping, shape
from shapely.geometry.base import BaseGeometry
from shapely.validation import explain_validity

SUPPORTED_GEOMETRIES = ("Polygon", "MultiPolygon", "LineString", "MultiLineString")


@dataclass(frozen=True)
class RoiFeature:
    """One geometry of a region with its attribute properties."""

    geometry: BaseGeometry
    properties: Dict[str, Any] = field(default_factory=dict)

    def ee_feature(self) -> ee.Feature:
        """Return the feature as an Earth Engine Feature."""
        return ee.Feature(ee.Geometry(mapping(self.geometry)), dict(self.properties))


def _check_rings_closed(geom: Dict[str, Any]) -> None:
    """Raise ValueError if any polygon ring in a GeoJSON geometry is not closed."""
    gtype = geom.get("type")
    if gtype == "Polygon":
        polygons = [geom.get("coordinates", [])]
    elif gtype == "MultiPolygon":
        polygons = geom.get("coordinates", [])
    else:
        return
    for rings in polygons:
        for ring in rings:
            if len(ring) < 4 or list(ring[0]) != list(ring[-1]):
                raise ValueError(f"{gtype} ring is not closed: {ring}")


@dataclass(frozen=True)
class RegionOfInterest:
    """Named, validated, immutable set of features bounding the analysis."""

    name: str
    features: Tuple[RoiFeature, ...]

    def __post_init__(self) -> None:
        if not self.name or not str(self.name).strip():
            raise ValueError("Region name must be a non-empty string")
        object.__setattr__(self, "features", tuple(self.features))
        if not self.features:
            raise ValueError(f"Region '{self.name}' has no features")
        for idx, feat in enumerate(self.features):
            geom = feat.geometry
            if geom is None:
                raise ValueError(f"Feature {idx} of '{self.name}' has no geometry")
            if geom.geom_type not in SUPPORTED_GEOMETRIES:
                raise ValueError(
                    f"Feature {idx} of '{self.name}' is a {geom.geom_type}; "
                    f"expected one of {SUPPORTED_GEOMETRIES}"
                )
            if geom.is_empty:
                raise ValueError(f"Feature {idx} of '{self.name}' is empty")
            if not geom.is_valid:
                raise ValueError(
                    f"Feature {idx} of '{self.name}' is invalid: "
                    f"{explain_validity(geom)}"
                )

    @classmethod
    def from_geometries(
        cls, name: str, geometries: List[BaseGeometry]
    ) -> "RegionOfInterest":
        """Build a region from bare shapely geometries, numbering them from 1."""
        return cls(
            name,
            tuple(RoiFeature(g, {"id": i}) for i, g in enumerate(geometries, 1)),
        )

    @classmethod
    def from_geojson(
        cls, name: str, geojson: Union[str, dict]
    ) -> "RegionOfInterest":
        """
        Parse a GeoJSON FeatureCollection, Feature or bare geometry (or a path
        to a GeoJSON file) into a region. Polygon rings must be closed.
        """
        if isinstance(geojson, str):
            with open(geojson, "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            data = geojson

        if data.get("type") == "FeatureCollection":
            raw = data.get("features", [])
        elif data.get("type") == "Feature":
            raw = [data]
        else:
            raw = [{"type": "Feature", "properties": {}, "geometry": data}]

        features = []
        for idx, feat in enumerate(raw):
            geom = feat.get("geometry")
            if not geom:
                raise ValueError(f"Feature {idx} of '{name}' has no geometry")
            _check_rings_closed(geom)
            features.append(
                RoiFeature(shape(geom), dict(feat.get("properties") or {}))
            )
        return cls(name, tuple(features))

    @classmethod
    def from_file(cls, name: str, path: str) -> "RegionOfInterest":
        """
        Load a vector file (GeoJSON, Shapefile, GeoPackage, ...) with GeoPandas.
        """
        return cls.from_gdf(name, gpd.read_file(path))

    @classmethod
    def from_gdf(cls, name: str, gdf: gpd.GeoDataFrame) -> "RegionOfInterest":
        """Build a region from a GeoDataFrame, reprojecting to EPSG:4326."""
        if gdf.crs is not None and gdf.crs.to_epsg() != 4326:
            gdf = gdf.to_crs(epsg=4326)
        features = []
        for idx, (_, row) in enumerate(gdf.iterrows()):
            # null geometries come back as None from shapefiles and GeoJSON
            if row.geometry is None:
                raise ValueError(f"Feature {idx} of '{name}' has no geometry")
            props = json.loads(row.drop(labels="geometry").to_json())
            features.append(RoiFeature(row.geometry, props))
        return cls(name, tuple(features))

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(minx, miny, maxx, maxy) over all features."""
        return GeometryCollection([f.geometry for f in self.features]).bounds

    def to_geojson(self) -> Dict[str, Any]:
        """Return the region as a GeoJSON FeatureCollection dict."""
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "properties": dict(f.properties),
                    "geometry": mapping(f.geometry),
                }
                for f in self.features
            ],
        }

    def to_feature_collection(self) -> ee.FeatureCollection:
        """Return an Earth Engine FeatureCollection with one Feature per geometry."""
        return ee.FeatureCollection([f.ee_feature() for f in self.features])
