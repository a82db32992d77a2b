"""Interactive map of the pipeline's Earth Engine layers, rendered with folium."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import folium
from folium.raster_layers import TileLayer

from streamsat.core.logger import Logger

EE_ATTRIBUTION = "Map data &copy; Google Earth Engine"


@dataclass
class MapLayer:
    """One Earth Engine object to draw, with its styling and visibility."""

    name: str
    ee_object: Any
    vis_params: Dict[str, Any] = field(default_factory=dict)
    shown: bool = True

    def tile_url(self) -> str:
        """Return the XYZ tile URL template Earth Engine serves for this layer."""
        map_id = self.ee_object.getMapId(self.vis_params)
        return map_id["tile_fetcher"].url_format


class MapDisplay:
    """Ordered registry of map layers added while the pipeline runs."""

    def __init__(self, logger=None) -> None:
        self.layers: List[MapLayer] = []
        self.logger = logger or Logger.get_logger(__name__)

    def add_layer(
        self,
        ee_object: Any,
        vis_params: Optional[Dict[str, Any]] = None,
        name: str = "Layer",
        shown: bool = True,
    ) -> MapLayer:
        layer = MapLayer(name, ee_object, dict(vis_params or {}), shown)
        self.layers.append(layer)
        self.logger.debug("Registered map layer %s (shown=%s)", name, shown)
        return layer

    def layer(self, name: str) -> MapLayer:
        """Return the layer registered under *name*."""
        for layer in self.layers:
            if layer.name == name:
                return layer
        raise KeyError(name)

    @property
    def names(self) -> List[str]:
        return [layer.name for layer in self.layers]

    def to_folium(self, bounds: Optional[Sequence[float]] = None) -> folium.Map:
        """
        Build a folium map with one tile layer per registered layer.

        ``bounds`` is ``(minx, miny, maxx, maxy)`` in degrees; when given the
        map is fitted to it.
        """
        if bounds is not None:
            minx, miny, maxx, maxy = bounds
            centre = [(miny + maxy) / 2, (minx + maxx) / 2]
        else:
            centre = [0.0, 0.0]
        m = folium.Map(location=centre, zoom_start=10)
        for layer in self.layers:
            TileLayer(
                tiles=layer.tile_url(),
                name=layer.name,
                attr=EE_ATTRIBUTION,
                overlay=True,
                control=True,
                show=layer.shown,
            ).add_to(m)
        folium.LayerControl(position="topright", collapsed=False).add_to(m)
        if bounds is not None:
            m.fit_bounds([[miny, minx], [maxy, maxx]])
        return m

    def save(self, path: str, bounds: Optional[Sequence[float]] = None) -> str:
        """Render the map to an HTML file and return its path."""
        self.to_folium(bounds).save(path)
        self.logger.info("Wrote map with %d layers to %s", len(self.layers), path)
        return path
