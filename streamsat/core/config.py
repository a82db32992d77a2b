"""core.config
---------------

Configuration loader/manager for streamsat. Provides a central API for
loading pipeline settings from YAML/TOML/JSON and retrieving them via
:py:meth:`ConfigManager.get`.
"""

import copy
import os
import json
import yaml
import toml


class ConfigValidationError(Exception):
    """Raised when configuration loading or validation fails."""


class ConfigManager:
    """
    Loads and manages pipeline configuration from file or defaults.
    Holds export destinations, the date window and visualization presets.
    """

    # Vector formats accepted for ROI input files
    SUPPORTED_INPUT_FORMATS: tuple[str, ...] = (
        ".shp",
        ".geojson",
        ".gpkg",
        ".json",
        ".kml",
        ".gml",
    )

    PRESET_PALETTES: dict[str, tuple[str, ...]] = {
        "white-green": ("white", "green"),
        "red-white-green": ("red", "white", "green"),
        "brown-green": ("brown", "green"),
        "blue-white-green": ("blue", "white", "green"),
        "white-blue": ("white", "blue"),
        "brown-white-blue": ("brown", "white", "blue"),
    }

    DEFAULT_COLLECTION: str = "COPERNICUS/S2_SR_HARMONIZED"
    DEFAULT_START: str = "2023-01-01"
    DEFAULT_END: str = "2023-12-31"

    RASTER_FOLDER: str = "All_Streams_Image_with_Indices"
    VECTOR_FOLDER: str = "Buffered Regions"
    RASTER_SUFFIX: str = "NDVI_NDMI_NDWI"
    VECTOR_SUFFIX: str = "buffer"
    EXPORT_SCALE: int = 10
    MAX_PIXELS: float = 1e13

    # Layer styling for the interactive map, keyed by index name.
    # A string palette names an entry of PRESET_PALETTES.
    VIS_PARAMS: dict[str, dict] = {
        "ndvi": {"min": -1, "max": 1, "palette": "red-white-green"},
        "ndmi": {"min": -1, "max": 1, "palette": "brown-white-blue"},
        "ndwi": {"min": -1, "max": 1, "palette": "white-blue"},
        "combined": {"bands": ["ndvi", "ndmi", "ndwi"], "min": -1, "max": 1},
        "roi": {"color": "yellow"},
        "buffered_roi": {"color": "orange"},
    }

    def __init__(self, config_path=None):
        self.config = {
            "collection_id": self.DEFAULT_COLLECTION,
            "start_date": self.DEFAULT_START,
            "end_date": self.DEFAULT_END,
            "mask_clouds": True,
            "export_scale": self.EXPORT_SCALE,
            "raster_folder": self.RASTER_FOLDER,
            "vector_folder": self.VECTOR_FOLDER,
            "raster_suffix": self.RASTER_SUFFIX,
            "vector_suffix": self.VECTOR_SUFFIX,
            "raster_file_format": "GeoTIFF",
            "vector_file_format": "SHP",
            "cloud_optimized": True,
            "max_pixels": self.MAX_PIXELS,
            "vis_params": copy.deepcopy(self.VIS_PARAMS),
        }
        self.supported_input_formats = list(self.SUPPORTED_INPUT_FORMATS)
        self.preset_palettes = {k: list(v) for k, v in self.PRESET_PALETTES.items()}
        if config_path:
            self.load(config_path)

    def load(self, path: str) -> None:
        """
        Load configuration from a file (YAML, TOML, or JSON).
        Overwrites existing keys in self.config.
        """
        ext = os.path.splitext(path)[1].lower()
        try:
            with open(path, "r", encoding="utf-8") as f:
                if ext in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                elif ext == ".toml":
                    data = toml.load(f)
                elif ext == ".json":
                    data = json.load(f)
                else:
                    raise ConfigValidationError(f"Unsupported config format: {ext}")
        except Exception as e:
            raise ConfigValidationError(
                f"Failed to load config from {path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Config file {path} did not produce a dict")
        if "indices" in data:
            # The combined raster is always ndvi, ndmi, ndwi in that order
            raise ConfigValidationError("'indices' is fixed and cannot be configured")
        vis = data.pop("vis_params", None)
        if vis is not None:
            if not isinstance(vis, dict):
                raise ConfigValidationError("'vis_params' must be a mapping")
            self.config["vis_params"].update(vis)
        self.config.update(data)

    def get(self, key, default=None):
        """
        Retrieve a configuration value by key, or return `default` if not present.
        Falls back to instance attributes such as `supported_input_formats`
        and `preset_palettes`.
        """
        if key in self.config:
            return self.config.get(key, default)
        elif hasattr(self, key):
            return getattr(self, key)
        else:
            return default

    def merge(self, other: "ConfigManager") -> None:
        """
        Merge another ConfigManager into this one.
        Values in other.config override this.config.
        """
        if not isinstance(other, ConfigManager):
            raise TypeError("Can only merge ConfigManager instances")
        self.config.update(other.config)
        self.supported_input_formats = list(
            dict.fromkeys(self.supported_input_formats + other.supported_input_formats)
        )
        self.preset_palettes.update(other.preset_palettes)

    def vis_params_for(self, key: str) -> dict:
        """
        Return a copy of the map styling for *key* (empty if unknown).
        A palette given by preset name is expanded to its colour list.
        """
        params = dict(self.get("vis_params", {}).get(key, {}))
        palette = params.get("palette")
        if isinstance(palette, str):
            if palette not in self.preset_palettes:
                raise ConfigValidationError(f"Unknown palette preset: {palette}")
            params["palette"] = list(self.preset_palettes[palette])
        return params

    def check_input_format(self, path: str) -> None:
        """Raise ConfigValidationError unless *path* has a supported vector extension."""
        ext = os.path.splitext(path)[1].lower()
        if ext not in self.supported_input_formats:
            allowed = ", ".join(self.supported_input_formats)
            raise ConfigValidationError(
                f"Unsupported ROI file format '{ext}'; expected one of: {allowed}"
            )

    def raster_prefix(self, region_name: str) -> str:
        """File-name prefix of the combined raster export for *region_name*."""
        return f"{region_name}_{self.get('raster_suffix', self.RASTER_SUFFIX)}"

    def vector_prefix(self, region_name: str) -> str:
        """File-name prefix of the buffered ROI export for *region_name*."""
        return f"{region_name}_{self.get('vector_suffix', self.VECTOR_SUFFIX)}"
