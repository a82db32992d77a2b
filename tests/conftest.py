# pylint: disable=missing-module-docstring,missing-function-docstring,invalid-name,unused-argument,redefined-outer-name
"""
In-memory stand-ins for the Earth Engine objects the pipeline touches.

Images carry one constant value per band so index maths can be checked
numerically without contacting Earth Engine.
"""

import itertools
from types import SimpleNamespace

import pytest
import ee
from shapely.geometry import shape

from streamsat.ingestion.sensorspec import SensorSpec

_ids = itertools.count(1)


class FakeImage:
    """Constant-valued multi-band image."""

    def __init__(self, bands=None, props=None):
        self.bands = dict(bands or {})
        self.props = dict(props or {})
        self.clipped_to = None
        self.mask = None

    def bandNames(self):
        return list(self.bands)

    def select(self, selectors, names=None):
        if isinstance(selectors, str):
            selectors = [selectors]
        names = names or selectors
        return FakeImage(
            {new: self.bands[old] for old, new in zip(selectors, names)}, self.props
        )

    def multiply(self, factor):
        return FakeImage({k: v * factor for k, v in self.bands.items()}, self.props)

    def add(self, value):
        return FakeImage({k: v + value for k, v in self.bands.items()}, self.props)

    def normalizedDifference(self, pair):
        a, b = (self.bands[p] for p in pair)
        return FakeImage({"nd": (a - b) / (a + b)}, self.props)

    def expression(self, expr, token_map):
        scope = {
            k: (next(iter(v.bands.values())) if isinstance(v, FakeImage) else v)
            for k, v in token_map.items()
        }
        return FakeImage({"constant": eval(expr, {}, scope)}, self.props)

    def rename(self, *names):
        if len(names) == 1 and isinstance(names[0], (list, tuple)):
            names = names[0]
        return FakeImage(dict(zip(names, self.bands.values())), self.props)

    def copyProperties(self, source, properties=None):
        keys = properties or list(source.props)
        self.props.update({k: source.props.get(k) for k in keys})
        return self

    def updateMask(self, mask):
        img = FakeImage(self.bands, self.props)
        img.mask = mask
        return img

    def clipToCollection(self, collection):
        img = FakeImage(self.bands, self.props)
        img.clipped_to = collection
        return img

    def getMapId(self, vis_params):
        return {
            "tile_fetcher": SimpleNamespace(
                url_format=f"https://earthengine.test/map/{next(_ids)}/{{z}}/{{x}}/{{y}}"
            )
        }

    @staticmethod
    def cat(*images):
        bands = {}
        for img in images:
            bands.update(img.bands)
        return FakeImage(bands)


class FakeImageCollection:
    """List of FakeImages supporting the chainable calls the pipeline uses."""

    def __init__(self, images=None):
        self.collection_id = None
        if isinstance(images, str):
            self.collection_id, images = images, []
        self.images = list(images or [])
        self.bounds_filter = None
        self.date_filter = None
        self.mapped_with = None

    def _copy(self, images):
        coll = FakeImageCollection(images)
        coll.collection_id = self.collection_id
        coll.bounds_filter = self.bounds_filter
        coll.date_filter = self.date_filter
        return coll

    def filterBounds(self, region):
        coll = self._copy(self.images)
        coll.bounds_filter = region
        return coll

    def filterDate(self, start, end):
        coll = self._copy(self.images)
        coll.date_filter = (start, end)
        return coll

    def map(self, func):
        coll = self._copy([func(img) for img in self.images])
        coll.mapped_with = func
        return coll

    def select(self, *bands):
        return self._copy([img.select(*bands) for img in self.images])

    def mean(self):
        if not self.images:
            return FakeImage()
        names = self.images[0].bandNames()
        return FakeImage(
            {
                name: sum(img.bands[name] for img in self.images) / len(self.images)
                for name in names
            }
        )


class FakeGeometry:
    def __init__(self, geojson, buffered_by=0.0):
        self.geojson = geojson
        self.buffered_by = buffered_by

    def area(self):
        # planar stand-in: the buffer distance is taken in coordinate units
        return shape(self.geojson).buffer(self.buffered_by).area


class FakeFeature:
    def __init__(self, geometry, props=None):
        self.geom = geometry
        self.props = dict(props or {})

    def geometry(self):
        return self.geom

    def buffer(self, distance):
        grown = FakeGeometry(self.geom.geojson, self.geom.buffered_by + distance)
        return FakeFeature(grown, self.props)


class FakeFeatureCollection:
    def __init__(self, features):
        self.features = list(features)

    def map(self, func):
        return FakeFeatureCollection([func(f) for f in self.features])

    def geometry(self):
        return SimpleNamespace(union_of=self)

    def getMapId(self, vis_params):
        return {
            "tile_fetcher": SimpleNamespace(
                url_format=f"https://earthengine.test/table/{next(_ids)}/{{z}}/{{x}}/{{y}}"
            )
        }


class FakeTask:
    def __init__(self, kind, **kwargs):
        self.kind = kind
        self.config = kwargs
        self.id = f"TASK{next(_ids)}"
        self.started = False
        self.states = ["READY", "RUNNING", "COMPLETED"]

    def start(self):
        self.started = True

    def status(self):
        state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
        return {"state": state, "id": self.id}


@pytest.fixture(autouse=True)
def fake_ee(monkeypatch):
    """Replace the Earth Engine constructors and export entry points."""
    tasks = []

    def _image_export(**kwargs):
        task = FakeTask("image", **kwargs)
        tasks.append(task)
        return task

    def _table_export(**kwargs):
        task = FakeTask("table", **kwargs)
        tasks.append(task)
        return task

    monkeypatch.setattr(ee, "Initialize", lambda *args, **kwargs: None)
    monkeypatch.setattr(ee, "Image", FakeImage)
    monkeypatch.setattr(ee, "ImageCollection", FakeImageCollection)
    monkeypatch.setattr(ee, "Geometry", FakeGeometry)
    monkeypatch.setattr(ee, "Feature", FakeFeature)
    monkeypatch.setattr(ee, "FeatureCollection", FakeFeatureCollection)
    monkeypatch.setattr(ee.batch.Export.image, "toDrive", staticmethod(_image_export))
    monkeypatch.setattr(ee.batch.Export.table, "toDrive", staticmethod(_table_export))
    return SimpleNamespace(tasks=tasks)


@pytest.fixture
def test_sensor():
    """Sensor whose bands are literally named R, G, NIR and SWIR."""
    return SensorSpec(
        collection_id="TEST/COLLECTION",
        bands={"red": "R", "green": "G", "nir": "NIR", "swir": "SWIR", "blue": "B"},
        native_resolution=10,
        cloud_mask_method="none",
    )


@pytest.fixture
def constant_image():
    def _make(r=0.1, g=0.2, nir=0.5, swir=0.3, b=0.05, t=0):
        return FakeImage(
            {"R": r, "G": g, "NIR": nir, "SWIR": swir, "B": b},
            {"system:time_start": t},
        )

    return _make


@pytest.fixture
def square_geojson():
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"id": 1, "name": "reach"},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [
                        [[10.0, 45.0], [10.0, 45.01], [10.01, 45.01], [10.01, 45.0], [10.0, 45.0]]
                    ],
                },
            }
        ],
    }
