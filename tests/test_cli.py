import json

from click.testing import CliRunner

from streamsat.core.cli import cli

from conftest import FakeImage, FakeImageCollection


def _s2_image(t):
    return FakeImage(
        {"B2": 0.05, "B3": 0.2, "B4": 0.1, "B8": 0.5, "B11": 0.3, "SCL": 4},
        {"system:time_start": t},
    )


class _FakeManager:
    created = {}

    def __init__(self, credential_path=None, project=None, logger=None):
        _FakeManager.created = {"project": project, "credentials": credential_path}

    def initialize(self):
        _FakeManager.created["initialized"] = True

    def get_image_collection(self, collection_id, start, end, region=None, mask_clouds=True):
        _FakeManager.created["window"] = (collection_id, start, end, mask_clouds)
        return FakeImageCollection([_s2_image(1), _s2_image(2)])


def _write_roi(tmp_path, square_geojson):
    path = tmp_path / "roi.geojson"
    path.write_text(json.dumps(square_geojson), encoding="utf-8")
    return str(path)


def test_indices_command_submits_exports(tmp_path, monkeypatch, square_geojson, fake_ee):
    monkeypatch.setattr("streamsat.core.cli.EarthEngineManager", _FakeManager)
    roi_path = _write_roi(tmp_path, square_geojson)
    map_path = tmp_path / "map.html"

    result = CliRunner().invoke(
        cli,
        [
            "indices",
            roi_path,
            "--name",
            "TestRoi",
            "--buffer",
            "30",
            "--start",
            "2021-06-01",
            "--project",
            "proj",
            "--map-html",
            str(map_path),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "TestRoi_NDVI_NDMI_NDWI" in result.output
    assert "TestRoi_buffer" in result.output
    assert map_path.exists()
    assert _FakeManager.created["initialized"]
    assert _FakeManager.created["window"] == (
        "COPERNICUS/S2_SR_HARMONIZED",
        "2021-06-01",
        "2023-12-31",
        True,
    )
    assert sorted(t.kind for t in fake_ee.tasks) == ["image", "table"]


def test_indices_command_wait(tmp_path, monkeypatch, square_geojson):
    monkeypatch.setattr("streamsat.core.cli.EarthEngineManager", _FakeManager)
    monkeypatch.setattr("streamsat.services.export.time.sleep", lambda s: None)
    roi_path = _write_roi(tmp_path, square_geojson)

    result = CliRunner().invoke(
        cli, ["indices", roi_path, "--name", "TestRoi", "--wait", "--poll-interval", "0"]
    )

    assert result.exit_code == 0, result.output
    assert "COMPLETED" in result.output


def test_indices_command_rejects_bad_buffer(tmp_path, monkeypatch, square_geojson):
    monkeypatch.setattr("streamsat.core.cli.EarthEngineManager", _FakeManager)
    roi_path = _write_roi(tmp_path, square_geojson)

    result = CliRunner().invoke(
        cli, ["indices", roi_path, "--name", "TestRoi", "--buffer=-5"]
    )

    assert result.exit_code == 1
    assert "positive" in result.output


def test_list_indices():
    result = CliRunner().invoke(cli, ["list-indices"])
    assert result.exit_code == 0
    for key in ("ndvi", "ndmi", "ndwi"):
        assert key in result.output


def test_indices_command_rejects_unsupported_roi_format(tmp_path, monkeypatch):
    monkeypatch.setattr("streamsat.core.cli.EarthEngineManager", _FakeManager)
    roi_path = tmp_path / "roi.csv"
    roi_path.write_text("id,wkt\n1,POINT (0 0)\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["indices", str(roi_path), "--name", "TestRoi"])

    assert result.exit_code == 1
    assert "Unsupported ROI file format '.csv'" in result.output
