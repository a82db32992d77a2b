"""
streamsat CLI entrypoint: builds the combined NDVI/NDMI/NDWI raster for a
region file and lists the available spectral indices.
"""

import sys

import click  # type: ignore
from click import echo

from streamsat.core.config import ConfigManager
from streamsat.core.logger import Logger
from streamsat.core.pipeline import IndexPipeline
from streamsat.geo.buffer import BufferBy, NoBuffer
from streamsat.geo.roi import RegionOfInterest
from streamsat.ingestion.eemanager import EarthEngineManager
from streamsat.ingestion.indices import INDEX_REGISTRY
from streamsat.ingestion.sensorspec import SensorSpec

logger = Logger.get_logger(__name__)


@click.group()
def cli():
    """streamsat: spectral index composites on Google Earth Engine."""
    Logger.setup()


@cli.command(name="indices")
@click.argument("roi_file", type=click.Path(exists=True))
@click.option("--name", "-n", required=True, help="Region name used for layers and files")
@click.option("--config", "config_path", type=click.Path(exists=True), default=None)
@click.option("--collection", "-c", default=None, help="Earth Engine ImageCollection ID")
@click.option("--start", "-s", default=None, help="Start date (YYYY-MM-DD)")
@click.option("--end", "-e", default=None, help="End date (YYYY-MM-DD)")
@click.option(
    "--buffer",
    "buffer_m",
    type=float,
    default=None,
    help="Buffer the region by this many metres before processing",
)
@click.option("--map-html", type=click.Path(), default=None, help="Write layers to HTML")
@click.option("--wait/--no-wait", default=False, help="Poll exports until they finish")
@click.option("--poll-interval", type=float, default=30.0, show_default=True)
@click.option("--project", default=None, help="Earth Engine cloud project")
@click.option(
    "--credentials",
    type=click.Path(exists=True),
    default=None,
    help="Service-account JSON key",
)
def indices_cmd(
    roi_file,
    name,
    config_path,
    collection,
    start,
    end,
    buffer_m,
    map_html,
    wait,
    poll_interval,
    project,
    credentials,
):
    """Build and export the NDVI/NDMI/NDWI mean composite for ROI_FILE."""
    try:
        cfg = ConfigManager(config_path)
        collection_id = collection or cfg.get("collection_id")
        start_date = start or cfg.get("start_date")
        end_date = end or cfg.get("end_date")

        cfg.check_input_format(roi_file)
        roi = RegionOfInterest.from_file(name, roi_file)
        buffer = BufferBy(buffer_m) if buffer_m is not None else NoBuffer()
        sensor = SensorSpec.from_collection_id(collection_id)

        manager = EarthEngineManager(
            credential_path=credentials, project=project, logger=logger
        )
        manager.initialize()
        coll = manager.get_image_collection(
            collection_id,
            start_date,
            end_date,
            mask_clouds=bool(cfg.get("mask_clouds", True)),
        )
        logger.info("Using %s from %s to %s", collection_id, start_date, end_date)

        pipeline = IndexPipeline(sensor=sensor, config=cfg, logger=logger)
        result = pipeline.run(name, coll, roi, buffer)
        for job in result.jobs:
            echo(f"🚀  Started {job.kind} export {job.file_prefix} -> {job.folder}")

        if map_html:
            result.map_display.save(map_html, bounds=roi.bounds)
            echo(f"✅  Map written to `{map_html}`")

        if wait:
            for job in result.jobs:
                state = job.wait(poll_interval=poll_interval)
                echo(f"✅  {job.file_prefix}: {state}")
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.error("Index pipeline failed: %s", e)
        echo(f"❌  {e}", err=True)
        sys.exit(1)


@cli.command(name="list-indices")
def list_indices():
    """Print the spectral indices known to the registry."""
    for key, formula in INDEX_REGISTRY.items():
        bands = ", ".join(formula["bands"])
        echo(f"{key}\t{formula.get('description', '')} [{bands}]")


if __name__ == "__main__":
    cli()
