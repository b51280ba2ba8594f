import typer
import numpy as np
from pathlib import Path
from typing import List, Optional

from bcmaps.area import bc_area
from bcmaps.attributes import get_poly_attribute
from bcmaps.config import get_settings
from bcmaps.errors import BcmapsError
from bcmaps.geom_ops import fix_self_intersect, self_union, transform_bc_albers
from bcmaps.io_utils import load_gdf, save_gdf
from bcmaps.logging_cfg import get_logger, setup_logging

logger = get_logger(__name__)

app = typer.Typer(
    pretty_exceptions_enable=False,
    help="bcmaps CLI - British Columbia area lookup and polygon helpers"
)

REDUCERS = {
    "sum": sum,
    "min": min,
    "max": max,
    "mean": np.mean,
    "first": lambda values: values.iloc[0],
    "last": lambda values: values.iloc[-1],
    "count": len,
}


def parse_reduction(option: str):
    """Split a 'column:function' option into the column and a reducer."""
    col, sep, name = option.rpartition(":")
    if not sep or not col:
        raise typer.BadParameter(f"Expected COLUMN:FUNCTION, got {option!r}")
    if name not in REDUCERS:
        raise typer.BadParameter(f"Unknown function {name!r}, choose from {', '.join(REDUCERS)}")
    return col, name, REDUCERS[name]


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level (default: BCMAPS_LOG_LEVEL or INFO)"),
    log_file: Optional[Path] = typer.Option(None, help="Also write DEBUG logs to this file")
):
    setup_logging(log_level or get_settings().log_level, log_file=log_file)


@app.command()
def area(
    what: str = typer.Argument("total", help="total, land or freshwater"),
    units: str = typer.Argument("km2", help="km2, m2, ha, acres or sq_mi")
):
    """Print the area of British Columbia."""
    try:
        result = bc_area(what, units)
    except BcmapsError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    for label, value in result.items():
        typer.echo(f"{label}\t{value}")


@app.command()
def albers(
    input_path: Path = typer.Argument(..., help="Input layer"),
    output_path: Path = typer.Argument(..., help="Output layer (.geojson, .gpkg, .shp or .parquet)")
):
    """Reproject a layer to BC Albers (EPSG:3005)."""
    try:
        gdf = load_gdf(input_path)
        save_gdf(transform_bc_albers(gdf), output_path)
    except (BcmapsError, TypeError) as e:
        logger.error(f"Reprojection failed: {e}")
        raise typer.Exit(1)


@app.command()
def fix(
    input_path: Path = typer.Argument(..., help="Input polygon layer"),
    output_path: Path = typer.Argument(..., help="Output layer"),
    max_iterations: Optional[int] = typer.Option(None, min=1, help="Maximum buffer-by-zero passes")
):
    """Repair self-intersecting polygons by buffering by zero."""
    try:
        gdf = load_gdf(input_path)
        save_gdf(fix_self_intersect(gdf, max_iterations=max_iterations), output_path)
    except (BcmapsError, TypeError) as e:
        logger.error(f"Repair failed: {e}")
        raise typer.Exit(1)


@app.command()
def union(
    input_path: Path = typer.Argument(..., help="Input polygon layer"),
    output_path: Path = typer.Argument(..., help="Output layer"),
    reduce: List[str] = typer.Option([], help="COLUMN:FUNCTION to reduce nested attributes (repeatable)")
):
    """
    Union a polygon layer with itself to remove overlaps.

    Writes union_count and union_ids (as JSON) for every merged polygon, plus one
    column per --reduce option holding the reduced source attribute.
    """
    reductions = [parse_reduction(option) for option in reduce]

    try:
        gdf = load_gdf(input_path)
        unioned = self_union(gdf)

        if reductions and "union_df" not in unioned.columns:
            logger.error("Input layer has no attributes to reduce")
            raise typer.Exit(1)

        for col, name, fun in reductions:
            logger.info(f"Reducing '{col}' with {name}")
            unioned[f"{col}_{name}"] = get_poly_attribute(unioned["union_df"], col, fun)

        save_gdf(unioned, output_path)
    except (BcmapsError, TypeError) as e:
        logger.error(f"Union failed: {e}")
        raise typer.Exit(1)

    logger.info(f"Wrote {len(unioned)} merged polygons to {output_path}")


if __name__ == "__main__":
    app()
