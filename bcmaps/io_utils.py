import json
import geopandas as gpd
import pandas as pd
from pathlib import Path
from typing import Union

from bcmaps.errors import BcmapsError
from bcmaps.logging_cfg import get_logger

logger = get_logger(__name__)

DRIVERS = {
    ".geojson": "GeoJSON",
    ".json": "GeoJSON",
    ".gpkg": "GPKG",
    ".shp": "ESRI Shapefile",
}

# keep JSON-encoded list columns as strings instead of native GeoJSON arrays
WRITE_OPTIONS = {
    "GeoJSON": {"AUTODETECT_JSON_STRINGS": "NO"},
}


class LayerIOError(BcmapsError):
    pass


def flatten_nested(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Drop nested data frame columns and encode list columns as JSON strings."""
    flat = gdf.copy()
    for col in list(flat.columns):
        if col == flat.geometry.name or flat[col].dtype != object:
            continue
        sample = flat[col].dropna()
        if sample.empty:
            continue
        first = sample.iloc[0]
        if isinstance(first, pd.DataFrame):
            logger.debug(f"Dropping nested column '{col}' before writing")
            flat = flat.drop(columns=col)
        elif isinstance(first, (list, tuple)):
            flat[col] = flat[col].map(lambda v: json.dumps(list(v), default=int))
    return flat


def save_gdf(gdf: gpd.GeoDataFrame, file_path: Union[str, Path]):
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    flat = flatten_nested(gdf)

    try:
        if file_path.suffix == '.parquet':
            flat.to_parquet(file_path)
        elif file_path.suffix in DRIVERS:
            driver = DRIVERS[file_path.suffix]
            flat.to_file(file_path, driver=driver, **WRITE_OPTIONS.get(driver, {}))
        else:
            raise LayerIOError(f"Unsupported file format: {file_path.suffix}")
    except LayerIOError:
        raise
    except Exception as e:
        logger.error(f"Failed to save {file_path}: {e}")
        raise LayerIOError(f"Failed to save {file_path}: {e}")

    file_size_mb = file_path.stat().st_size / (1024 * 1024)
    logger.info(
        f"Saved {len(flat)} records to {file_path}",
        extra={"records": len(flat), "size_mb": round(file_size_mb, 2)}
    )


def load_gdf(file_path: Union[str, Path]) -> gpd.GeoDataFrame:
    file_path = Path(file_path)

    if not file_path.exists():
        raise LayerIOError(f"File not found: {file_path}")

    try:
        if file_path.suffix == '.parquet':
            gdf = gpd.read_parquet(file_path)
        elif file_path.suffix in DRIVERS:
            gdf = gpd.read_file(file_path)
        else:
            raise LayerIOError(f"Unsupported file format: {file_path.suffix}")
    except LayerIOError:
        raise
    except Exception as e:
        logger.error(f"Failed to load file: {e}")
        raise LayerIOError(f"Failed to load file: {e}")

    logger.info(
        f"Loaded {len(gdf)} records from {file_path}",
        extra={"records": len(gdf), "crs": str(gdf.crs)}
    )
    return gdf
