import geopandas as gpd
import numpy as np
import pandas as pd
from shapely.validation import explain_validity
from typing import Optional, Union

from bcmaps.config import get_settings
from bcmaps.deps import require
from bcmaps.errors import InvalidInputError, RepairDidNotConvergeError
from bcmaps.logging_cfg import get_logger
from bcmaps.union import MembershipColumns, build_carriers, extract_membership, union_self

logger = get_logger(__name__)

GeoLayer = Union[gpd.GeoSeries, gpd.GeoDataFrame]

POLYGON_TYPES = {"Polygon", "MultiPolygon"}
SELF_INTERSECTION = r"self[ -]intersection"


def _geometry(x: GeoLayer) -> gpd.GeoSeries:
    return x if isinstance(x, gpd.GeoSeries) else x.geometry


def check_layer(x, arg_name: str = "x") -> None:
    """Raise TypeError unless x is a GeoSeries or GeoDataFrame."""
    if not isinstance(x, (gpd.GeoSeries, gpd.GeoDataFrame)):
        raise TypeError(f"{arg_name} must be a GeoSeries or GeoDataFrame, got {type(x).__name__}")


def check_polygons(x, arg_name: str = "x") -> None:
    """Raise TypeError unless every non-missing geometry of x is a (multi)polygon."""
    check_layer(x, arg_name)
    geom_types = _geometry(x).geom_type.dropna()
    other = sorted(set(geom_types) - POLYGON_TYPES)
    if other:
        raise TypeError(f"{arg_name} must contain only polygons, found {', '.join(other)}")


def transform_bc_albers(x: GeoLayer, target_crs: Optional[str] = None) -> GeoLayer:
    """Reproject a GeoSeries/GeoDataFrame to BC Albers (EPSG:3005)."""
    check_layer(x)
    require("pyproj", "reprojection")

    if x.crs is None:
        raise InvalidInputError("x has no CRS, cannot reproject it")

    target_crs = target_crs or get_settings().target_crs
    logger.info(f"Reprojecting {len(x)} features from {x.crs.to_string()} to {target_crs}")
    return x.to_crs(target_crs)


def _object_series(items, index) -> pd.Series:
    # element-wise fill so equal-length lists or frames stay one object each
    values = np.empty(len(items), dtype=object)
    for i, item in enumerate(items):
        values[i] = item
    return pd.Series(values, index=index)


def _buffer_zero(x: GeoLayer) -> GeoLayer:
    if isinstance(x, gpd.GeoSeries):
        return x.buffer(0)
    fixed = x.copy()
    fixed[x.geometry.name] = x.geometry.buffer(0)
    return fixed


def fix_self_intersect(x: GeoLayer, max_iterations: Optional[int] = None) -> GeoLayer:
    """
    Check and fix polygons that self-intersect.

    Uses the common method of buffering by zero, repeated until the layer is
    valid. Validity problems other than self-intersections are logged and the
    layer is returned as it is.

    Args:
        x: Polygon GeoSeries/GeoDataFrame to check
        max_iterations: Maximum number of buffer-by-zero passes
            (default: settings.max_repair_iterations)

    Returns:
        The layer, repaired if necessary

    Raises:
        RepairDidNotConvergeError: Self-intersections remain after
            max_iterations passes
    """
    check_polygons(x)
    require("shapely", "geometry repair")

    if max_iterations is None:
        max_iterations = get_settings().max_repair_iterations

    current = x
    for attempt in range(max_iterations + 1):
        geoms = _geometry(current)
        valid = geoms.is_valid
        if valid.all():
            logger.info("Geometry is valid")
            return current

        non_valid = pd.Series(
            [explain_validity(g) if g is not None else "Missing geometry" for g in geoms[~valid]],
            index=geoms.index[~valid.to_numpy()],
            dtype=object
        )

        if not non_valid.str.contains(SELF_INTERSECTION, case=False, regex=True, na=False).any():
            logger.warning("No self-intersections found, but there were other problems")
            for idx, reason in non_valid.items():
                logger.warning(f"  feature {idx}: {reason}")
            return current

        if attempt == max_iterations:
            break

        logger.info("Self-intersection(s) found - repairing...")
        logger.debug(f"Pass {attempt + 1}: {len(non_valid)} invalid features")
        current = _buffer_zero(current)

    raise RepairDidNotConvergeError(
        f"Self-intersections remain after {max_iterations} buffer-by-zero passes"
    )


def self_union(x: GeoLayer, codec: Optional[MembershipColumns] = None) -> gpd.GeoDataFrame:
    """
    Union polygons with themselves to remove overlaps, while retaining attributes.

    The IDs (index labels) of the source polygons of each merged polygon are
    stored in the list column ``union_ids`` and their number in
    ``union_count``. If x has attribute columns, the source attribute rows are
    stored as nested DataFrames in ``union_df``; see get_poly_attribute to
    reduce them.

    Example:
        >>> squares = gpd.GeoDataFrame(
        ...     {"a": [1, 2]}, geometry=[box(0, 0, 2, 2), box(1, 1, 3, 3)])
        >>> self_union(squares)["union_ids"].tolist()
        [[0], [0, 1], [1]]
    """
    check_polygons(x)
    require("shapely", "polygon union")

    codec = codec or MembershipColumns(prefix=get_settings().id_prefix)

    merged, membership = union_self(_geometry(x), codec)
    union_ids = extract_membership(membership, codec)

    unioned = merged.rename(columns={"count": "union_count"})
    unioned["union_ids"] = _object_series(list(union_ids.values()), merged.index)
    export_cols = ["union_count", "union_ids"]

    if isinstance(x, gpd.GeoDataFrame) and len(x.columns) > 1:
        carriers = build_carriers(x, union_ids)
        unioned["union_df"] = _object_series(carriers, merged.index)
        export_cols.append("union_df")

    return unioned[export_cols + [unioned.geometry.name]]
