"""
Self-union of a polygon layer and the provenance of each merged piece.

``union_self`` splits a layer into the pieces formed by its overlapping
polygons and records, for every piece, which source polygons cover it.
``extract_membership`` reads those records back as ordered source ID lists,
and ``build_carriers`` attaches the attribute rows of the sources to each
piece.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Hashable, List, Mapping, Sequence, Tuple

import geopandas as gpd
import pandas as pd
from shapely import STRtree
from shapely.ops import polygonize, unary_union

from bcmaps.errors import InvalidInputError, MissingAttributeError, UnknownSourceIdError
from bcmaps.logging_cfg import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MembershipColumns:
    """How source IDs are encoded in membership column names."""

    prefix: str = "ID."
    parse: Callable[[str], int] = int

    def __post_init__(self):
        if not self.prefix:
            raise InvalidInputError("Membership column prefix must not be empty")

    def name(self, source_id) -> str:
        return f"{self.prefix}{source_id}"

    def matches(self, column) -> bool:
        return isinstance(column, str) and column.startswith(self.prefix)

    def source_id(self, column: str) -> int:
        raw = column[len(self.prefix):]
        try:
            return self.parse(raw)
        except (TypeError, ValueError):
            raise InvalidInputError(f"Cannot derive a source ID from membership column {column!r}")


def _source_ids(geoms: gpd.GeoSeries) -> List[int]:
    index = geoms.index
    if not index.is_unique:
        raise InvalidInputError("Source polygons must have a unique index")
    if not pd.api.types.is_integer_dtype(index):
        raise InvalidInputError(f"Source polygon index must be integer, got {index.dtype}")
    return list(index)


def union_self(
    polygons: gpd.GeoSeries,
    codec: MembershipColumns = MembershipColumns()
) -> Tuple[gpd.GeoDataFrame, pd.DataFrame]:
    """
    Union a polygon layer with itself.

    The boundaries of all polygons are noded and polygonized; each resulting
    face is assigned to the source polygons containing its representative
    point, and faces sharing the same set of sources are dissolved together.

    Returns:
        (merged, membership): merged pieces with a ``count`` column, and a
        frame with only one 0/1 column per source ID (named by ``codec``).
        Both share the same index, ordered by source ID set.
    """
    if isinstance(polygons, gpd.GeoDataFrame):
        polygons = polygons.geometry
    if polygons.empty:
        raise InvalidInputError("Cannot union an empty polygon layer")

    ids = _source_ids(polygons)
    geoms = list(polygons.values)
    logger.info(f"Unioning {len(geoms)} polygons with themselves")

    noded = unary_union([g.boundary for g in geoms if g is not None and not g.is_empty])
    faces = list(polygonize(noded))
    logger.debug(f"Polygonized {len(faces)} faces from noded boundaries")

    tree = STRtree(geoms)
    pieces: Dict[Tuple[int, ...], list] = {}
    for face in faces:
        hits = tree.query(face.representative_point(), predicate="within")
        if len(hits) == 0:
            continue
        key = tuple(sorted(ids[i] for i in hits))
        pieces.setdefault(key, []).append(face)

    keys = sorted(pieces)
    merged_geoms = [unary_union(pieces[k]) for k in keys]
    counts = [len(k) for k in keys]

    membership = pd.DataFrame(
        {codec.name(sid): [int(sid in k) for k in keys] for sid in ids},
        dtype="int64"
    )

    merged = gpd.GeoDataFrame(
        {"count": pd.Series(counts, dtype="int64")},
        geometry=merged_geoms,
        crs=polygons.crs
    )

    logger.info(f"Self-union produced {len(merged)} pieces from {len(geoms)} polygons")
    return merged, membership


def extract_membership(
    matrix: pd.DataFrame,
    codec: MembershipColumns = MembershipColumns()
) -> Dict[Hashable, List[int]]:
    """
    Get, for each merged piece, the IDs of the source polygons composing it.

    IDs are returned in ascending order whatever the column order of
    ``matrix``; pieces keep the row order of ``matrix``.
    """
    id_cols = [c for c in matrix.columns if codec.matches(c)]
    if not id_cols:
        raise InvalidInputError(f"Membership matrix has no '{codec.prefix}' columns")

    by_id = sorted((codec.source_id(c), c) for c in id_cols)
    ordered_ids = [sid for sid, _ in by_id]
    if len(set(ordered_ids)) != len(ordered_ids):
        duplicated = sorted({sid for sid in ordered_ids if ordered_ids.count(sid) > 1})
        raise InvalidInputError(f"Membership columns map to the same source IDs: {duplicated}")
    flags = matrix[[c for _, c in by_id]].fillna(0).to_numpy() > 0

    membership = {}
    for label, row in zip(matrix.index, flags):
        members = [sid for sid, hit in zip(ordered_ids, row) if hit]
        if not members:
            raise InvalidInputError(f"Merged piece {label!r} has no source polygons")
        membership[label] = members

    return membership


def build_carriers(
    geometry_set,
    membership: Mapping[Hashable, Sequence[int]]
) -> List[pd.DataFrame]:
    """Collect the attribute rows of each merged piece's source polygons."""
    if not isinstance(geometry_set, gpd.GeoDataFrame):
        raise MissingAttributeError("Geometry set carries no attributes")

    attributes = pd.DataFrame(geometry_set.drop(columns=geometry_set.geometry.name))
    if attributes.columns.empty:
        raise MissingAttributeError("Geometry set carries no attributes")

    carriers = []
    for label, ids in membership.items():
        missing = [sid for sid in ids if sid not in attributes.index]
        if missing:
            raise UnknownSourceIdError(
                f"Merged piece {label!r} references source IDs {missing} absent from the geometry set"
            )
        carriers.append(attributes.loc[list(ids)].copy())

    logger.debug(f"Built {len(carriers)} attribute carriers")
    return carriers
