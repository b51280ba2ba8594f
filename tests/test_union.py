import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import LineString, box

from bcmaps.errors import (
    InvalidInputError,
    MissingAttributeError,
    UnknownSourceIdError,
)
from bcmaps.geom_ops import self_union
from bcmaps.union import MembershipColumns, build_carriers, extract_membership, union_self


def test_union_self_splits_overlap(squares):
    merged, membership = union_self(squares.geometry)

    assert len(merged) == 3
    assert merged["count"].tolist() == [1, 2, 1]
    assert merged.area.tolist() == pytest.approx([3.0, 1.0, 3.0])
    assert merged.crs == squares.crs
    assert list(membership.columns) == ["ID.0", "ID.1"]
    assert membership["ID.0"].tolist() == [1, 1, 0]
    assert membership["ID.1"].tolist() == [0, 1, 1]


def test_union_self_keeps_nested_polygon_hole():
    outer_inner = gpd.GeoSeries([box(0, 0, 4, 4), box(1, 1, 2, 2)])
    merged, _ = union_self(outer_inner)

    assert merged["count"].tolist() == [1, 2]
    assert merged.area.tolist() == pytest.approx([15.0, 1.0])


def test_union_self_rejects_non_integer_index(squares):
    with pytest.raises(InvalidInputError):
        union_self(squares.geometry.set_axis(["x", "y"]))


def test_extract_membership_orders_ids_numerically():
    matrix = pd.DataFrame({"ID.3": [1, 0], "ID.1": [1, 0], "ID.2": [0, 1], "count": [2, 1]})
    assert extract_membership(matrix) == {0: [1, 3], 1: [2]}


def test_extract_membership_ignores_column_order():
    matrix = pd.DataFrame({"ID.1": [True, False], "ID.2": [False, True], "ID.3": [True, False]})
    reordered = matrix[["ID.2", "ID.3", "ID.1"]]
    assert extract_membership(reordered) == extract_membership(matrix) == {0: [1, 3], 1: [2]}


def test_extract_membership_keeps_row_labels_and_order():
    matrix = pd.DataFrame({"ID.10": [0, 1], "ID.2": [1, 1]}, index=["p", "q"])
    result = extract_membership(matrix)
    assert list(result) == ["p", "q"]
    assert result["q"] == [2, 10]


def test_extract_membership_with_custom_codec():
    codec = MembershipColumns(prefix="src_")
    matrix = pd.DataFrame({"src_5": [1], "src_4": [1], "ID.9": [1]})
    assert extract_membership(matrix, codec) == {0: [4, 5]}


def test_extract_membership_requires_membership_columns():
    with pytest.raises(InvalidInputError):
        extract_membership(pd.DataFrame({"count": [1, 2]}))


def test_extract_membership_rejects_empty_row():
    with pytest.raises(InvalidInputError):
        extract_membership(pd.DataFrame({"ID.1": [1, 0]}))


def test_extract_membership_rejects_unparseable_id():
    with pytest.raises(InvalidInputError):
        extract_membership(pd.DataFrame({"ID.abc": [1]}))


def test_build_carriers_preserves_membership_order(squares):
    carriers = build_carriers(squares, {0: [1, 0], 1: [0]})

    assert len(carriers) == 2
    assert carriers[0]["name"].tolist() == ["b", "a"]
    assert carriers[1]["name"].tolist() == ["a"]
    assert "geometry" not in carriers[0].columns


def test_build_carriers_does_not_touch_input(squares):
    carriers = build_carriers(squares, {0: [0, 1]})
    carriers[0]["value"] = 99
    assert squares["value"].tolist() == [1, 2]


def test_build_carriers_without_attributes(squares):
    with pytest.raises(MissingAttributeError):
        build_carriers(squares.geometry, {0: [0]})
    with pytest.raises(MissingAttributeError):
        build_carriers(squares[["geometry"]], {0: [0]})


def test_build_carriers_unknown_source_id(squares):
    with pytest.raises(UnknownSourceIdError):
        build_carriers(squares, {0: [0, 7]})


def test_self_union_with_attributes(squares):
    unioned = self_union(squares)

    assert list(unioned.columns) == ["union_count", "union_ids", "union_df", "geometry"]
    assert unioned["union_count"].tolist() == [1, 2, 1]
    assert unioned["union_ids"].tolist() == [[0], [0, 1], [1]]
    assert unioned["union_df"].iloc[1]["name"].tolist() == ["a", "b"]
    assert unioned.crs == squares.crs


def test_self_union_geometry_only(squares):
    unioned = self_union(squares.geometry)

    assert list(unioned.columns) == ["union_count", "union_ids", "geometry"]
    assert unioned["union_ids"].tolist() == [[0], [0, 1], [1]]


def test_self_union_disjoint_polygons():
    layer = gpd.GeoDataFrame({"v": [1, 2]}, geometry=[box(0, 0, 1, 1), box(5, 5, 6, 6)])
    unioned = self_union(layer)

    assert unioned["union_count"].tolist() == [1, 1]
    assert unioned["union_ids"].tolist() == [[0], [1]]


def test_self_union_uses_index_labels_as_ids(squares):
    unioned = self_union(squares.set_axis([10, 20]))
    assert unioned["union_ids"].tolist() == [[10], [10, 20], [20]]


def test_self_union_rejects_lines():
    lines = gpd.GeoSeries([LineString([(0, 0), (1, 1)])])
    with pytest.raises(TypeError):
        self_union(lines)


def test_self_union_rejects_plain_frames():
    with pytest.raises(TypeError):
        self_union(pd.DataFrame({"a": [1]}))


@pytest.mark.parametrize("prefix", ["c", "co", "count"])
def test_self_union_with_prefix_of_count_column(squares, prefix):
    codec = MembershipColumns(prefix=prefix)
    unioned = self_union(squares, codec)

    assert unioned["union_ids"].tolist() == [[0], [0, 1], [1]]
    assert unioned["union_count"].tolist() == [1, 2, 1]


def test_membership_columns_need_a_prefix():
    with pytest.raises(InvalidInputError):
        MembershipColumns(prefix="")


def test_extract_membership_rejects_duplicate_ids():
    matrix = pd.DataFrame({"ID.1": [1, 0], "ID.01": [0, 1]})
    with pytest.raises(InvalidInputError, match=r"\[1\]"):
        extract_membership(matrix)
