"""Helpers for working with British Columbia geographic data."""

from bcmaps.area import bc_area, km2_acres, km2_ha, km2_m2, km2_sq_mi
from bcmaps.attributes import get_poly_attribute
from bcmaps.geom_ops import fix_self_intersect, self_union, transform_bc_albers
from bcmaps.union import MembershipColumns

__all__ = [
    "bc_area",
    "km2_m2",
    "km2_ha",
    "km2_acres",
    "km2_sq_mi",
    "transform_bc_albers",
    "fix_self_intersect",
    "self_union",
    "get_poly_attribute",
    "MembershipColumns",
]
