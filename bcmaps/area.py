"""
The size of British Columbia.

Figures are the Statistics Canada land and freshwater areas of the province,
in square kilometres.
"""

from typing import Sequence

import pandas as pd

from bcmaps.errors import InvalidArgumentError

AREA_KM2 = {
    "total": 944735,
    "land": 925186,
    "freshwater": 19549,
}

UNITS = ("km2", "m2", "ha", "acres", "sq_mi")


def km2_m2(x):
    return x * 1e6


def km2_ha(x):
    return x * 100


def km2_acres(x):
    return x * 247.105


def km2_sq_mi(x):
    return x * 0.386102


CONVERTERS = {
    "km2": lambda x: x,
    "m2": km2_m2,
    "ha": km2_ha,
    "acres": km2_acres,
    "sq_mi": km2_sq_mi,
}


def match_choice(value: str, choices: Sequence[str], arg_name: str) -> str:
    """Resolve ``value`` to one of ``choices``, accepting an unambiguous prefix."""
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(f"'{arg_name}' should be one of {', '.join(choices)}")
    if value in choices:
        return value

    candidates = [c for c in choices if c.startswith(value)]
    if len(candidates) != 1:
        raise InvalidArgumentError(f"'{arg_name}' should be one of {', '.join(choices)}, got {value!r}")
    return candidates[0]


def bc_area(what: str = "total", units: str = "km2") -> pd.Series:
    """
    Total area, land area only, or freshwater area only of B.C.

    Args:
        what: One of 'total' (default), 'land' or 'freshwater'
        units: One of 'km2' (default), 'm2', 'ha', 'acres' or 'sq_mi'

    Returns:
        A one-element Series labelled '<what>_<units>' holding the area
        rounded to the nearest whole unit.

    Examples:
        >>> bc_area()["total_km2"]
        944735
        >>> bc_area("land", "ha")["land_ha"]
        92518600
    """
    what = match_choice(what, tuple(AREA_KM2), "what")
    units = match_choice(units, UNITS, "units")

    value = round(CONVERTERS[units](AREA_KM2[what]))
    return pd.Series([value], index=[f"{what}_{units}"], dtype="int64")
