import geopandas as gpd
import pandas as pd
import pytest
from loguru import logger
from shapely.geometry import Polygon, box


@pytest.fixture
def squares():
    """Two overlapping 2x2 squares with a few attribute columns."""
    return gpd.GeoDataFrame(
        {
            "name": ["a", "b"],
            "value": [1, 2],
            "rank": pd.Categorical(["high", "low"], categories=["low", "high"], ordered=True),
        },
        geometry=[box(0, 0, 2, 2), box(1, 1, 3, 3)],
        crs="EPSG:3005",
    )


@pytest.fixture
def bowtie():
    return gpd.GeoDataFrame(
        {"id": [1]},
        geometry=[Polygon([(0, 0), (2, 2), (2, 0), (0, 2), (0, 0)])],
        crs="EPSG:3005",
    )


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
