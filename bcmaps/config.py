"""
Settings for bcmaps.

Defaults can be overridden through environment variables:

    BCMAPS_TARGET_CRS             CRS used by transform_bc_albers (EPSG:3005)
    BCMAPS_MAX_REPAIR_ITERATIONS  buffer-by-zero passes before giving up (10)
    BCMAPS_ID_PREFIX              prefix of membership columns ("ID.")
    BCMAPS_LOG_LEVEL              level used by the CLI (INFO)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from bcmaps.errors import InvalidArgumentError

BC_ALBERS = "EPSG:3005"
ENV_PREFIX = "BCMAPS_"


@dataclass(frozen=True)
class Settings:
    target_crs: str = BC_ALBERS
    max_repair_iterations: int = 10
    id_prefix: str = "ID."
    log_level: str = "INFO"


def _int_from_env(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidArgumentError(f"{key} must be an integer, got {raw!r}")
    if value < 1:
        raise InvalidArgumentError(f"{key} must be at least 1, got {value}")
    return value


def get_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the defaults and any BCMAPS_* environment variables."""
    env = os.environ if env is None else env
    defaults = Settings()

    id_prefix = env.get(f"{ENV_PREFIX}ID_PREFIX", defaults.id_prefix)
    if not id_prefix:
        raise InvalidArgumentError(f"{ENV_PREFIX}ID_PREFIX must not be empty")

    return Settings(
        target_crs=env.get(f"{ENV_PREFIX}TARGET_CRS", defaults.target_crs),
        max_repair_iterations=_int_from_env(
            env, f"{ENV_PREFIX}MAX_REPAIR_ITERATIONS", defaults.max_repair_iterations
        ),
        id_prefix=id_prefix,
        log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level).upper(),
    )
