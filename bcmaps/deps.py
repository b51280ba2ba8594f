import importlib
from importlib.util import find_spec

from bcmaps.errors import DependencyUnavailableError
from bcmaps.logging_cfg import get_logger

logger = get_logger(__name__)


def require(package: str, purpose: str):
    """Import and return ``package``, or raise DependencyUnavailableError."""
    if find_spec(package) is None:
        logger.error(f"Package {package} could not be loaded (needed for {purpose})")
        raise DependencyUnavailableError(f"Package {package} could not be loaded (needed for {purpose})")
    return importlib.import_module(package)
