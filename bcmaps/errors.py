class BcmapsError(Exception):
    pass


class InvalidArgumentError(BcmapsError, ValueError):
    """A selector argument is not one of the accepted choices."""


class InvalidInputError(BcmapsError, ValueError):
    """Malformed membership matrix, carrier list or reduction function."""


class DependencyUnavailableError(BcmapsError, ImportError):
    """A geometry library needed by the operation cannot be imported."""


class UnknownColumnError(BcmapsError, KeyError):
    pass


class UnknownSourceIdError(BcmapsError, KeyError):
    pass


class MissingAttributeError(BcmapsError):
    """Carriers were requested for a geometry set without attributes."""


class ReductionTypeError(BcmapsError, TypeError):
    """The reduction function returned a value of the wrong type."""


class RepairDidNotConvergeError(BcmapsError):
    pass
