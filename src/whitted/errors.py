"""Exception types raised by the ray tracer."""


class WhittedError(Exception):
    """Base class for all ray tracer errors."""


class ConfigurationError(WhittedError, ValueError):
    """The scene description is malformed or inconsistent.

    Raised while the scene is being built, never during rendering. The message
    names the offending field whenever it is known (e.g.
    ``objects[2].material.index``).
    """


class DegenerateGeometryError(WhittedError, ArithmeticError):
    """A geometric computation has no meaningful result."""


class DegenerateVectorError(DegenerateGeometryError):
    """A zero-length vector was normalized."""
