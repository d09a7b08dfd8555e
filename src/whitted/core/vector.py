"""Python-side vector algebra used while building scenes.

Kernel code uses the ``@ti.func`` helpers in ``whitted.core.ray``. This module
covers the same operations for host code (camera basis, light directions,
validation) with NumPy, and is the place where a zero-length normalization is
reported as an exception rather than absorbed.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

from whitted.errors import DegenerateVectorError

Vector = npt.NDArray[np.float64]

# Length under which a vector cannot be normalized
DEGENERATE_LENGTH = 1e-12


def as_vector(values: Sequence[float] | npt.ArrayLike) -> Vector:
    """Convert a 3-element sequence to a float64 NumPy vector.

    Raises:
        ValueError: If the input does not hold exactly three finite numbers.
    """
    vector = np.asarray(values, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"Expected 3 components, got shape {vector.shape}")
    if not np.all(np.isfinite(vector)):
        raise ValueError(f"Vector components must be finite, got {vector.tolist()}")
    return vector


def normalize(v: Sequence[float] | npt.ArrayLike) -> Vector:
    """Return v scaled to unit length.

    Raises:
        DegenerateVectorError: If v has (near) zero length.
    """
    vector = as_vector(v)
    norm = float(np.linalg.norm(vector))
    if norm < DEGENERATE_LENGTH:
        raise DegenerateVectorError(f"Cannot normalize zero-length vector {vector.tolist()}")
    return vector / norm


def reflect(incident: npt.ArrayLike, normal: npt.ArrayLike) -> Vector:
    """Reflect incident about a unit normal: d - 2 * dot(d, n) * n."""
    d = as_vector(incident)
    n = as_vector(normal)
    return d - 2.0 * float(np.dot(d, n)) * n


def refract(incident: npt.ArrayLike, normal: npt.ArrayLike, eta: float) -> Vector | None:
    """Refract a unit direction through a surface.

    Args:
        incident: Unit incoming direction.
        normal: Unit normal facing against the incoming direction.
        eta: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted unit direction, or None under total internal reflection.
    """
    d = as_vector(incident)
    n = as_vector(normal)
    cos_i = -float(np.dot(d, n))
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    if sin2_t > 1.0:
        return None
    cos_t = np.sqrt(1.0 - sin2_t)
    return eta * d + (eta * cos_i - cos_t) * n


def is_parallel(a: npt.ArrayLike, b: npt.ArrayLike, tolerance: float = 1e-9) -> bool:
    """Check whether two non-zero vectors are parallel (or anti-parallel)."""
    cross = np.cross(normalize(a), normalize(b))
    return float(np.linalg.norm(cross)) < tolerance
