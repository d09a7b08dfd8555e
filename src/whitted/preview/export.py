"""Image export utilities for rendered images.

This module converts the float images returned by the renderer into 8-bit
pixels and writes them with Pillow. The output format follows the file
extension (PNG, PPM, BMP, ...).

Example:
    >>> from whitted.core.renderer import render
    >>> from whitted.preview.export import save_image
    >>>
    >>> image = render(scene)
    >>> save_image(image, "output.png", gamma=2.2)
"""

from os import PathLike

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Clamp an image to [0, 1] and apply gamma encoding.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value. 1.0 leaves the values linear.

    Returns:
        Gamma encoded image in [0, 1].

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")

    # Clamp before gamma to avoid NaN from negative values
    result = np.clip(np.nan_to_num(image, nan=0.0), 0.0, 1.0)
    if gamma != 1.0:
        result = np.power(result, 1.0 / gamma)
    return result.astype(np.float32)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    gamma: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float32 image to uint8 for export.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value (default 1.0, linear).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    encoded = apply_gamma(image, gamma)
    return np.round(encoded * 255.0).astype(np.uint8)


def save_image(
    image: npt.NDArray[np.float32],
    filepath: str | PathLike[str],
    gamma: float = 1.0,
) -> None:
    """Save a rendered image.

    Args:
        image: Linear image array of shape (H, W, 3), row 0 at the top.
        filepath: Output file path; the extension selects the format.
        gamma: Gamma correction value (default 1.0, linear).

    Raises:
        ValueError: If the image is not (H, W, 3) or Pillow does not know
            the file extension.
        OSError: If the file cannot be written.
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")

    pil_image = PILImage.fromarray(image_to_uint8(image, gamma))
    pil_image.save(filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
