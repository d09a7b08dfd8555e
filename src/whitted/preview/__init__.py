"""Image output for rendered frames.

Components:
    export: gamma encoding, 8-bit conversion and file output via Pillow

Example:
    >>> from whitted.preview import save_image
    >>> save_image(image, "output.png", gamma=2.2)
"""

from whitted.preview.export import (
    apply_gamma,
    compute_rmse,
    image_to_uint8,
    save_image,
)

__all__ = [
    "apply_gamma",
    "compute_rmse",
    "image_to_uint8",
    "save_image",
]
