"""
File formats for images.

Supported formats:
- Binary MImage (.mbindepth, .mbinRGB) - uncompressed batches of same-sized images
- Text PPM - single-channel float images, human-inspectable
- Raw stream - one image including its sentinel value
"""

from .mbin import (
    MBIN_EXTENSIONS,
    load_binary_mimage,
    load_binary_mimage_array,
    save_binary_mimage,
    save_binary_mimage_array,
)
from .ppm import read_ppm, write_ppm
from .stream import read_image, write_image

__all__ = [
    "MBIN_EXTENSIONS",
    "load_binary_mimage",
    "load_binary_mimage_array",
    "save_binary_mimage",
    "save_binary_mimage_array",
    "read_ppm",
    "write_ppm",
    "read_image",
    "write_image",
]
