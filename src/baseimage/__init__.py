"""
BaseImage
=========

Generic 2D pixel buffers for depth maps, color images and point images.

This package provides a single image abstraction parameterized over pixel type
(scalars and 2-4 component vectors of various bit widths) with a sentinel-based
validity model: a pixel is "missing" when it equals the image's invalid value.

Key Features:
- Bounds-checked pixel access with integer or normalized [0, 1] coordinates
- Mip-mapping, nearest-neighbor resampling, Laplacian smoothing, bilinear interpolation
- Depth images (float / 16-bit) and float RGB / RGBA color images
- Depth to false-color visualization with numba-compiled kernels
- Binary MImage container (.mbindepth, .mbinRGB), text PPM and raw stream I/O

Example Usage:
    from baseimage import DepthImage, ColorImageRGB

    depth = DepthImage(640, 480)
    depth.fill(lambda x, y: 1.0 + 0.01 * x)
    depth.set_invalid(0, 0)
    depth.smooth(2)
    depth.save_as_binary_mimage("frame.mbindepth")

    colors = ColorImageRGB.from_depth(depth)
"""

__version__ = "1.0.0"
__author__ = "BaseImage Team"

from .pixel import (
    PixelType,
    ImageFormat,
    UNKNOWN_CHANNELS,
    format_from_pixel_type,
    register_converter,
    UINT8, INT16, UINT16, INT32, UINT32, FLOAT32, FLOAT64,
    VEC2UC, VEC2I, VEC2UI, VEC2F, VEC2D,
    VEC3UC, VEC3I, VEC3UI, VEC3F, VEC3D,
    VEC4UC, VEC4I, VEC4UI, VEC4F, VEC4D,
    VEC2US,
)
from .image import BaseImage, PixelEntry, PixelRef
from .depth import DepthImage, DepthImage16
from .color import (
    ColorImageRGB,
    ColorImageRGBA,
    PointImage,
    ColorImageR32,
    ColorImageR8G8B8,
    ColorImageR8G8B8A8,
    ColorImageR32G32B32,
    ColorImageR32G32B32A32,
    convert_depth_to_rgb,
    convert_depth_to_rgba,
)
from .exceptions import ImageFormatError, ValueClampedWarning
from .formats import (
    load_binary_mimage,
    load_binary_mimage_array,
    save_binary_mimage,
    save_binary_mimage_array,
)

__all__ = [
    "PixelType",
    "ImageFormat",
    "UNKNOWN_CHANNELS",
    "format_from_pixel_type",
    "register_converter",
    "UINT8", "INT16", "UINT16", "INT32", "UINT32", "FLOAT32", "FLOAT64",
    "VEC2UC", "VEC2I", "VEC2UI", "VEC2F", "VEC2D",
    "VEC3UC", "VEC3I", "VEC3UI", "VEC3F", "VEC3D",
    "VEC4UC", "VEC4I", "VEC4UI", "VEC4F", "VEC4D",
    "VEC2US",
    "BaseImage",
    "PixelEntry",
    "PixelRef",
    "DepthImage",
    "DepthImage16",
    "ColorImageRGB",
    "ColorImageRGBA",
    "PointImage",
    "ColorImageR32",
    "ColorImageR8G8B8",
    "ColorImageR8G8B8A8",
    "ColorImageR32G32B32",
    "ColorImageR32G32B32A32",
    "convert_depth_to_rgb",
    "convert_depth_to_rgba",
    "ImageFormatError",
    "ValueClampedWarning",
    "load_binary_mimage",
    "load_binary_mimage_array",
    "save_binary_mimage",
    "save_binary_mimage_array",
]
