"""
Color Image Kinds and Depth Visualization

Handles:
- ColorImageRGB / ColorImageRGBA: float color images, invalid pixels are -inf
- Normalization of 8-bit color data to float
- False-color mapping of depth images through a fixed hue ramp

Depth Ramp:
- Depth is normalized to t in [0, 1] over [min_depth, max_depth]
- Hue runs from 240 degrees (blue, nearest) to 0 degrees (red, farthest)
- Saturation and value are 1; RGBA output has alpha 1
"""

import logging
import math
from typing import Optional, Tuple
import numpy as np
from numba import njit

from .image import BaseImage
from .pixel import FLOAT32, VEC3F, VEC4F, VEC3UC, VEC4UC, PixelType


logger = logging.getLogger(__name__)

# Hue (degrees) of the nearest depth; the farthest depth maps to hue 0
DEPTH_RAMP_HUE = 240.0


@njit(cache=True)
def _hsv_to_rgb(h: float, s: float, v: float) -> Tuple[float, float, float]:
    """
    Convert HSV to RGB.

    Args:
        h: Hue in degrees
        s: Saturation in [0, 1]
        v: Value in [0, 1]

    Returns:
        (r, g, b) in [0, 1]
    """
    hd = h / 60.0
    sector = math.floor(hd)
    f = hd - sector
    p = v * (1.0 - s)
    q = v * (1.0 - s * f)
    t = v * (1.0 - s * (1.0 - f))

    i = int(sector) % 6
    if i == 0:
        return v, t, p
    elif i == 1:
        return q, v, p
    elif i == 2:
        return p, v, t
    elif i == 3:
        return p, q, v
    elif i == 4:
        return t, p, v
    return v, p, q


@njit(cache=True)
def _depth_to_rgb_component(depth: float, min_depth: float, max_depth: float) -> Tuple[float, float, float]:
    """Map a single depth value onto the hue ramp."""
    span = max_depth - min_depth
    t = 0.0
    if span > 0.0:
        t = (depth - min_depth) / span
    t = min(max(t, 0.0), 1.0)
    return _hsv_to_rgb(DEPTH_RAMP_HUE * (1.0 - t), 1.0, 1.0)


@njit(cache=True)
def _depth_to_color(
    depth: np.ndarray,
    invalid: float,
    min_depth: float,
    max_depth: float,
    invalid_color: np.ndarray
) -> np.ndarray:
    """
    Convert a depth array to false colors.

    Args:
        depth: Array of shape (H, W)
        invalid: Depth sentinel
        min_depth, max_depth: Depth range mapped onto the ramp
        invalid_color: Color written for invalid depth, shape (3,) or (4,)

    Returns:
        float32 array of shape (H, W, len(invalid_color))
    """
    height, width = depth.shape
    channels = invalid_color.shape[0]
    out = np.empty((height, width, channels), dtype=np.float32)

    for y in range(height):
        for x in range(width):
            d = depth[y, x]
            if d == invalid:
                for c in range(channels):
                    out[y, x, c] = invalid_color[c]
                continue

            r, g, b = _depth_to_rgb_component(d, min_depth, max_depth)
            out[y, x, 0] = r
            out[y, x, 1] = g
            out[y, x, 2] = b
            if channels == 4:
                out[y, x, 3] = 1.0

    return out


def convert_depth_to_rgb(depth: float, min_depth: float, max_depth: float) -> np.ndarray:
    """
    False color of a single depth value.

    Returns:
        float32 array [r, g, b]
    """
    return np.array(_depth_to_rgb_component(float(depth), float(min_depth), float(max_depth)), dtype=np.float32)


def convert_depth_to_rgba(depth: float, min_depth: float, max_depth: float) -> np.ndarray:
    """False color of a single depth value with alpha 1."""
    return np.append(convert_depth_to_rgb(depth, min_depth, max_depth), np.float32(1.0))


def valid_depth_range(depth: BaseImage) -> Tuple[float, float]:
    """
    Min and max over the valid pixels of a depth image.

    Returns (0.0, 0.0) when the image has no valid pixel.
    """
    valid = depth.valid_mask()
    if not valid.any():
        return 0.0, 0.0
    values = depth.data[valid]
    return float(values.min()), float(values.max())


class _FloatColorImage(BaseImage):
    """Shared behavior of float color images."""

    PIXEL_TYPE: PixelType = VEC3F
    BYTE_PIXEL_TYPE: PixelType = VEC3UC
    DEFAULT_INVALID = -np.inf

    def __init__(self, width: int = 0, height: int = 0, data=None):
        super().__init__(width, height, self.PIXEL_TYPE, data, self.DEFAULT_INVALID)

    @classmethod
    def from_uint8(cls, width: int, height: int, data, scale: float = 255.0):
        """
        Build a float color image from 8-bit color data.

        Args:
            width, height: Image size
            data: uint8 array-like with width * height pixels, row-major
            scale: Divisor applied to every channel
        """
        channels = cls.PIXEL_TYPE.components
        arr = np.asarray(data, dtype=np.uint8).reshape(height, width, channels)
        return cls(width, height, arr.astype(np.float32) / np.float32(scale))

    @classmethod
    def from_depth(
        cls,
        depth: BaseImage,
        min_depth: Optional[float] = None,
        max_depth: Optional[float] = None
    ):
        """
        False-color visualization of a depth image.

        Args:
            depth: Single-channel float depth image
            min_depth, max_depth: Range mapped onto the ramp; scanned from
                the valid pixels when either is None

        Returns:
            Color image of the same size; invalid depth maps to the color sentinel
        """
        if depth.pixel_type.components != 1:
            raise TypeError(f"Depth image must be single-channel, got {depth.pixel_type}")

        if min_depth is None or max_depth is None:
            min_depth, max_depth = valid_depth_range(depth)
            logger.debug("Depth range: min %f, max %f", min_depth, max_depth)

        result = cls(depth.width, depth.height)
        if not depth.empty:
            values = np.ascontiguousarray(depth.data, dtype=np.float32)
            result._data[...] = _depth_to_color(
                values,
                float(depth.invalid_value),
                float(min_depth),
                float(max_depth),
                np.ascontiguousarray(result.invalid_value, dtype=np.float32),
            )
        return result

    def to_uint8(self) -> BaseImage:
        """Quantize to an 8-bit color image (invalid pixels become 0)."""
        return self.convert_to(self.BYTE_PIXEL_TYPE)


class ColorImageRGB(_FloatColorImage):
    """RGB float color image (also used as point image)."""

    PIXEL_TYPE = VEC3F
    BYTE_PIXEL_TYPE = VEC3UC

    @classmethod
    def from_gray(cls, image: BaseImage) -> "ColorImageRGB":
        """Replicate a single-channel float image into all three channels."""
        return cls.from_image(image.convert_to(FLOAT32))


class ColorImageRGBA(_FloatColorImage):
    """RGBA float color image."""

    PIXEL_TYPE = VEC4F
    BYTE_PIXEL_TYPE = VEC4UC


PointImage = ColorImageRGB
ColorImageR32G32B32 = ColorImageRGB
ColorImageR32G32B32A32 = ColorImageRGBA


class ColorImageR32(BaseImage):
    """Single-channel float image."""

    PIXEL_TYPE = FLOAT32

    def __init__(self, width: int = 0, height: int = 0, data=None):
        super().__init__(width, height, self.PIXEL_TYPE, data)


class ColorImageR8G8B8(BaseImage):
    """8-bit RGB image."""

    PIXEL_TYPE = VEC3UC

    def __init__(self, width: int = 0, height: int = 0, data=None):
        super().__init__(width, height, self.PIXEL_TYPE, data)


class ColorImageR8G8B8A8(BaseImage):
    """8-bit RGBA image."""

    PIXEL_TYPE = VEC4UC

    def __init__(self, width: int = 0, height: int = 0, data=None):
        super().__init__(width, height, self.PIXEL_TYPE, data)
