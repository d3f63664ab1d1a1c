"""
Pixel Type Descriptors

A pixel type is a numpy scalar dtype plus a component count. Everything the
image algorithms need from a pixel (zero construction, addition, scalar
multiplication/division, equality) is provided by numpy for these types, so
algorithms are written once against arrays of shape (H, W) or (H, W, C).

This module also provides:
- ImageFormat: the format tag exposed to renderers and camera code
- Channel / byte introspection with an "unknown" answer for exotic types
- A registry of vectorized pixel converters used by image conversion
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Tuple, Union
import numpy as np


# Reported by channel introspection for types without a known channel layout
UNKNOWN_CHANNELS = -1


@dataclass(frozen=True)
class PixelType:
    """
    Storage description of a single pixel.

    Attributes:
        name: Short type name (e.g. "float", "vec3f")
        dtype: Per-component numpy dtype
        components: Number of components stored per pixel
    """

    name: str
    dtype: np.dtype
    components: int = 1

    def __post_init__(self):
        object.__setattr__(self, "dtype", np.dtype(self.dtype))
        if self.components < 1:
            raise ValueError(f"Pixel type needs at least one component, got {self.components}")

    @property
    def shape(self) -> Tuple[int, ...]:
        """Per-pixel array shape: () for scalars, (components,) for vectors."""
        return () if self.components == 1 else (self.components,)

    @property
    def itemsize(self) -> int:
        """Storage size of one pixel in bytes."""
        return self.dtype.itemsize * self.components

    @property
    def is_vector(self) -> bool:
        return self.components > 1

    def cast(self, value) -> Union[np.generic, np.ndarray]:
        """
        Convert a value to this pixel type.

        Scalars broadcast over all components of a vector type, so
        ``VEC3F.cast(-np.inf)`` yields ``[-inf, -inf, -inf]``.

        Returns:
            numpy scalar for single-component types, 1-D array otherwise
        """
        arr = np.broadcast_to(np.asarray(value), self.shape).astype(self.dtype)
        if self.components == 1:
            return arr[()]
        return arr

    def zero(self) -> Union[np.generic, np.ndarray]:
        return self.cast(0)

    def __str__(self) -> str:
        return self.name


UINT8 = PixelType("uchar", np.uint8)
INT16 = PixelType("short", np.int16)
UINT16 = PixelType("ushort", np.uint16)
INT32 = PixelType("int", np.int32)
UINT32 = PixelType("uint", np.uint32)
FLOAT32 = PixelType("float", np.float32)
FLOAT64 = PixelType("double", np.float64)

VEC2UC = PixelType("vec2uc", np.uint8, 2)
VEC2I = PixelType("vec2i", np.int32, 2)
VEC2UI = PixelType("vec2ui", np.uint32, 2)
VEC2F = PixelType("vec2f", np.float32, 2)
VEC2D = PixelType("vec2d", np.float64, 2)

VEC3UC = PixelType("vec3uc", np.uint8, 3)
VEC3I = PixelType("vec3i", np.int32, 3)
VEC3UI = PixelType("vec3ui", np.uint32, 3)
VEC3F = PixelType("vec3f", np.float32, 3)
VEC3D = PixelType("vec3d", np.float64, 3)

VEC4UC = PixelType("vec4uc", np.uint8, 4)
VEC4I = PixelType("vec4i", np.int32, 4)
VEC4UI = PixelType("vec4ui", np.uint32, 4)
VEC4F = PixelType("vec4f", np.float32, 4)
VEC4D = PixelType("vec4d", np.float64, 4)

# Storable, but has no known channel layout
VEC2US = PixelType("vec2us", np.uint16, 2)


class ImageFormat(Enum):
    """Format tag of an image, derived from its pixel type."""
    COLOR_R8G8B8A8 = "color_r8g8b8a8"
    COLOR_R32G32B32A32 = "color_r32g32b32a32"
    COLOR_R32G32B32 = "color_r32g32b32"
    DEPTH = "depth"
    DEPTH16 = "depth16"
    UNKNOWN = "unknown"


_FORMATS: Dict[PixelType, ImageFormat] = {
    VEC4UC: ImageFormat.COLOR_R8G8B8A8,
    VEC4F: ImageFormat.COLOR_R32G32B32A32,
    VEC3F: ImageFormat.COLOR_R32G32B32,
    FLOAT32: ImageFormat.DEPTH,
    UINT16: ImageFormat.DEPTH16,
}


def format_from_pixel_type(pixel_type: PixelType) -> ImageFormat:
    """Map a pixel type to its image format (UNKNOWN when unmapped)."""
    return _FORMATS.get(pixel_type, ImageFormat.UNKNOWN)


_SCALAR_CHANNEL_DTYPES = frozenset(
    np.dtype(t) for t in (np.uint8, np.int16, np.uint16, np.int32, np.uint32, np.float32, np.float64)
)
_VECTOR_CHANNEL_DTYPES = frozenset(
    np.dtype(t) for t in (np.uint8, np.int32, np.uint32, np.float32, np.float64)
)


def num_channels(pixel_type: PixelType) -> int:
    """
    Number of channels of a pixel type.

    Scalars report 1 and 2/3/4-component vectors report their size, for the
    component dtypes images are normally built from. Anything else reports
    UNKNOWN_CHANNELS.
    """
    if pixel_type.components == 1:
        return 1 if pixel_type.dtype in _SCALAR_CHANNEL_DTYPES else UNKNOWN_CHANNELS
    if pixel_type.components in (2, 3, 4) and pixel_type.dtype in _VECTOR_CHANNEL_DTYPES:
        return pixel_type.components
    return UNKNOWN_CHANNELS


def num_bytes_per_channel(pixel_type: PixelType) -> int:
    channels = num_channels(pixel_type)
    if channels == UNKNOWN_CHANNELS:
        return UNKNOWN_CHANNELS
    return pixel_type.itemsize // channels


def lerp(a, b, t):
    """Linear interpolation a + (b - a) * t."""
    return a + (b - a) * t


# Vectorized converter: array of shape (..., *source.shape) -> (..., *target.shape)
PixelConverter = Callable[[np.ndarray], np.ndarray]

_CONVERTERS: Dict[Tuple[PixelType, PixelType], PixelConverter] = {}


def register_converter(source: PixelType, target: PixelType, converter: PixelConverter):
    """Register the conversion used when building a `target` image from a `source` image."""
    _CONVERTERS[(source, target)] = converter


def get_converter(source: PixelType, target: PixelType) -> PixelConverter:
    """
    Look up the converter for a pixel type pair.

    Registered converters win. Otherwise types with the same component count
    convert with a plain numeric cast.

    Raises:
        TypeError: If no conversion exists for the pair
    """
    converter = _CONVERTERS.get((source, target))
    if converter is not None:
        return converter
    if source.components == target.components:
        return lambda pixels: np.asarray(pixels).astype(target.dtype)
    raise TypeError(f"No pixel conversion from {source} to {target}")


def _normalize_uint8(pixels: np.ndarray) -> np.ndarray:
    return np.asarray(pixels, dtype=np.float32) / np.float32(255.0)


def _quantize_uint8(pixels: np.ndarray) -> np.ndarray:
    scaled = np.rint(np.asarray(pixels, dtype=np.float32) * np.float32(255.0))
    return np.clip(np.nan_to_num(scaled), 0, 255).astype(np.uint8)


def _gray_to(components: int) -> PixelConverter:
    def convert(pixels: np.ndarray) -> np.ndarray:
        gray = np.asarray(pixels, dtype=np.float32)
        return np.repeat(gray[..., np.newaxis], components, axis=-1)
    return convert


register_converter(UINT8, FLOAT32, _normalize_uint8)
register_converter(VEC3UC, VEC3F, _normalize_uint8)
register_converter(VEC4UC, VEC4F, _normalize_uint8)
register_converter(FLOAT32, UINT8, _quantize_uint8)
register_converter(VEC3F, VEC3UC, _quantize_uint8)
register_converter(VEC4F, VEC4UC, _quantize_uint8)
register_converter(FLOAT32, VEC3F, _gray_to(3))
register_converter(FLOAT32, VEC4F, _gray_to(4))
