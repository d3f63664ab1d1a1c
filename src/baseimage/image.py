"""
Generic 2D Pixel Buffer

BaseImage is the shared data structure for depth maps, color images and point
images. It owns a row-major numpy array of pixels of one PixelType together
with a per-instance "invalid" sentinel value.

Validity model:
- There is no per-pixel validity flag
- A pixel is invalid iff it equals the sentinel (all components for vectors)
- A computed value that happens to equal the sentinel is treated as missing

Storage layout: shape (height, width) for single-component pixel types and
(height, width, components) otherwise. An image with a zero dimension has no
storage at all (data is None, width == height == 0).
"""

import logging
import math
from typing import Any, Callable, Iterator, NamedTuple, Optional, Tuple, Union
import numpy as np

from .pixel import (
    PixelType,
    ImageFormat,
    FLOAT32,
    PixelConverter,
    format_from_pixel_type,
    get_converter,
    num_channels,
    num_bytes_per_channel,
)
from . import processing

logger = logging.getLogger(__name__)

Coordinate = Union[int, float, np.integer, np.floating]


class PixelEntry(NamedTuple):
    """Read-only iteration entry."""
    x: int
    y: int
    value: Any


class PixelRef:
    """Writable handle to one pixel; assigning `value` writes through to the image."""

    __slots__ = ("x", "y", "_image")

    def __init__(self, image: "BaseImage", x: int, y: int):
        self.x = x
        self.y = y
        self._image = image

    @property
    def value(self):
        # Vector pixels come back as a view into the image storage
        return self._image._data[self.y, self.x]

    @value.setter
    def value(self, value):
        self._image._data[self.y, self.x] = value

    def __repr__(self) -> str:
        return f"PixelRef(x={self.x}, y={self.y}, value={self.value!r})"


def _is_float(value) -> bool:
    return isinstance(value, (float, np.floating))


def _round_half_away(value: float) -> int:
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


class BaseImage:
    """
    Row-major 2D buffer of pixels with a sentinel "invalid" value.

    Example:
        image = BaseImage(4, 4, FLOAT32, invalid_value=-1.0)
        image.fill(lambda x, y: x + y)
        image.get_interpolated(1.5, 1.5)  # 3.0
    """

    PIXEL_TYPE: Optional[PixelType] = None
    DEFAULT_INVALID: Any = 0

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        pixel_type: PixelType = FLOAT32,
        data=None,
        invalid_value=None
    ):
        """
        Create an image.

        Args:
            width, height: Image size; a zero dimension creates an empty image
            pixel_type: Pixel storage type
            data: Optional initial pixels (width * height pixels, row-major)
            invalid_value: Sentinel value (defaults to the class default)
        """
        self._pixel_type = pixel_type
        self._format = format_from_pixel_type(pixel_type)
        if invalid_value is None:
            invalid_value = self.DEFAULT_INVALID
        self._invalid_value = pixel_type.cast(invalid_value)
        self._width = 0
        self._height = 0
        self._data: Optional[np.ndarray] = None

        self.allocate(width, height)
        if data is not None:
            self.initialize(data)

    @classmethod
    def _create(cls, pixel_type: PixelType, invalid_value, width: int = 0, height: int = 0) -> "BaseImage":
        """Instantiate `cls` without going through a subclass constructor."""
        image = cls.__new__(cls)
        BaseImage.__init__(image, width, height, pixel_type, invalid_value=invalid_value)
        return image

    def _blank(self, width: int, height: int) -> "BaseImage":
        """New image of the same class, pixel type, sentinel and format."""
        image = type(self)._create(self._pixel_type, self._invalid_value, width, height)
        image._format = self._format
        return image

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def allocate(self, width: int, height: int):
        """
        Resize the image storage.

        A zero dimension frees the storage. A different size reallocates
        (previous contents are discarded). The same size is a no-op.
        """
        width, height = int(width), int(height)
        if width < 0 or height < 0:
            raise ValueError(f"Invalid image dimensions {width}x{height}")

        if width == 0 or height == 0:
            self.free()
        elif width != self._width or height != self._height:
            self._data = np.zeros((height, width) + self._pixel_type.shape, dtype=self._pixel_type.dtype)
            self._width = width
            self._height = height
            logger.debug("Allocated %dx%d %s image", width, height, self._pixel_type)

    def allocate_same_size(self, other: "BaseImage"):
        self.allocate(other.width, other.height)

    def free(self):
        """Release the storage; the image becomes empty."""
        self._data = None
        self._width = 0
        self._height = 0

    def initialize(self, data):
        """
        Copy pixels into the existing storage.

        Args:
            data: Array-like holding exactly width * height pixels, row-major
        """
        arr = np.asarray(data)
        expected = self._width * self._height * self._pixel_type.components
        if arr.size != expected:
            raise ValueError(
                f"Pixel data has {arr.size} values, expected {expected} "
                f"for a {self._width}x{self._height} {self._pixel_type} image"
            )
        if self._data is not None:
            self._data[...] = arr.reshape(self._data.shape)

    def copy(self) -> "BaseImage":
        """Deep copy, including sentinel and format."""
        image = self._blank(0, 0)
        if self._data is not None:
            image._data = self._data.copy()
            image._width = self._width
            image._height = self._height
        return image

    def __copy__(self) -> "BaseImage":
        return self.copy()

    def __deepcopy__(self, memo) -> "BaseImage":
        return self.copy()

    def move(self) -> "BaseImage":
        """Transfer the storage to a new image and leave this one empty."""
        image = self._blank(0, 0)
        self.swap(image)
        return image

    def swap(self, other: "BaseImage"):
        """Exchange storage, dimensions, sentinel and format with `other`."""
        if other._pixel_type != self._pixel_type:
            raise TypeError(f"Cannot swap {self._pixel_type} image with {other._pixel_type} image")
        self._data, other._data = other._data, self._data
        self._width, other._width = other._width, self._width
        self._height, other._height = other._height, self._height
        self._invalid_value, other._invalid_value = other._invalid_value, self._invalid_value
        self._format, other._format = other._format, self._format

    def assign(self, other: "BaseImage") -> "BaseImage":
        """Copy-assign pixels, sentinel and format from `other`."""
        if other is self:
            return self
        if other._pixel_type != self._pixel_type:
            raise TypeError(f"Cannot assign {other._pixel_type} image to {self._pixel_type} image")
        self.allocate_same_size(other)
        if other._data is not None:
            self._data[...] = other._data
        self._invalid_value = self._pixel_type.cast(other._invalid_value)
        self._format = other._format
        return self

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def dimensions(self) -> Tuple[int, int]:
        """(width, height)"""
        return (self._width, self._height)

    @property
    def size(self) -> int:
        """Number of pixels."""
        return self._width * self._height

    def __len__(self) -> int:
        return self.size

    @property
    def empty(self) -> bool:
        return self._data is None

    @property
    def data(self) -> Optional[np.ndarray]:
        """The raw row-major pixel array (None for an empty image)."""
        return self._data

    @property
    def pixel_type(self) -> PixelType:
        return self._pixel_type

    @property
    def format(self) -> ImageFormat:
        return self._format

    @format.setter
    def format(self, value: ImageFormat):
        self._format = ImageFormat(value)

    @property
    def invalid_value(self):
        value = self._invalid_value
        return value.copy() if isinstance(value, np.ndarray) else value

    @invalid_value.setter
    def invalid_value(self, value):
        self._invalid_value = self._pixel_type.cast(value)

    @property
    def num_channels(self) -> int:
        return num_channels(self._pixel_type)

    @property
    def num_bytes_per_channel(self) -> int:
        return num_bytes_per_channel(self._pixel_type)

    @property
    def num_bytes_per_pixel(self) -> int:
        return self._pixel_type.itemsize

    # ------------------------------------------------------------------
    # Pixel access
    # ------------------------------------------------------------------

    def _axis_index(self, value: Coordinate, extent: int) -> int:
        """Integer coordinates pass through; floats are normalized to [0, 1]."""
        if _is_float(value):
            return _round_half_away(float(value) * (extent - 1))
        if isinstance(value, (int, np.integer)):
            return int(value)
        raise TypeError(f"Pixel coordinates must be int or float, got {type(value).__name__}")

    def _index(self, x: Coordinate, y: Coordinate) -> Tuple[int, int]:
        ix = self._axis_index(x, self._width)
        iy = self._axis_index(y, self._height)
        if not self.is_valid_coordinate(ix, iy):
            raise IndexError(f"Pixel ({ix}, {iy}) out of bounds for {self._width}x{self._height} image")
        return ix, iy

    def _pixel_value(self, raw):
        return raw.copy() if isinstance(raw, np.ndarray) else raw

    def get_pixel(self, x: Coordinate, y: Coordinate):
        """
        Read a pixel.

        Args:
            x, y: Integer pixel indices, or floats in [0, 1] which map to
                round(coord * (dimension - 1))

        Returns:
            numpy scalar, or a copy of the component array for vector pixels

        Raises:
            IndexError: If the coordinate is outside the image
        """
        ix, iy = self._index(x, y)
        return self._pixel_value(self._data[iy, ix])

    def set_pixel(self, x: Coordinate, y: Coordinate, value):
        """Write a pixel (same coordinate rules as get_pixel)."""
        ix, iy = self._index(x, y)
        self._data[iy, ix] = value

    def __getitem__(self, key: Tuple[Coordinate, Coordinate]):
        x, y = key
        return self.get_pixel(x, y)

    def __setitem__(self, key: Tuple[Coordinate, Coordinate], value):
        x, y = key
        self.set_pixel(x, y, value)

    def get_interpolated(self, x: float, y: float):
        """
        Bilinearly interpolated pixel at a fractional position.

        Args:
            x: Position in [0, width - 1]
            y: Position in [0, height - 1]

        Returns:
            Interpolated pixel, cast to the pixel type
        """
        if not (_is_float(x) and _is_float(y)):
            raise TypeError("get_interpolated expects floating point coordinates")

        xl, yl, xh, yh = processing.interpolation_corners(x, y)
        if not (self.is_valid_coordinate(xl, yl) and self.is_valid_coordinate(xh, yh)):
            raise IndexError(
                f"Interpolation position ({x}, {y}) out of bounds for {self._width}x{self._height} image"
            )
        return self._pixel_type.cast(processing.bilinear_sample(self._data, x, y))

    # ------------------------------------------------------------------
    # Validity
    # ------------------------------------------------------------------

    def is_valid_coordinate(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def is_valid_value(self, value) -> bool:
        return not np.array_equal(self._pixel_type.cast(value), self._invalid_value)

    def is_valid(self, x: Coordinate, y: Coordinate) -> bool:
        """True if the pixel at (x, y) differs from the sentinel."""
        return self.is_valid_value(self.get_pixel(x, y))

    def set_invalid(self, x: Coordinate, y: Coordinate):
        self.set_pixel(x, y, self._invalid_value)

    def valid_mask(self) -> np.ndarray:
        """Boolean (height, width) mask of pixels different from the sentinel."""
        if self._data is None:
            return np.zeros((0, 0), dtype=bool)
        return ~processing.equal_mask(self._data, self._invalid_value)

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def fill(self, function: Callable[[int, int], Any]):
        """Set every pixel to function(x, y), row-major."""
        for y in range(self._height):
            for x in range(self._width):
                self._data[y, x] = function(x, y)

    def copy_into(self, source: "BaseImage", start_x: int, start_y: int):
        """
        Overwrite a region of this image with `source`.

        Raises:
            ValueError: If the source does not fit at (start_x, start_y);
                the image is left unchanged
            TypeError: If the source has a different pixel type
        """
        if source.pixel_type != self._pixel_type:
            raise TypeError(f"Cannot copy {source.pixel_type} image into {self._pixel_type} image")
        if (start_x < 0 or start_y < 0 or
                start_x + source.width > self._width or
                start_y + source.height > self._height):
            raise ValueError(
                f"Cannot copy {source.width}x{source.height} image to ({start_x}, {start_y}) "
                f"of {self._width}x{self._height} image"
            )
        if source._data is None:
            return
        self._data[start_y:start_y + source.height, start_x:start_x + source.width] = source._data

    def flip_x(self):
        """Mirror horizontally (in place)."""
        if self._data is not None:
            self._data[...] = self._data[:, ::-1].copy()

    def flip_y(self):
        """Mirror vertically (in place)."""
        if self._data is not None:
            self._data[...] = self._data[::-1].copy()

    def replace_value(self, old_value, new_value):
        """Set every pixel equal to `old_value` to `new_value`."""
        if self._data is not None:
            mask = processing.equal_mask(self._data, self._pixel_type.cast(old_value))
            self._data[mask] = self._pixel_type.cast(new_value)

    def set_all(self, value):
        if self._data is not None:
            self._data[...] = self._pixel_type.cast(value)

    def count_not_equal_to(self, value) -> int:
        if self._data is None:
            return 0
        mask = processing.equal_mask(self._data, self._pixel_type.cast(value))
        return int(np.count_nonzero(~mask))

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def _check_compatible(self, other: "BaseImage"):
        if other.dimensions != self.dimensions:
            raise ValueError(
                f"Invalid image dimensions: {self._width}x{self._height} "
                f"vs {other.width}x{other.height}"
            )
        if other.pixel_type != self._pixel_type:
            raise TypeError(f"Pixel type mismatch: {self._pixel_type} vs {other.pixel_type}")

    def _combine(self, other: "BaseImage", ufunc) -> "BaseImage":
        self._check_compatible(other)
        result = self._blank(self._width, self._height)
        if self._data is not None:
            ufunc(self._data, other._data, out=result._data)
        return result

    def __add__(self, other):
        if not isinstance(other, BaseImage):
            return NotImplemented
        return self._combine(other, np.add)

    def __sub__(self, other):
        if not isinstance(other, BaseImage):
            return NotImplemented
        return self._combine(other, np.subtract)

    def _apply_scalar(self, ufunc, value) -> "BaseImage":
        if self._data is not None:
            # Out-of-range integer scalars wrap to the pixel dtype
            ufunc(self._data, np.asarray(value), out=self._data, casting="unsafe")
        return self

    def __iadd__(self, value):
        if isinstance(value, BaseImage):
            return NotImplemented
        return self._apply_scalar(np.add, value)

    def __isub__(self, value):
        if isinstance(value, BaseImage):
            return NotImplemented
        return self._apply_scalar(np.subtract, value)

    def __imul__(self, value):
        if isinstance(value, BaseImage):
            return NotImplemented
        return self._apply_scalar(np.multiply, value)

    def __itruediv__(self, value):
        if isinstance(value, BaseImage):
            return NotImplemented
        return self._apply_scalar(np.true_divide, value)

    def scale(self, factor):
        """Multiply every pixel by `factor` (in place)."""
        self._apply_scalar(np.multiply, factor)

    def __eq__(self, other):
        """Same dimensions and identical pixels; the sentinel is not compared."""
        if not isinstance(other, BaseImage):
            return NotImplemented
        if other.dimensions != self.dimensions:
            return False
        if self._data is None:
            return True
        return bool(np.array_equal(self._data, other._data))

    __hash__ = None

    # ------------------------------------------------------------------
    # Algorithms
    # ------------------------------------------------------------------

    def mip_map(self, ignore_invalid: bool = False) -> "BaseImage":
        """
        Next mip-map level (box filtered, half size, odd sizes truncate).

        Args:
            ignore_invalid: Average only valid pixels; all-invalid blocks
                become the sentinel. When False sentinels are averaged in.

        Returns:
            New image of the same kind with the same sentinel
        """
        result = self._blank(self._width // 2, self._height // 2)
        if result._data is not None:
            result._data[...] = processing.mip_map(self._data, self._invalid_value, ignore_invalid)
        return result

    def resample(self, new_width: int, new_height: int):
        """
        Nearest-neighbor resampling to a new size (in place).

        No-op when the size is unchanged. A zero dimension empties the image.
        """
        if new_width < 0 or new_height < 0:
            raise ValueError(f"Invalid resample dimensions {new_width}x{new_height}")
        if (new_width, new_height) == (self._width, self._height):
            return
        if new_width == 0 or new_height == 0:
            self.free()
            return
        if self._data is None:
            raise ValueError(f"Cannot resample an empty image to {new_width}x{new_height}")

        resampled = processing.resample_nearest(self._data, new_width, new_height)
        self._data = np.ascontiguousarray(resampled)
        self._width = new_width
        self._height = new_height

    def smooth(self, steps: int = 1):
        """Laplacian smoothing of valid pixels over their 4-neighborhood (in place)."""
        if self._data is not None and steps > 0:
            self._data = processing.laplacian_smooth(self._data, self._invalid_value, steps)

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def convert_to(
        self,
        pixel_type: PixelType,
        converter: Optional[PixelConverter] = None
    ) -> "BaseImage":
        """
        Build an image of another pixel type.

        Args:
            pixel_type: Target pixel type
            converter: Vectorized pixel converter; looked up by type pair if None.
                The sentinel goes through the same converter.
        """
        return BaseImage.from_image(self, converter=converter, pixel_type=pixel_type)

    @classmethod
    def from_image(
        cls,
        source: "BaseImage",
        converter: Optional[PixelConverter] = None,
        pixel_type: Optional[PixelType] = None
    ) -> "BaseImage":
        """
        Build an image of this class from an image of any pixel type.

        Args:
            source: Image to convert
            converter: Vectorized pixel converter (looked up if None)
            pixel_type: Target pixel type; defaults to the class pixel type
        """
        target = pixel_type or cls.PIXEL_TYPE
        if target is None:
            raise TypeError(f"{cls.__name__}.from_image needs a target pixel type")
        if converter is None:
            converter = get_converter(source.pixel_type, target)

        sentinel = np.asarray(source._invalid_value)[np.newaxis]
        invalid_value = np.asarray(converter(sentinel))[0]

        result = cls._create(target, invalid_value, source.width, source.height)
        if source._data is not None:
            result._data[...] = converter(source._data)
        return result

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[PixelEntry]:
        """Row-major (x fastest) read-only traversal."""
        for y in range(self._height):
            for x in range(self._width):
                yield PixelEntry(x, y, self._pixel_value(self._data[y, x]))

    def _pixel_refs(self) -> Iterator[PixelRef]:
        for y in range(self._height):
            for x in range(self._width):
                yield PixelRef(self, x, y)

    def pixels(self, writable: bool = False) -> Iterator[Union[PixelEntry, PixelRef]]:
        """
        Lazy row-major traversal.

        Args:
            writable: Yield PixelRef handles that write through instead of
                read-only PixelEntry tuples
        """
        if writable:
            return self._pixel_refs()
        return iter(self)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def save_as_binary_mimage(self, path):
        """Save to a binary .mbindepth / .mbinRGB file."""
        from .formats.mbin import save_binary_mimage
        save_binary_mimage(path, self)

    def load_from_binary_mimage(self, path):
        """Replace size and pixels from a binary .mbindepth / .mbinRGB file (sentinel kept)."""
        from .formats.mbin import load_binary_mimage
        loaded = load_binary_mimage(path, pixel_type=self._pixel_type)
        self._data = loaded._data
        self._width = loaded.width
        self._height = loaded.height

    def to_bytes(self) -> bytes:
        """Serialize size, sentinel and pixels."""
        from .formats.stream import image_to_bytes
        return image_to_bytes(self)

    @classmethod
    def from_bytes(cls, buffer: bytes, pixel_type: Optional[PixelType] = None) -> "BaseImage":
        """Inverse of to_bytes."""
        from .formats.stream import image_from_bytes
        target = pixel_type or cls.PIXEL_TYPE
        if target is None:
            raise TypeError(f"{cls.__name__}.from_bytes needs a pixel type")
        return image_from_bytes(buffer, cls._create(target, cls.DEFAULT_INVALID))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self._width}x{self._height}, "
            f"pixel_type={self._pixel_type}, format={self._format.name})"
        )
