"""
Depth Image Kinds

- DepthImage: float32 depth, invalid pixels are -inf
- DepthImage16: uint16 depth (e.g. raw sensor millimeters), invalid pixels are 0

DepthImage can also be written to / read from the text PPM variant, which
stores values in [0, 1] with 8-bit precision.
"""

from pathlib import Path
from typing import Optional, Union
import numpy as np

from .image import BaseImage
from .pixel import FLOAT32, UINT16
from .formats.ppm import read_ppm, write_ppm


class DepthImage(BaseImage):
    """Float depth map with -inf marking missing depth."""

    PIXEL_TYPE = FLOAT32
    DEFAULT_INVALID = -np.inf

    def __init__(self, width: int = 0, height: int = 0, data=None):
        super().__init__(width, height, self.PIXEL_TYPE, data, self.DEFAULT_INVALID)

    def save_as_ppm(self, path: Union[str, Path]):
        """
        Save as a text PPM file.

        Values are clamped to [0, 1] (a ValueClampedWarning is emitted when
        that happens, including for invalid pixels) and quantized to 8 bits.
        """
        values = self._data if self._data is not None else np.zeros((0, 0), dtype=np.float32)
        write_ppm(path, values)

    def load_from_ppm(self, path: Union[str, Path]):
        """Replace size and pixels with the contents of a text PPM file."""
        values = read_ppm(path)
        height, width = values.shape
        self.allocate(width, height)
        self.initialize(values)

    def to_color(self, min_depth: Optional[float] = None, max_depth: Optional[float] = None):
        """False-color visualization, see ColorImageRGB.from_depth."""
        from .color import ColorImageRGB
        return ColorImageRGB.from_depth(self, min_depth, max_depth)


class DepthImage16(BaseImage):
    """16-bit depth map with 0 marking missing depth."""

    PIXEL_TYPE = UINT16
    DEFAULT_INVALID = 0

    def __init__(self, width: int = 0, height: int = 0, data=None):
        super().__init__(width, height, self.PIXEL_TYPE, data, self.DEFAULT_INVALID)
