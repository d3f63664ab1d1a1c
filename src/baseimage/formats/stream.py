"""
Raw stream serialization of a single image.

Layout (little-endian): width uint32, height uint32, the sentinel pixel
(bytesPerPixel bytes), then width * height raw pixels row-major. The pixel
type is not stored; the reader supplies it through the target image.
"""

import io
from typing import BinaryIO
import struct
import numpy as np

from ..exceptions import ImageFormatError
from ..image import BaseImage


_DIMENSIONS = struct.Struct("<II")


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise ImageFormatError(f"Unexpected end of stream: needed {size} bytes, got {len(data)}")
    return data


def write_image(stream: BinaryIO, image: BaseImage):
    """Write size, sentinel and pixels of `image` to a binary stream."""
    dtype = image.pixel_type.dtype.newbyteorder("<")
    stream.write(_DIMENSIONS.pack(image.width, image.height))
    stream.write(np.asarray(image.invalid_value, dtype=dtype).tobytes())
    if not image.empty:
        stream.write(np.ascontiguousarray(image.data, dtype=dtype).tobytes())


def read_image(stream: BinaryIO, image: BaseImage) -> BaseImage:
    """
    Read an image written by write_image into `image`.

    The whole record is read before `image` is modified.
    """
    pixel_type = image.pixel_type
    dtype = pixel_type.dtype.newbyteorder("<")

    width, height = _DIMENSIONS.unpack(_read_exact(stream, _DIMENSIONS.size))
    sentinel = np.frombuffer(_read_exact(stream, pixel_type.itemsize), dtype=dtype)
    payload = _read_exact(stream, width * height * pixel_type.itemsize)

    image.allocate(width, height)
    image.invalid_value = sentinel.reshape(pixel_type.shape)
    image.initialize(np.frombuffer(payload, dtype=dtype))
    return image


def image_to_bytes(image: BaseImage) -> bytes:
    buffer = io.BytesIO()
    write_image(buffer, image)
    return buffer.getvalue()


def image_from_bytes(data: bytes, image: BaseImage) -> BaseImage:
    return read_image(io.BytesIO(data), image)
