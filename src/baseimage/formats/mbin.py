"""
Binary MImage Container Format

A private, uncompressed container for one or more same-sized images of the
same pixel type. Two file extensions are accepted by convention:
- .mbindepth - depth buffers
- .mbinRGB   - color buffers
The container itself carries no type tag; readers must know the pixel type.

File Structure (little-endian):
- numImages     uint32
- width         uint32
- height        uint32
- bytesPerPixel uint32
- numImages blocks of width * height * bytesPerPixel raw bytes, row-major
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Type, Union
import struct
import numpy as np

from ..exceptions import ImageFormatError
from ..image import BaseImage
from ..pixel import PixelType


logger = logging.getLogger(__name__)

MBIN_EXTENSIONS = (".mbindepth", ".mbinRGB")
MBIN_HEADER = struct.Struct("<IIII")

PathLike = Union[str, Path]


def _check_extension(path: Path):
    if path.suffix not in MBIN_EXTENSIONS:
        raise ImageFormatError(
            f"Invalid file extension '{path.suffix}' for {path} "
            f"(expected one of {', '.join(MBIN_EXTENSIONS)})"
        )


def _little_endian(pixel_type: PixelType) -> np.dtype:
    return pixel_type.dtype.newbyteorder("<")


def save_binary_mimage(path: PathLike, image: BaseImage):
    """Save a single image as a binary MImage file."""
    save_binary_mimage_array(path, [image])


def save_binary_mimage_array(path: PathLike, images: Sequence[BaseImage]):
    """
    Save several images into one binary MImage file.

    All images are validated before the file is opened, so a rejected batch
    writes nothing. A failure while writing leaves a truncated file.

    Args:
        path: Output file (.mbindepth or .mbinRGB)
        images: Images sharing width, height and pixel type

    Raises:
        ImageFormatError: Unrecognized file extension
        ValueError: Empty batch or images that differ in size / pixel type
        OSError: The file cannot be opened for writing
    """
    path = Path(path)
    _check_extension(path)

    images = list(images)
    if not images:
        raise ValueError("At least one image required")

    first = images[0]
    for index, image in enumerate(images[1:], start=1):
        if image.dimensions != first.dimensions:
            raise ValueError(
                f"Image {index} is {image.width}x{image.height}, "
                f"expected {first.width}x{first.height}"
            )
        if image.pixel_type != first.pixel_type:
            raise ValueError(f"Image {index} has pixel type {image.pixel_type}, expected {first.pixel_type}")

    pixel_type = first.pixel_type
    dtype = _little_endian(pixel_type)

    with open(path, "wb") as f:
        f.write(MBIN_HEADER.pack(len(images), first.width, first.height, pixel_type.itemsize))
        for image in images:
            if not image.empty:
                f.write(np.ascontiguousarray(image.data, dtype=dtype).tobytes())

    logger.debug(
        "Wrote %d %dx%d %s image(s) to %s", len(images), first.width, first.height, pixel_type, path
    )


def load_binary_mimage_array(
    path: PathLike,
    pixel_type: Optional[PixelType] = None,
    image_class: Optional[Type[BaseImage]] = None
) -> List[BaseImage]:
    """
    Load all images stored in a binary MImage file.

    Args:
        path: Input file (.mbindepth or .mbinRGB)
        pixel_type: Expected pixel type (generic BaseImage results)
        image_class: Image kind to create instead, e.g. DepthImage; a fixed
            class pixel type takes precedence over `pixel_type`

    Returns:
        List of freshly allocated images

    Raises:
        ImageFormatError: Bad extension, pixel size mismatch or truncated file
        OSError: The file cannot be opened
    """
    path = Path(path)
    _check_extension(path)

    if image_class is not None and image_class.PIXEL_TYPE is not None:
        pixel_type = image_class.PIXEL_TYPE
    if pixel_type is None:
        raise TypeError("load_binary_mimage_array needs a pixel_type or an image_class")

    with open(path, "rb") as f:
        header = f.read(MBIN_HEADER.size)
        if len(header) != MBIN_HEADER.size:
            raise ImageFormatError(f"Truncated header in {path}")

        num_images, width, height, bytes_per_pixel = MBIN_HEADER.unpack(header)
        if bytes_per_pixel != pixel_type.itemsize:
            raise ImageFormatError(
                f"{path} stores {bytes_per_pixel} bytes per pixel, "
                f"{pixel_type} needs {pixel_type.itemsize}"
            )

        block_size = width * height * bytes_per_pixel
        blocks = []
        for index in range(num_images):
            block = f.read(block_size)
            if len(block) != block_size:
                raise ImageFormatError(f"Truncated pixel data for image {index} in {path}")
            blocks.append(block)

    logger.debug("Read %d %dx%d %s image(s) from %s", num_images, width, height, pixel_type, path)

    dtype = _little_endian(pixel_type)
    images = []
    for block in blocks:
        if image_class is None:
            image = BaseImage(width, height, pixel_type)
        elif image_class.PIXEL_TYPE is None:
            image = image_class(width, height, pixel_type)
        else:
            image = image_class(width, height)
        image.initialize(np.frombuffer(block, dtype=dtype))
        images.append(image)
    return images


def load_binary_mimage(
    path: PathLike,
    pixel_type: Optional[PixelType] = None,
    image_class: Optional[Type[BaseImage]] = None
) -> BaseImage:
    """Load a binary MImage file that holds exactly one image."""
    images = load_binary_mimage_array(path, pixel_type=pixel_type, image_class=image_class)
    if len(images) != 1:
        raise ImageFormatError(f"Expected a single image in {path}, found {len(images)}")
    return images[0]
