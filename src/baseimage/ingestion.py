"""
Pillow Interop

Converts between in-memory PIL images / 8-bit numpy arrays and the image
kinds of this package. File encoding and decoding is left to the caller.

Mode mapping:
- "L"           <-> DepthImage (values / 255)
- "F"           <-> DepthImage (raw float values)
- "I;16"        <-> DepthImage16
- "RGB"         <-> ColorImageRGB (channels / 255)
- "RGBA"        <-> ColorImageRGBA (channels / 255)
Other modes are converted to RGBA first.
"""

import numpy as np
from PIL import Image

from .image import BaseImage
from .pixel import UINT8, UINT16, FLOAT32, VEC3UC, VEC4UC
from .depth import DepthImage, DepthImage16
from .color import ColorImageRGB, ColorImageRGBA


def image_from_array(array: np.ndarray) -> BaseImage:
    """
    Build an image from an 8-bit array.

    Args:
        array: uint8 array of shape (H, W), (H, W, 3) or (H, W, 4)

    Returns:
        DepthImage, ColorImageRGB or ColorImageRGBA with values in [0, 1]
    """
    array = np.asarray(array)
    if array.dtype != np.uint8:
        raise ValueError(f"Expected a uint8 array, got {array.dtype}")

    height, width = array.shape[:2]
    if array.ndim == 2:
        return DepthImage(width, height, array.astype(np.float32) / np.float32(255.0))
    if array.ndim == 3 and array.shape[2] == 3:
        return ColorImageRGB.from_uint8(width, height, array)
    if array.ndim == 3 and array.shape[2] == 4:
        return ColorImageRGBA.from_uint8(width, height, array)
    raise ValueError(f"Array must have shape (H, W), (H, W, 3) or (H, W, 4), got {array.shape}")


def image_from_pil(pil_image: Image.Image) -> BaseImage:
    """
    Build an image from a PIL image.

    Returns:
        DepthImage, DepthImage16, ColorImageRGB or ColorImageRGBA
    """
    mode = pil_image.mode
    if mode == "F":
        array = np.array(pil_image, dtype=np.float32)
        return DepthImage(array.shape[1], array.shape[0], array)
    if mode == "I;16":
        array = np.array(pil_image, dtype=np.uint16)
        return DepthImage16(array.shape[1], array.shape[0], array)
    if mode not in ("L", "RGB", "RGBA"):
        pil_image = pil_image.convert("RGBA")
    return image_from_array(np.array(pil_image, dtype=np.uint8))


def _quantized(image: BaseImage, target) -> np.ndarray:
    # Invalid pixels are written as 0 (transparent black for RGBA)
    converted = image.convert_to(target).data
    converted[~image.valid_mask()] = 0
    return converted


def image_to_pil(image: BaseImage) -> Image.Image:
    """
    Convert an image to a PIL image.

    Float images are expected in [0, 1] and are quantized to 8 bits;
    invalid pixels become 0.

    Raises:
        ValueError: For empty images or pixel types without a PIL mode
    """
    if image.empty:
        raise ValueError("Cannot convert an empty image")

    pixel_type = image.pixel_type
    if pixel_type in (UINT8, UINT16, VEC3UC, VEC4UC):
        array = image.data.copy()
    elif pixel_type == ColorImageRGB.PIXEL_TYPE:
        array = _quantized(image, VEC3UC)
    elif pixel_type == ColorImageRGBA.PIXEL_TYPE:
        array = _quantized(image, VEC4UC)
    elif pixel_type == FLOAT32:
        array = _quantized(image, UINT8)
    else:
        raise ValueError(f"No PIL mode for pixel type {pixel_type}")

    return Image.fromarray(np.ascontiguousarray(array))
