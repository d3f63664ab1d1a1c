"""
Text PPM Variant for Single-Channel Images

Human-inspectable ASCII format for float buffers with values in [0, 1]:

    P3
    #<filename>
    <height> <width>
    255
    v v v
    ...

Each pixel is one line holding the same 0-255 value three times, row-major.
Values outside [0, 1] are clamped on write (with a ValueClampedWarning), so
the format loses precision and cannot represent invalid pixels.
"""

import logging
from pathlib import Path
from typing import Union
import warnings
import numpy as np

from ..exceptions import ImageFormatError, ValueClampedWarning


logger = logging.getLogger(__name__)

PPM_MAGIC = "P3"
PPM_MAX_VALUE = 255

PathLike = Union[str, Path]


def encode_ppm_values(values: np.ndarray) -> np.ndarray:
    """
    Map float values in [0, 1] to integers in [0, 255].

    Out-of-range values (and NaN) are clamped; one warning reports how many.
    """
    values = np.asarray(values, dtype=np.float32)
    in_range = (values >= 0.0) & (values <= 1.0)
    clamped = int(np.count_nonzero(~in_range))
    if clamped:
        message = f"{clamped} value(s) clamped to [0, 1]"
        logger.warning(message)
        warnings.warn(message, ValueClampedWarning, stacklevel=3)

    safe = np.where(values > 1.0, np.float32(1.0), np.where(in_range, values, np.float32(0.0)))
    return (safe * np.float32(255.0) + np.float32(0.49999)).astype(np.int64)


def decode_ppm_values(codes: np.ndarray) -> np.ndarray:
    return np.asarray(codes, dtype=np.float32) / np.float32(255.0)


def write_ppm(path: PathLike, values: np.ndarray):
    """
    Write a (height, width) float array as a text PPM file.

    Raises:
        ValueError: If the array is not two-dimensional
        OSError: If the file cannot be opened
    """
    values = np.asarray(values)
    if values.ndim != 2:
        raise ValueError(f"PPM export needs a single-channel image, got array of shape {values.shape}")

    height, width = values.shape
    codes = encode_ppm_values(values)

    with open(path, "w") as f:
        f.write(f"{PPM_MAGIC}\n")
        f.write(f"#{path}\n")
        f.write(f"{height} {width}\n")
        f.write(f"{PPM_MAX_VALUE}\n")
        for code in codes.ravel():
            f.write(f"{code} {code} {code} \n")


def read_ppm(path: PathLike) -> np.ndarray:
    """
    Read a text PPM file written by write_ppm.

    Returns:
        float32 array of shape (height, width) with values in [0, 1]

    Raises:
        ImageFormatError: Malformed header, missing values, values above 255
            or triplets whose components differ
        OSError: If the file cannot be opened
    """
    with open(path, "r") as f:
        magic = f.readline().strip()
        f.readline()  # comment
        dims = f.readline().split()
        f.readline()  # max value
        tokens = f.read().split()

    if magic != PPM_MAGIC:
        raise ImageFormatError(f"Unexpected PPM magic '{magic}' in {path}")
    if len(dims) != 2:
        raise ImageFormatError(f"Malformed PPM dimensions line in {path}")

    try:
        height, width = int(dims[0]), int(dims[1])
        values = [int(token) for token in tokens]
    except ValueError as e:
        raise ImageFormatError(f"Non-integer value in {path}: {e}") from e

    if height < 0 or width < 0:
        raise ImageFormatError(f"Negative PPM dimensions {height} {width} in {path}")

    expected = width * height * 3
    if len(values) < expected:
        raise ImageFormatError(f"{path} holds {len(values)} values, expected {expected}")
    codes = np.array(values[:expected], dtype=np.int64).reshape(height * width, 3)

    if np.any(codes < 0) or np.any(codes > PPM_MAX_VALUE):
        raise ImageFormatError(f"Values outside [0, {PPM_MAX_VALUE}] in {path}")
    if np.any(codes[:, 0] != codes[:, 1]) or np.any(codes[:, 1] != codes[:, 2]):
        raise ImageFormatError(f"{path} is not a grayscale PPM")

    return decode_ppm_values(codes[:, 0]).reshape(height, width)
