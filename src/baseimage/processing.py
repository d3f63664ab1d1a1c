"""
Image Processing Kernels

Array-level implementations of the BaseImage algorithms:
1. Mip-mapping - 2x2 box filter, optionally ignoring invalid pixels
2. Nearest-neighbor resampling through normalized coordinates
3. Laplacian smoothing over the 4-neighborhood of valid pixels
4. Bilinear interpolation at fractional coordinates

All kernels take arrays of shape (H, W) or (H, W, C) and treat a pixel as
invalid when it equals the sentinel value (all components for vectors).
Accumulation happens in float64 and results are cast back to the input dtype,
which truncates toward zero for integer pixel types.
"""

import math
from typing import Tuple
import numpy as np
from scipy import ndimage

from .pixel import lerp


# 4-neighborhood (von Neumann) without the center pixel
NEIGHBOR_KERNEL = np.array([
    [0.0, 1.0, 0.0],
    [1.0, 0.0, 1.0],
    [0.0, 1.0, 0.0],
])


def equal_mask(data: np.ndarray, value) -> np.ndarray:
    """
    Per-pixel equality against a single pixel value.

    Args:
        data: Pixel array of shape (H, W) or (H, W, C)
        value: Scalar, or array of shape (C,) for vector pixels

    Returns:
        Boolean array of shape (H, W)
    """
    eq = data == np.asarray(value, dtype=data.dtype)
    if data.ndim == 3:
        eq = eq.all(axis=-1)
    return eq


def _per_pixel(mask: np.ndarray, data: np.ndarray) -> np.ndarray:
    """Broadcast a per-pixel array against the channel axis of `data`."""
    return mask[..., np.newaxis] if data.ndim > mask.ndim else mask


def round_half_away(values: np.ndarray) -> np.ndarray:
    """Round to the nearest integer, halves away from zero."""
    magnitude = np.abs(values)
    floor = np.floor(magnitude)
    rounded = floor + (magnitude - floor >= 0.5)
    return np.copysign(rounded, values)


def _as_blocks(data: np.ndarray) -> np.ndarray:
    """View the even-sized top-left region as (H/2, 2, W/2, 2, ...) blocks."""
    h2, w2 = data.shape[0] // 2, data.shape[1] // 2
    cropped = data[:2 * h2, :2 * w2]
    return cropped.reshape((h2, 2, w2, 2) + data.shape[2:])


def mip_map(data: np.ndarray, invalid_value, ignore_invalid: bool = False) -> np.ndarray:
    """
    Compute the next mip level (half width, half height, odd sizes truncate).

    Without `ignore_invalid` every output pixel is the plain mean of its
    2x2 block, sentinel values included. With it, only valid pixels are
    averaged and blocks without any valid pixel become the sentinel.

    Args:
        data: Pixel array of shape (H, W) or (H, W, C)
        invalid_value: Sentinel pixel value
        ignore_invalid: Exclude sentinel pixels from the average

    Returns:
        Array of shape (H // 2, W // 2[, C]) with the input dtype
    """
    blocks = _as_blocks(data.astype(np.float64))

    if not ignore_invalid:
        with np.errstate(invalid="ignore"):
            mean = blocks.sum(axis=(1, 3)) / 4.0
        return mean.astype(data.dtype)

    valid = _as_blocks(~equal_mask(data, invalid_value))
    count = valid.sum(axis=(1, 3))

    weights = _per_pixel(valid, blocks)
    total = np.where(weights, blocks, 0.0).sum(axis=(1, 3))
    divisor = _per_pixel(count, total).astype(np.float64)

    mean = np.divide(total, divisor, out=np.zeros_like(total), where=divisor > 0)
    result = mean.astype(data.dtype)
    result[count == 0] = invalid_value
    return result


def nearest_indices(new_size: int, old_size: int) -> np.ndarray:
    """
    Source indices sampled by nearest-neighbor resampling along one axis.

    Output index j samples normalized coordinate j / (new_size - 1), mapped
    back to round(coord * (old_size - 1)). Computed in float32.
    """
    if new_size == 1:
        return np.zeros(1, dtype=np.intp)
    coords = np.arange(new_size, dtype=np.float32) / np.float32(new_size - 1)
    scaled = coords * np.float32(old_size - 1)
    return round_half_away(scaled).astype(np.intp)


def resample_nearest(data: np.ndarray, new_width: int, new_height: int) -> np.ndarray:
    """
    Nearest-neighbor resampling of a pixel array.

    Returns:
        New array of shape (new_height, new_width[, C])
    """
    rows = nearest_indices(new_height, data.shape[0])
    cols = nearest_indices(new_width, data.shape[1])
    return data[rows[:, np.newaxis], cols[np.newaxis, :]]


def _smooth_step(data: np.ndarray, invalid_value) -> np.ndarray:
    """One Laplacian smoothing pass reading only from `data`."""
    valid = ~equal_mask(data, invalid_value)
    values = data.astype(np.float64)

    masked = np.where(_per_pixel(valid, values), values, 0.0)
    kernel = NEIGHBOR_KERNEL[..., np.newaxis] if data.ndim == 3 else NEIGHBOR_KERNEL

    # Zero padding drops out-of-bounds neighbors from both sum and count
    neighbor_sum = ndimage.correlate(masked, kernel, mode="constant", cval=0.0)
    neighbor_count = ndimage.correlate(valid.astype(np.float64), NEIGHBOR_KERNEL, mode="constant", cval=0.0)
    count = _per_pixel(neighbor_count, values)

    with np.errstate(invalid="ignore"):
        numerator = count * values + neighbor_sum
    blended = np.divide(numerator, 2.0 * count, out=values.copy(), where=count > 0)

    result = data.copy()
    result[valid] = blended[valid].astype(data.dtype)
    return result


def laplacian_smooth(data: np.ndarray, invalid_value, steps: int = 1) -> np.ndarray:
    """
    Laplacian smoothing restricted to valid pixels.

    Each valid pixel p with n valid in-bounds 4-neighbors summing to s becomes
    (n * p + s) / (2 * n). Invalid pixels are left untouched and valid pixels
    without valid neighbors keep their value.

    Args:
        data: Pixel array of shape (H, W) or (H, W, C)
        invalid_value: Sentinel pixel value
        steps: Number of passes; each pass reads the previous pass' output

    Returns:
        New smoothed array (the input is not modified)
    """
    result = data
    for _ in range(steps):
        result = _smooth_step(result, invalid_value)
    return result.copy() if result is data else result


def interpolation_corners(x: float, y: float) -> Tuple[int, int, int, int]:
    """Integer corners (x_low, y_low, x_high, y_high) around a fractional position."""
    return math.floor(x), math.floor(y), math.ceil(x), math.ceil(y)


def bilinear_sample(data: np.ndarray, x: float, y: float) -> np.ndarray:
    """
    Bilinear interpolation of a pixel array at (x, y).

    The caller guarantees that all four corners are inside the array.

    Returns:
        float64 scalar array or 1-D array for vector pixels
    """
    xl, yl, xh, yh = interpolation_corners(x, y)
    t = x - xl
    s = y - yl

    def corner(cx: int, cy: int) -> np.ndarray:
        return np.asarray(data[cy, cx], dtype=np.float64)

    top = lerp(corner(xl, yl), corner(xh, yl), t)
    bottom = lerp(corner(xl, yh), corner(xh, yh), t)
    return lerp(top, bottom, s)
