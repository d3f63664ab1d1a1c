"""
Unit tests for depth and color image kinds, false-color mapping and
Pillow interop.
"""

import sys
from pathlib import Path
import numpy as np
import unittest
from PIL import Image

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from baseimage import (
    DepthImage,
    DepthImage16,
    ColorImageRGB,
    ColorImageRGBA,
    ColorImageR8G8B8,
    PointImage,
    ColorImageR32G32B32,
    ImageFormat,
    FLOAT32,
    UINT16,
    VEC3F,
    VEC3UC,
    VEC4F,
    convert_depth_to_rgb,
    convert_depth_to_rgba,
)
from baseimage.color import valid_depth_range
from baseimage.ingestion import image_from_array, image_from_pil, image_to_pil


BLUE = [0.0, 0.0, 1.0]
GREEN = [0.0, 1.0, 0.0]
RED = [1.0, 0.0, 0.0]


class TestImageKinds(unittest.TestCase):
    """Tests for the fixed pixel types and sentinels of each kind."""

    def test_depth_image(self):
        depth = DepthImage(4, 3)
        assert depth.pixel_type == FLOAT32
        assert depth.invalid_value == -np.inf
        assert depth.format == ImageFormat.DEPTH
        assert depth.num_bytes_per_pixel == 4

    def test_depth_image16(self):
        depth = DepthImage16(4, 3)
        assert depth.pixel_type == UINT16
        assert depth.invalid_value == 0
        assert depth.format == ImageFormat.DEPTH16
        assert not depth.is_valid(0, 0)

    def test_color_images(self):
        rgb = ColorImageRGB(2, 2)
        assert rgb.pixel_type == VEC3F
        assert np.all(rgb.invalid_value == -np.inf)
        assert rgb.format == ImageFormat.COLOR_R32G32B32

        rgba = ColorImageRGBA(2, 2)
        assert rgba.pixel_type == VEC4F
        assert rgba.num_channels == 4
        assert rgba.num_bytes_per_channel == 4
        assert rgba.num_bytes_per_pixel == 16
        assert rgba.format == ImageFormat.COLOR_R32G32B32A32

    def test_aliases(self):
        assert PointImage is ColorImageRGB
        assert ColorImageR32G32B32 is ColorImageRGB
        assert ColorImageR8G8B8(1, 1).pixel_type == VEC3UC

    def test_kind_preserved_by_copy(self):
        depth = DepthImage(2, 2)
        assert isinstance(depth.copy(), DepthImage)
        assert isinstance(depth.move(), DepthImage)


class TestColorConversion(unittest.TestCase):
    """Tests for 8-bit normalization and gray replication."""

    def test_from_uint8(self):
        image = ColorImageRGB.from_uint8(1, 1, [255, 0, 51])
        assert np.allclose(image.get_pixel(0, 0), [1.0, 0.0, 0.2])

    def test_from_uint8_custom_scale(self):
        image = ColorImageRGBA.from_uint8(1, 1, [10, 20, 30, 40], scale=10.0)
        assert np.allclose(image.get_pixel(0, 0), [1.0, 2.0, 3.0, 4.0])

    def test_from_gray(self):
        depth = DepthImage(2, 1, np.array([[0.25, 0.0]], dtype=np.float32))
        depth.set_invalid(1, 0)
        rgb = ColorImageRGB.from_gray(depth)

        assert isinstance(rgb, ColorImageRGB)
        assert rgb.get_pixel(0, 0).tolist() == [0.25, 0.25, 0.25]
        assert not rgb.is_valid(1, 0)

    def test_to_uint8(self):
        rgb = ColorImageRGB(1, 1, np.array([[[1.0, 0.5, 0.0]]], dtype=np.float32))
        quantized = rgb.to_uint8()
        assert quantized.pixel_type == VEC3UC
        assert quantized.get_pixel(0, 0).tolist() == [255, 128, 0]


class TestDepthVisualization(unittest.TestCase):
    """Tests for the depth hue ramp."""

    def test_ramp_endpoints(self):
        assert np.allclose(convert_depth_to_rgb(1.0, 1.0, 3.0), BLUE)
        assert np.allclose(convert_depth_to_rgb(2.0, 1.0, 3.0), GREEN)
        assert np.allclose(convert_depth_to_rgb(3.0, 1.0, 3.0), RED)

    def test_ramp_clamps(self):
        assert np.allclose(convert_depth_to_rgb(-5.0, 1.0, 3.0), BLUE)
        assert np.allclose(convert_depth_to_rgb(10.0, 1.0, 3.0), RED)

    def test_degenerate_range(self):
        assert np.allclose(convert_depth_to_rgb(2.0, 2.0, 2.0), BLUE)

    def test_rgba_alpha(self):
        assert np.allclose(convert_depth_to_rgba(3.0, 1.0, 3.0), RED + [1.0])

    def test_from_depth_explicit_range(self):
        depth = DepthImage(3, 1, np.array([[1.0, 2.0, 3.0]], dtype=np.float32))
        colors = ColorImageRGB.from_depth(depth, 1.0, 3.0)

        assert colors.dimensions == (3, 1)
        assert np.allclose(colors.get_pixel(0, 0), BLUE)
        assert np.allclose(colors.get_pixel(1, 0), GREEN)
        assert np.allclose(colors.get_pixel(2, 0), RED)

    def test_from_depth_scans_valid_range(self):
        """The automatic range ignores invalid pixels."""
        depth = DepthImage(3, 1, np.array([[0.0, 2.0, 4.0]], dtype=np.float32))
        depth.set_invalid(0, 0)
        colors = depth.to_color()

        assert not colors.is_valid(0, 0)
        assert np.allclose(colors.get_pixel(1, 0), BLUE)
        assert np.allclose(colors.get_pixel(2, 0), RED)

    def test_from_depth_rgba(self):
        depth = DepthImage(2, 1, np.array([[1.0, 2.0]], dtype=np.float32))
        depth.set_invalid(1, 0)
        colors = ColorImageRGBA.from_depth(depth)

        assert np.allclose(colors.get_pixel(0, 0), BLUE + [1.0])
        assert not colors.is_valid(1, 0)

    def test_valid_depth_range(self):
        depth = DepthImage(2, 1, np.array([[5.0, 1.0]], dtype=np.float32))
        assert valid_depth_range(depth) == (1.0, 5.0)

        depth.set_all(-np.inf)
        assert valid_depth_range(depth) == (0.0, 0.0)

    def test_rejects_vector_source(self):
        with self.assertRaises(TypeError):
            ColorImageRGB.from_depth(ColorImageRGB(1, 1))


class TestIngestion(unittest.TestCase):
    """Tests for Pillow interop."""

    def test_rgb_from_pil(self):
        pil_image = Image.new("RGB", (3, 2), (255, 0, 51))
        image = image_from_pil(pil_image)

        assert isinstance(image, ColorImageRGB)
        assert image.dimensions == (3, 2)
        assert np.allclose(image.get_pixel(2, 1), [1.0, 0.0, 0.2])

    def test_gray_from_pil(self):
        image = image_from_pil(Image.new("L", (2, 2), 255))
        assert isinstance(image, DepthImage)
        assert image.get_pixel(1, 1) == 1.0

    def test_other_modes_become_rgba(self):
        image = image_from_pil(Image.new("P", (2, 2)))
        assert isinstance(image, ColorImageRGBA)

    def test_array_shapes(self):
        assert isinstance(image_from_array(np.zeros((2, 3, 4), dtype=np.uint8)), ColorImageRGBA)
        with self.assertRaises(ValueError):
            image_from_array(np.zeros((2, 3), dtype=np.float32))
        with self.assertRaises(ValueError):
            image_from_array(np.zeros((2, 3, 2), dtype=np.uint8))

    def test_roundtrip_to_pil(self):
        pil_image = Image.new("RGB", (2, 2), (10, 20, 30))
        result = image_to_pil(image_from_pil(pil_image))

        assert result.mode == "RGB"
        assert result.size == (2, 2)
        assert result.getpixel((1, 1)) == (10, 20, 30)

    def test_invalid_pixels_become_zero(self):
        depth = DepthImage(2, 1, np.array([[1.0, 0.5]], dtype=np.float32))
        depth.set_invalid(1, 0)
        result = image_to_pil(depth)

        assert result.mode == "L"
        assert result.getpixel((0, 0)) == 255
        assert result.getpixel((1, 0)) == 0

    def test_empty_image(self):
        with self.assertRaises(ValueError):
            image_to_pil(DepthImage())


if __name__ == "__main__":
    unittest.main(verbosity=2)
