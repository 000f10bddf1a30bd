"""
Tests for the unsharp convolution stage.
"""
import numpy as np
import pytest
from PIL import Image

from imobiedit.images.sharpen import convolve3x3, sharpen, sharpen_kernel

from conftest import make_gradient, solid


def step_edge(width: int = 40, height: int = 20) -> Image.Image:
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[:, :, 3] = 255
    arr[:, : width // 2, :3] = 80
    arr[:, width // 2:, :3] = 170
    return Image.fromarray(arr)


def edge_contrast(img: Image.Image) -> int:
    arr = np.asarray(img).astype(int)
    row = arr[10, :, 0]
    mid = len(row) // 2
    return row[mid] - row[mid - 1]


class TestKernel:
    """Test kernel construction."""

    def test_max_sharpness_amount(self):
        kernel = sharpen_kernel(100)
        assert kernel[0, 1] == pytest.approx(-100 / 150)
        assert kernel[1, 1] == pytest.approx(1 + 4 * 100 / 150)
        assert kernel[0, 0] == 0 and kernel[2, 2] == 0

    def test_kernel_sums_to_one(self):
        assert float(sharpen_kernel(42).sum()) == pytest.approx(1.0)


class TestSharpen:
    """Test the sharpening stage."""

    def test_zero_sharpness_is_identity(self):
        """Test sharpness 0 leaves the buffer untouched."""
        img = make_gradient(32, 24)
        out = sharpen(img, 0)
        assert np.array_equal(np.asarray(out), np.asarray(img))

    def test_uniform_interior_unchanged(self):
        """Test a flat area keeps its value away from the borders."""
        out = np.asarray(sharpen(solid(10, 10, (100, 100, 100, 255)), 60))
        assert (out[1:-1, 1:-1, :3] == 100).all()

    def test_border_taps_count_as_zero(self):
        """Test out-of-bounds neighbours contribute nothing (no edge clamping)."""
        sharpness = 60
        amount = sharpness / 150
        out = np.asarray(sharpen(solid(10, 10, (100, 100, 100, 255)), sharpness))
        # corner pixel misses two of its four neighbours
        expected_corner = round(100 * (1 + 4 * amount) - 2 * amount * 100)
        # edge pixel misses one
        expected_edge = round(100 * (1 + 4 * amount) - 3 * amount * 100)
        assert out[0, 0, 0] == min(255, expected_corner)
        assert out[0, 5, 0] == min(255, expected_edge)

    def test_alpha_passes_through(self):
        arr = np.asarray(make_gradient(16, 16)).copy()
        arr[:, :, 3] = np.arange(16, dtype=np.uint8)[None, :] * 10
        out = np.asarray(sharpen(Image.fromarray(arr), 80))
        assert np.array_equal(out[:, :, 3], arr[:, :, 3])

    def test_output_clamped(self):
        out = np.asarray(sharpen(step_edge(), 100))
        assert out.dtype == np.uint8
        assert out[:, :, :3].min() >= 0 and out[:, :, :3].max() <= 255

    def test_contrast_increases_with_sharpness(self):
        """Test local contrast at a step edge grows monotonically."""
        edge = step_edge()
        contrasts = [edge_contrast(sharpen(edge, s)) for s in (0, 10, 30, 60, 100)]
        assert contrasts == sorted(contrasts)
        assert contrasts[-1] > contrasts[0]

    def test_convolve_does_not_modify_input(self):
        rgb = np.asarray(make_gradient(8, 8))[:, :, :3].astype(np.float32)
        before = rgb.copy()
        convolve3x3(rgb, sharpen_kernel(100))
        assert np.array_equal(rgb, before)
