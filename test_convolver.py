"""
Tests for the radial blur convolution.
"""

import numpy as np
import pytest

from convolver import ALPHA_CHANNEL, Convolver
from kernel_builder import build_kernel


def make_image(width, height, rgb=(0, 0, 0), alpha=255):
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[..., 0:3] = rgb
    image[..., 3] = alpha
    return image


@pytest.fixture
def convolver():
    return Convolver()


def test_absent_image_propagates(convolver):
    assert convolver.blur(None, build_kernel(5)) is None


def test_empty_image_propagates(convolver):
    empty = np.zeros((0, 0, 4), dtype=np.uint8)
    assert convolver.blur(empty, build_kernel(5)) is empty


@pytest.mark.parametrize("size", [0, 1])
def test_identity_kernel_returns_same_buffer(convolver, size):
    image = make_image(300, 200, rgb=(10, 20, 30))
    result = convolver.blur(image, build_kernel(size))
    assert result is image


def test_rejects_non_rgba_buffer(convolver):
    rgb = np.zeros((10, 10, 3), dtype=np.uint8)
    with pytest.raises(ValueError):
        convolver.blur(rgb, build_kernel(3))


def test_rejects_unknown_normalization():
    with pytest.raises(ValueError):
        Convolver(normalization="mean")


def test_white_image_with_tap_count_normalization(convolver):
    """Fractional corner weights pull a uniform image down when dividing by tap count."""
    image = make_image(4, 4, rgb=(255, 255, 255))
    result = convolver.blur(image, build_kernel(3))

    assert result.shape == (4, 4, 4)
    # 5 full taps + 4 corner taps of 149 each, over 9 taps
    assert np.all(result[1:3, 1:3, 0:3] == 207)
    # Image corners see 3 full taps and 1 corner tap
    for y, x in [(0, 0), (0, 3), (3, 0), (3, 3)]:
        assert np.all(result[y, x, 0:3] == 228)
    # Non-corner border pixels see 4 full taps and 2 corner taps
    assert np.all(result[0, 1, 0:3] == 219)
    assert np.all(result[2, 3, 0:3] == 219)
    assert np.all(result[..., ALPHA_CHANNEL] == 255)


def test_white_image_stays_white_with_weight_normalization():
    image = make_image(4, 4, rgb=(255, 255, 255))
    result = Convolver(normalization="weight").blur(image, build_kernel(3))
    assert np.all(result[..., 0:3] == 255)
    assert np.all(result[..., ALPHA_CHANNEL] == 255)


@pytest.mark.parametrize("normalization", ["count", "weight"])
def test_bright_pixel_spreads_one_pixel(normalization):
    image = make_image(10, 10)
    image[5, 5, 0:3] = 255
    result = Convolver(normalization=normalization).blur(image, build_kernel(3))

    center = int(result[5, 5, 0])
    assert center > 0
    for y, x in [(4, 5), (6, 5), (5, 4), (5, 6)]:
        assert 0 < result[y, x, 0] <= center
    for y, x in [(4, 4), (4, 6), (6, 4), (6, 6)]:
        assert 0 < result[y, x, 0] < center

    outside = np.ones((10, 10), dtype=bool)
    outside[4:7, 4:7] = False
    assert np.all(result[outside][:, 0:3] == 0)
    assert np.all(result[..., ALPHA_CHANNEL] == 255)


def test_bright_pixel_exact_values(convolver):
    image = make_image(10, 10)
    image[5, 5, 0:3] = 255
    result = convolver.blur(image, build_kernel(3))
    assert result[5, 5, 0] == 28
    assert result[4, 5, 0] == 28
    assert result[4, 4, 0] == 16


def test_alpha_is_never_blurred(convolver):
    rng = np.random.default_rng(7)
    image = rng.integers(0, 256, size=(20, 30, 4), dtype=np.uint8)
    result = convolver.blur(image, build_kernel(5))
    np.testing.assert_array_equal(result[..., ALPHA_CHANNEL], image[..., ALPHA_CHANNEL])


def test_input_buffer_is_not_mutated(convolver):
    rng = np.random.default_rng(11)
    image = rng.integers(0, 256, size=(16, 16, 4), dtype=np.uint8)
    original = image.copy()
    result = convolver.blur(image, build_kernel(3))
    assert result is not image
    np.testing.assert_array_equal(image, original)


def test_large_image_is_downsampled_to_working_resolution(convolver):
    image = make_image(200, 200, rgb=(40, 80, 120))
    result = convolver.blur(image, build_kernel(12))
    assert result.shape == (50, 50, 4)


def test_downsample_keeps_aspect_ratio(convolver):
    image = make_image(200, 100)
    result = convolver.blur(image, build_kernel(3))
    assert result.shape == (45, 90, 4)


def test_small_image_is_not_upscaled(convolver):
    image = make_image(60, 40)
    assert convolver.downsample(image, 90) is image
    assert convolver.blur(image, build_kernel(3)).shape == (40, 60, 4)


def test_downsample_can_scale_up_when_asked(convolver):
    image = make_image(30, 20)
    assert convolver.downsample(image, 60, scale_up=True).shape == (40, 60, 4)


def test_negative_weight_wraps_without_clamp():
    # Only the far corner of a 13x13 kernel reaches the bright pixel,
    # and that corner weight is about -1.485
    image = make_image(13, 13)
    image[12, 12, 0] = 255
    result = Convolver(clamp_channels=False).blur(image, build_kernel(13))
    # trunc(255 * -1.485) = -378, -378 / 169 truncates to -2, stored as 254
    assert result[6, 6, 0] == 254
    assert result[6, 6, 1] == 0
    assert result[6, 6, 3] == 255


def test_negative_weight_clamps_to_zero():
    image = make_image(13, 13)
    image[12, 12, 0] = 255
    result = Convolver(clamp_channels=True).blur(image, build_kernel(13))
    assert result[6, 6, 0] == 0


def test_wide_image_rounds_short_side_up(convolver):
    image = make_image(180, 45)
    assert convolver.blur(image, build_kernel(3)).shape == (23, 90, 4)


def test_tap_count_mode_truncates_after_every_tap(convolver):
    """Mixed-sign fractional taps truncate one at a time, not once at the end."""
    # Output pixel (0, 0) sees 16 in-bounds taps of a 7x7 kernel:
    # center 1 * 1, then 100 * 0.3944 (kx=6, ky=5), then 100 * -0.2426 (kx=6, ky=6)
    image = make_image(7, 7)
    image[0, 0, 0] = 1
    image[2, 3, 0] = 100
    image[3, 3, 0] = 100
    result = convolver.convolve(image, build_kernel(7))
    # Per tap: 1 -> trunc(40.44) = 40 -> trunc(15.74) = 15, and 15 / 16 -> 0.
    # Truncating once would give trunc(16.18) = 16 and 16 / 16 -> 1.
    assert result[0, 0, 0] == 0


def test_negative_tap_after_positive_tap_near_wrap(convolver):
    image = make_image(37, 37)
    image[0, 0, 0] = 102
    image[11, 18, 0] = 221
    result = convolver.convolve(image, build_kernel(37))
    # 102 + 221 * -2.0950222 = -360.99991, truncated to -360, over 361 taps -> 0
    assert result[0, 0, 0] == 0
    assert Convolver(clamp_channels=True).convolve(image, build_kernel(37))[0, 0, 0] == 0
