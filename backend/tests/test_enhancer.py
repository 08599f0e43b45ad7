"""
Tests for the multi-pass enhancement variants
"""
import numpy as np
import pytest

from idscan.models.card import OcrMethod
from idscan.services.enhancer import (
    binarized_variant,
    build_variants,
    contrast_scale_for,
    ensure_min_width,
    inverted_variant,
    otsu_threshold,
    to_grayscale,
)


def _noisy_card(width=400, height=250, seed=7):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


class TestOtsu:
    """Test threshold selection."""

    def test_in_range(self):
        gray = to_grayscale(_noisy_card())
        assert 0 <= otsu_threshold(gray) <= 255

    def test_bimodal_splits_between_modes(self):
        gray = np.zeros((10, 10), dtype=np.uint8)
        gray[:, 5:] = 255
        assert otsu_threshold(gray) == 127

    def test_separates_two_gray_levels(self):
        gray = np.full((20, 20), 60, dtype=np.uint8)
        gray[10:] = 200
        threshold = otsu_threshold(gray)
        assert 60 <= threshold < 200

    def test_uniform_image(self):
        assert otsu_threshold(np.full((5, 5), 42, dtype=np.uint8)) == 128


class TestContrastScale:
    """Test the Otsu-derived contrast gain."""

    @pytest.mark.parametrize("threshold", [0, 29, 221, 255])
    def test_extremes_fall_back(self, threshold):
        assert contrast_scale_for(threshold) == 1.5

    def test_midpoint(self):
        assert contrast_scale_for(128) == pytest.approx(1.2)

    def test_clamped(self):
        for threshold in range(30, 221):
            assert 1.1 <= contrast_scale_for(threshold) <= 2.0
        assert contrast_scale_for(220) == pytest.approx(1.1)


class TestVariants:
    """Test the five preprocessing variants."""

    def test_order_and_methods(self):
        variants = build_variants(_noisy_card())
        assert [method for method, _ in variants] == list(OcrMethod)

    def test_small_images_are_upscaled(self):
        for method, image in build_variants(_noisy_card(width=400, height=250)):
            assert image.ndim == 2, method
            assert image.shape[1] >= 1200, method
            assert image.shape[0] == 750, method

    def test_wide_images_keep_size(self):
        for _, image in build_variants(_noisy_card(width=1300, height=800)):
            assert image.shape == (800, 1300)

    def test_binarized_is_black_and_white(self):
        values = set(np.unique(binarized_variant(_noisy_card())).tolist())
        assert values <= {0, 255}

    def test_binarized_stays_binary_after_upscale(self):
        binary = binarized_variant(_noisy_card(width=500, height=300, seed=3))
        assert binary.shape == (720, 1200)
        assert set(np.unique(binary).tolist()) <= {0, 255}

    def test_inverted_flips_light_cards(self):
        light = np.full((100, 1200, 3), 230, dtype=np.uint8)
        assert inverted_variant(light).mean() < 128

    def test_ensure_min_width_never_shrinks(self):
        image = np.zeros((10, 2000), dtype=np.uint8)
        assert ensure_min_width(image, 1200) is image

    def test_grayscale_conversions(self):
        bgra = np.zeros((4, 4, 4), dtype=np.uint8)
        gray = np.zeros((4, 4), dtype=np.uint8)
        assert to_grayscale(bgra).shape == (4, 4)
        assert to_grayscale(gray) is gray
