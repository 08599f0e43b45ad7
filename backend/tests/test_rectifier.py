"""
Tests for card detection and perspective correction
"""
import itertools

import numpy as np

from idscan.config import Settings
from idscan.services.rectifier import CARD_NOT_FOUND, order_points, rectify_card

from fakes import make_card_photo


CORNERS = [(10, 10), (100, 12), (98, 60), (8, 58)]


class TestOrderPoints:
    """Test corner ordering."""

    def test_canonical_order(self):
        ordered = order_points(CORNERS)
        assert ordered.tolist() == [[10, 10], [100, 12], [98, 60], [8, 58]]

    def test_independent_of_input_order(self):
        expected = order_points(CORNERS).tolist()
        for permutation in itertools.permutations(CORNERS):
            assert order_points(list(permutation)).tolist() == expected


class TestRectifyCard:
    """Test rectify_card on synthetic photos."""

    def test_skewed_card_is_flattened(self):
        result = rectify_card(make_card_photo())
        assert result.success
        assert result.image.shape == (600, 1000, 3)
        assert result.image[300, 500].mean() > 200

    def test_detection_runs_downscaled(self):
        corners = ((360, 240), (1640, 300), (1600, 1120), (320, 1040))
        photo = make_card_photo(corners=corners, size=(1400, 2000))
        result = rectify_card(photo)
        assert result.success
        # The warp uses full-resolution corners, so the card fills the output
        for y, x in [(40, 40), (40, 960), (560, 960), (560, 40)]:
            assert result.image[y, x].mean() > 200

    def test_custom_card_size(self):
        settings = Settings(CARD_WIDTH=500, CARD_HEIGHT=300)
        result = rectify_card(make_card_photo(), settings)
        assert result.image.shape == (300, 500, 3)

    def test_no_card(self):
        result = rectify_card(np.full((600, 800, 3), 128, dtype=np.uint8))
        assert not result.success
        assert result.image is None
        assert result.reason == CARD_NOT_FOUND

    def test_card_below_min_area(self):
        photo = make_card_photo(corners=((100, 100), (140, 100), (140, 130), (100, 130)))
        result = rectify_card(photo)
        assert not result.success

    def test_empty_image(self):
        result = rectify_card(np.zeros((0, 0, 3), dtype=np.uint8))
        assert not result.success
