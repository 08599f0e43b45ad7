"""
Test doubles and synthetic card images shared by the test modules
"""
import time
from typing import Callable, Dict, List, Optional, Union

import cv2
import numpy as np

from idscan.models.card import CardTemplate, RoiKey
from idscan.services.ocr_engine import OcrInvoker
from idscan.services.region_extractor import roi_to_pixels


NATIONAL_ID_TEXT = (
    "REPUBLIC OF THE PHILIPPINES\nPHILSYS\nApelyido\nDELA CRUZ\nMga Pangalan\n"
    "JUAN PEDRO\nPetsa ng Kapanganakan\nJanuary 3, 1999\n1234-5678-9012-3456"
)

# Gray levels painted into each ROI of a synthetic card, and the level the
# standard enhancement maps them to (uniform crop -> Otsu 128 -> gain 1.2)
ROI_LEVELS = {RoiKey.FULL_NAME: 50, RoiKey.DOB: 110, RoiKey.ID_NUMBER: 170}
CARD_BACKGROUND = 240


class FakeOcrInvoker(OcrInvoker):
    """Scriptable stand-in for the Tesseract engine"""

    name = "fake"

    def __init__(
        self,
        text: Union[str, Callable[[np.ndarray], str]] = "",
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.text = text
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []

    def invoke(self, image: np.ndarray) -> str:
        self.calls.append(image.shape)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if callable(self.text):
            return self.text(image)
        return self.text


class RegionAwareOcr(FakeOcrInvoker):
    """
    Returns `whole_text` for multi-tone images (whole-card variants) and the
    per-field text for near-uniform crops painted with ROI_LEVELS.
    Only the National ID layout keeps its painted ROIs distinct enough for this.
    """

    def __init__(self, whole_text: str, region_texts: Dict[RoiKey, str]):
        super().__init__(text=self._respond)
        self.whole_text = whole_text
        self.region_texts = region_texts

    def _respond(self, image: np.ndarray) -> str:
        values, counts = np.unique(image, return_counts=True)
        top = int(np.argmax(counts))
        if counts[top] / image.size < 0.8:
            return self.whole_text
        level = float(values[top])
        if level < 100:
            key = RoiKey.FULL_NAME
        elif level < 170:
            key = RoiKey.DOB
        else:
            key = RoiKey.ID_NUMBER
        return self.region_texts.get(key, "")


def make_painted_card(template: CardTemplate, width: int = 1000, height: int = 600) -> np.ndarray:
    """Flat card with every template ROI painted a distinct gray level"""
    card = np.full((height, width, 3), CARD_BACKGROUND, dtype=np.uint8)
    for roi in template.rois:
        x0, y0, x1, y1 = roi_to_pixels(roi, width, height)
        card[y0:y1, x0:x1] = ROI_LEVELS[roi.key]
    return card


def make_card_photo(
    corners=((180, 120), (820, 150), (800, 560), (160, 520)),
    size=(700, 1000),
) -> np.ndarray:
    """Light quadrilateral 'card' on a dark background"""
    photo = np.full((size[0], size[1], 3), 30, dtype=np.uint8)
    cv2.fillPoly(photo, [np.array(corners, dtype=np.int32)], (235, 235, 235))
    return photo


def encode_png(image: np.ndarray) -> bytes:
    ok, buffer = cv2.imencode(".png", image)
    assert ok
    return buffer.tobytes()
