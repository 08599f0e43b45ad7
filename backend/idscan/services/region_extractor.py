"""
Region Extractor
Crops template ROIs out of a (rectified) card image
"""
from typing import Dict, Iterable, Optional, Tuple

from loguru import logger

from idscan.models.card import RawImage, RoiKey, RoiSpec


def roi_to_pixels(roi: RoiSpec, width: int, height: int) -> Tuple[int, int, int, int]:
    """Pixel rectangle (x0, y0, x1, y1) of an ROI, clamped to the image"""
    left = int(round(roi.x * width))
    top = int(round(roi.y * height))
    right = left + int(round(roi.width * width))
    bottom = top + int(round(roi.height * height))

    x0, x1 = (min(max(v, 0), width) for v in (left, right))
    y0, y1 = (min(max(v, 0), height) for v in (top, bottom))
    return x0, y0, x1, y1


def crop_regions(image: Optional[RawImage], rois: Iterable[RoiSpec]) -> Dict[RoiKey, RawImage]:
    """
    Crop each ROI from `image`.
    Regions that end up with zero area are skipped silently.
    """
    crops: Dict[RoiKey, RawImage] = {}
    if image is None or image.size == 0:
        return crops

    height, width = image.shape[:2]
    for roi in rois:
        x0, y0, x1, y1 = roi_to_pixels(roi, width, height)
        if x1 <= x0 or y1 <= y0:
            logger.debug(f"Skipping empty ROI '{roi.key.value}'")
            continue
        crops[roi.key] = image[y0:y1, x0:x1].copy()

    return crops
