"""
Geometric Rectifier
Finds the card outline in a photo and warps it to a flat, canonical rectangle
"""
from typing import Optional

import cv2
import numpy as np
from loguru import logger

from idscan.config import Settings, settings as default_settings
from idscan.models.card import RawImage, RectifyResult
from idscan.services.enhancer import to_grayscale


CANNY_LOW = 75
CANNY_HIGH = 200
BLUR_KERNEL = (5, 5)
APPROX_EPSILON_RATIO = 0.02

CARD_NOT_FOUND = "Card contour not found - using original image"


def order_points(pts) -> np.ndarray:
    """
    Order four corner points as [top-left, top-right, bottom-right, bottom-left].

    top-left has the smallest x+y and bottom-right the largest; top-right has
    the smallest y-x and bottom-left the largest. The result does not depend
    on the input order.
    """
    pts = np.asarray(pts, dtype=np.float32).reshape(4, 2)
    sums = pts[:, 0] + pts[:, 1]
    diffs = pts[:, 1] - pts[:, 0]

    ordered = np.zeros((4, 2), dtype=np.float32)
    ordered[0] = pts[np.argmin(sums)]
    ordered[1] = pts[np.argmin(diffs)]
    ordered[2] = pts[np.argmax(sums)]
    ordered[3] = pts[np.argmax(diffs)]
    return ordered


def _find_card_quad(gray: RawImage, min_area: float) -> Optional[np.ndarray]:
    """Largest 4-vertex contour approximation above min_area, or None"""
    blurred = cv2.GaussianBlur(gray, BLUR_KERNEL, 0)
    edges = cv2.Canny(blurred, CANNY_LOW, CANNY_HIGH)
    contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    best_quad = None
    best_area = 0.0
    for contour in contours:
        perimeter = cv2.arcLength(contour, True)
        approx = cv2.approxPolyDP(contour, APPROX_EPSILON_RATIO * perimeter, True)
        if len(approx) != 4:
            continue
        area = cv2.contourArea(approx)
        if area > best_area:
            best_area = area
            best_quad = approx

    if best_quad is None or best_area < min_area:
        logger.debug(f"No card quadrilateral (best area={best_area:.0f}, min={min_area:.0f})")
        return None
    return best_quad.reshape(4, 2).astype(np.float32)


def rectify_card(image: RawImage, settings: Settings = None) -> RectifyResult:
    """
    Detect the card in a photo and return a top-down CARD_WIDTH x CARD_HEIGHT crop.

    Detection runs on a copy downscaled to RECTIFY_MAX_DIM; the warp is applied
    to the full-resolution input. Failure is reported, never raised.
    """
    settings = settings or default_settings

    if image is None or image.size == 0:
        return RectifyResult(success=False, reason="Empty image")

    try:
        height, width = image.shape[:2]
        scale = min(settings.RECTIFY_MAX_DIM / width, settings.RECTIFY_MAX_DIM / height, 1.0)
        small = image
        if scale < 1.0:
            small = cv2.resize(
                image,
                (max(1, int(round(width * scale))), max(1, int(round(height * scale)))),
                interpolation=cv2.INTER_AREA
            )

        gray = to_grayscale(small)
        quad = _find_card_quad(gray, settings.RECTIFY_MIN_AREA)
        if quad is None:
            return RectifyResult(success=False, reason=CARD_NOT_FOUND)

        src = order_points(quad) / scale
        dst = np.array([
            [0, 0],
            [settings.CARD_WIDTH - 1, 0],
            [settings.CARD_WIDTH - 1, settings.CARD_HEIGHT - 1],
            [0, settings.CARD_HEIGHT - 1],
        ], dtype=np.float32)

        matrix = cv2.getPerspectiveTransform(src.astype(np.float32), dst)
        warped = cv2.warpPerspective(image, matrix, (settings.CARD_WIDTH, settings.CARD_HEIGHT))

        logger.info(f"Card rectified from {width}x{height} photo (detect scale={scale:.3f})")
        return RectifyResult(success=True, image=warped)

    except cv2.error as e:
        logger.warning(f"Card rectification failed: {e}")
        return RectifyResult(success=False, reason=f"OpenCV error: {e}")
