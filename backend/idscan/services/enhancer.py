"""
Multi-Pass Enhancer
Deterministic preprocessing variants that give the OCR engine several chances at a card
"""
from typing import Callable, Dict, List, Tuple

import cv2
import numpy as np

from idscan.config import settings
from idscan.models.card import OcrMethod, RawImage


SHARPEN_KERNEL = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float32)

HIGH_CONTRAST_ALPHA = 2.0
HIGH_CONTRAST_BETA = -50

CLAHE_CLIP_LIMIT = 3.0
CLAHE_TILE_GRID = (8, 8)


def to_grayscale(image: RawImage) -> RawImage:
    """Single-channel uint8 view of a BGR, BGRA or grayscale image"""
    if image.ndim == 2:
        gray = image
    elif image.shape[2] == 4:
        gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    else:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if gray.dtype != np.uint8:
        gray = cv2.convertScaleAbs(gray)
    return gray


def otsu_threshold(gray: RawImage) -> int:
    """
    Otsu's threshold over the 256-bin histogram.

    Picks the level maximizing between-class variance, which is the same
    level that minimizes the weighted intra-class variance. A histogram with
    a single populated bin has no separation to find and yields 128.
    """
    hist = np.bincount(np.asarray(gray, dtype=np.uint8).ravel(), minlength=256).astype(np.float64)
    total = hist.sum()
    if total == 0 or np.count_nonzero(hist) < 2:
        return 128

    levels = np.arange(256, dtype=np.float64)
    weight_bg = np.cumsum(hist)
    weight_fg = total - weight_bg
    cum_mean = np.cumsum(hist * levels)
    mean_total = cum_mean[-1]

    with np.errstate(divide="ignore", invalid="ignore"):
        mean_bg = cum_mean / weight_bg
        mean_fg = (mean_total - cum_mean) / weight_fg
        between = weight_bg * weight_fg * (mean_bg - mean_fg) ** 2
    between = np.nan_to_num(between, nan=0.0, posinf=0.0, neginf=0.0)

    # Levels between two populations all score the same; take the middle of that plateau
    best = int(np.argmax(between))
    end = best
    while end + 1 < 256 and np.isclose(between[end + 1], between[best]):
        end += 1
    return (best + end) // 2


def contrast_scale_for(threshold: int) -> float:
    """Contrast gain derived from the Otsu level; extreme levels fall back to 1.5"""
    if threshold < 30 or threshold > 220:
        return 1.5
    scale = 1.2 + (128 - threshold) / 256
    return float(min(max(scale, 1.1), 2.0))


def adaptive_contrast(gray: RawImage) -> RawImage:
    """Scale intensities by a gain chosen from the image's own Otsu threshold"""
    scale = contrast_scale_for(otsu_threshold(gray))
    return cv2.convertScaleAbs(gray, alpha=scale, beta=0)


def sharpen(gray: RawImage) -> RawImage:
    return cv2.filter2D(gray, -1, SHARPEN_KERNEL)


def ensure_min_width(image: RawImage, min_width: int = None) -> RawImage:
    """Upscale (bilinear, aspect preserved) so the width is at least min_width"""
    min_width = min_width or settings.ENHANCE_MIN_WIDTH
    height, width = image.shape[:2]
    if width >= min_width or width == 0:
        return image
    scale = min_width / width
    new_size = (min_width, max(1, int(round(height * scale))))
    return cv2.resize(image, new_size, interpolation=cv2.INTER_LINEAR)


def standard_variant(image: RawImage) -> RawImage:
    gray = to_grayscale(image)
    return ensure_min_width(adaptive_contrast(sharpen(gray)))


def high_contrast_variant(image: RawImage) -> RawImage:
    gray = to_grayscale(image)
    boosted = cv2.convertScaleAbs(sharpen(gray), alpha=HIGH_CONTRAST_ALPHA, beta=HIGH_CONTRAST_BETA)
    return ensure_min_width(boosted)


def inverted_variant(image: RawImage) -> RawImage:
    """For light text on dark card backgrounds"""
    gray = to_grayscale(image)
    return ensure_min_width(adaptive_contrast(cv2.bitwise_not(gray)))


def binarized_variant(image: RawImage) -> RawImage:
    """Hard black/white pass that drops guilloche and security patterns"""
    # Threshold after upscaling: interpolation reintroduces gray levels
    gray = ensure_min_width(sharpen(to_grayscale(image)))
    _, binary = cv2.threshold(gray, otsu_threshold(gray), 255, cv2.THRESH_BINARY)
    return binary


def adaptive_local_variant(image: RawImage) -> RawImage:
    """Locally windowed contrast normalization (CLAHE)"""
    gray = to_grayscale(image)
    clahe = cv2.createCLAHE(clipLimit=CLAHE_CLIP_LIMIT, tileGridSize=CLAHE_TILE_GRID)
    return ensure_min_width(clahe.apply(gray))


VARIANTS: Dict[OcrMethod, Callable[[RawImage], RawImage]] = {
    OcrMethod.STANDARD: standard_variant,
    OcrMethod.HIGH_CONTRAST: high_contrast_variant,
    OcrMethod.INVERTED: inverted_variant,
    OcrMethod.BINARIZED: binarized_variant,
    OcrMethod.ADAPTIVE_LOCAL: adaptive_local_variant,
}


def build_variants(image: RawImage) -> List[Tuple[OcrMethod, RawImage]]:
    """All enhancement variants of `image`, in tie-break order"""
    return [(method, VARIANTS[method](image)) for method in OcrMethod]
