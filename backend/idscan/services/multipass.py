"""
Multi-Pass OCR
Runs every enhancement variant through the OCR engine and keeps the cleanest text
"""
import asyncio
from typing import Iterable, Optional

from loguru import logger

from idscan.models.card import OcrMethod, OcrPassResult, RawImage
from idscan.services.enhancer import VARIANTS
from idscan.services.ocr_engine import OcrEngineError, OcrInvoker, invoke_with_timeout


ALLOWED_PUNCTUATION = {"-", "/"}


def score_result(text: Optional[str]) -> int:
    """
    Quality heuristic for raw OCR text.
    Each alphanumeric character adds 1; each stray symbol (anything but
    whitespace, '-' or '/') costs 2.
    """
    if not text:
        return 0

    alnum = 0
    garbage = 0
    for ch in text:
        if ch.isalnum():
            alnum += 1
        elif not ch.isspace() and ch not in ALLOWED_PUNCTUATION:
            garbage += 1
    return alnum - 2 * garbage


def select_best(results: Iterable[OcrPassResult]) -> OcrPassResult:
    """Highest score wins; ties go to the earlier variant"""
    order = {method: idx for idx, method in enumerate(OcrMethod)}
    best = None
    for result in sorted(results, key=lambda r: order[r.method]):
        if best is None or result.score > best.score:
            best = result
    return best or OcrPassResult(text="", method=OcrMethod.STANDARD, score=0)


async def run_pass(
    method: OcrMethod, image: RawImage, invoker: OcrInvoker, timeout: float
) -> OcrPassResult:
    """One variant: enhance, OCR, score. Engine failures score 0."""
    try:
        variant = await asyncio.to_thread(VARIANTS[method], image)
        text = await invoke_with_timeout(invoker, variant, timeout)
    except OcrEngineError as e:
        logger.warning(f"OCR pass '{method.value}' failed: {e}")
        return OcrPassResult(text="", method=method, score=0)
    except Exception as e:
        logger.exception(f"OCR pass '{method.value}' crashed: {e}")
        return OcrPassResult(text="", method=method, score=0)

    score = score_result(text)
    logger.debug(f"OCR pass '{method.value}' score={score}: {text[:80]!r}")
    return OcrPassResult(text=text, method=method, score=score)


async def run_multipass(image: RawImage, invoker: OcrInvoker, timeout: float) -> OcrPassResult:
    """
    Run all five variants concurrently and return the best-scoring text.
    Never raises: if every pass fails the result is empty text with score 0.
    """
    results = await asyncio.gather(
        *(run_pass(method, image, invoker, timeout) for method in OcrMethod)
    )
    best = select_best(results)
    logger.info(f"Multi-pass OCR winner: {best.method.value} (score={best.score})")
    return best
