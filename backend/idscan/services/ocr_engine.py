"""
OCR Engine
Single contract for turning an image into raw text, with a Tesseract backend
"""
import asyncio
from abc import ABC, abstractmethod

import cv2
import pytesseract
from PIL import Image
from loguru import logger

from idscan.config import Settings, settings as default_settings
from idscan.models.card import RawImage


class OcrEngineError(Exception):
    """OCR engine unavailable, failed, or timed out"""


class OcrInvoker(ABC):
    """Anything that can read text out of an image"""

    name = "ocr"

    @abstractmethod
    def invoke(self, image: RawImage) -> str:
        """Return the raw text in `image`; raise OcrEngineError on failure"""


class TesseractOcrInvoker(OcrInvoker):
    """Local Tesseract engine via pytesseract"""

    name = "tesseract"

    def __init__(self, settings: Settings = None):
        self.settings = settings or default_settings
        if self.settings.TESSERACT_CMD:
            pytesseract.pytesseract.tesseract_cmd = self.settings.TESSERACT_CMD

    @property
    def config(self) -> str:
        s = self.settings
        parts = [f"--psm {s.OCR_PSM}", f"-c user_defined_dpi={s.OCR_DPI}"]
        if s.OCR_CHAR_WHITELIST:
            # Spaces inside a -c value would split the argument list
            whitelist = s.OCR_CHAR_WHITELIST.replace(" ", "")
            parts.append(f"-c tessedit_char_whitelist={whitelist}")
        return " ".join(parts)

    def _to_pil(self, image: RawImage) -> Image.Image:
        if image.ndim == 2:
            return Image.fromarray(image)
        if image.shape[2] == 4:
            return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGRA2RGB))
        return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))

    def invoke(self, image: RawImage) -> str:
        if image is None or image.size == 0:
            raise OcrEngineError("Empty image passed to OCR engine")
        try:
            text = pytesseract.image_to_string(
                self._to_pil(image),
                lang=self.settings.OCR_LANGUAGE,
                config=self.config,
                timeout=self.settings.OCR_TIMEOUT_SECONDS,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise OcrEngineError("Tesseract binary not found; set TESSERACT_CMD") from e
        except (pytesseract.TesseractError, RuntimeError, ValueError, cv2.error) as e:
            raise OcrEngineError(f"Tesseract failed: {e}") from e
        return text.strip()


async def invoke_with_timeout(invoker: OcrInvoker, image: RawImage, timeout: float) -> str:
    """
    Run a blocking OCR call in a worker thread, bounded by `timeout` seconds.
    A timeout surfaces as OcrEngineError; the worker thread is left to finish on its own.
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(invoker.invoke, image), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise OcrEngineError(f"{invoker.name} timed out after {timeout}s") from e
    except OcrEngineError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected OCR engine error: {e}")
        raise OcrEngineError(str(e)) from e
