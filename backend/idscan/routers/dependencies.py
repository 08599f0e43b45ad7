"""
Service Dependencies
Shared OCR engine and service instances injected into the routers
"""
from functools import lru_cache

from fastapi import Depends

from idscan.config import Settings, get_settings
from idscan.services.extraction_service import IdExtractionService
from idscan.services.ocr_engine import OcrInvoker, TesseractOcrInvoker
from idscan.services.vision_service import VisionOcrService


@lru_cache()
def get_ocr_invoker() -> OcrInvoker:
    """Process-wide Tesseract invoker (stateless, safe to share)"""
    return TesseractOcrInvoker(get_settings())


def get_extraction_service(
    invoker: OcrInvoker = Depends(get_ocr_invoker),
    settings: Settings = Depends(get_settings)
) -> IdExtractionService:
    return IdExtractionService(invoker=invoker, settings=settings)


def get_vision_service(settings: Settings = Depends(get_settings)) -> VisionOcrService:
    return VisionOcrService(settings=settings)
