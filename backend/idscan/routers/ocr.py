"""
OCR Router
Endpoints for single-pass, multi-pass and vision OCR, full ID scans, and parsing diagnostics
"""
import asyncio
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from loguru import logger

from idscan.config import Settings, get_settings
from idscan.models.card import RawImage, ScanOutcome
from idscan.routers.dependencies import (
    get_extraction_service, get_ocr_invoker, get_vision_service
)
from idscan.schemas.ocr import (
    DetectedIdTypeSchema, ExtractedInfoSchema, MultipassResponse, OcrTextResponse,
    ParseRequest, ParseResponse, ScanResponse, TemplateResponse, VisionFieldsSchema,
    VisionResponse
)
from idscan.services.classifier import detect_id_type
from idscan.services.enhancer import standard_variant
from idscan.services.extraction_service import IdExtractionService
from idscan.services.id_parsers import parse_text_by_id_type
from idscan.services.merge import NO_DATA_REASON
from idscan.services.multipass import run_multipass
from idscan.services.ocr_engine import OcrEngineError, OcrInvoker, invoke_with_timeout
from idscan.services.templates import get_template, list_templates
from idscan.services.vision_service import VisionOcrService
from idscan.utils.image_utils import (
    ImageDecodeError, decode_image, encode_png_data_url, sanitize_filename, validate_upload
)


router = APIRouter()


async def _load_upload(file: UploadFile) -> Tuple[bytes, RawImage]:
    """Validate and decode an uploaded photo, raising 400 on bad input"""
    is_valid, error_msg = await validate_upload(file)
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_msg
        )

    data = await file.read()
    try:
        image = await asyncio.to_thread(decode_image, data)
    except ImageDecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    logger.debug(f"Loaded upload {sanitize_filename(file.filename)} ({len(data)} bytes, {image.shape[1]}x{image.shape[0]})")
    return data, image


def _scan_response(outcome: ScanOutcome) -> ScanResponse:
    debug_image = None
    if outcome.debug_image is not None:
        try:
            debug_image = encode_png_data_url(outcome.debug_image)
        except ImageDecodeError as e:
            logger.warning(f"Debug image not returned: {e}")

    return ScanResponse(
        success=outcome.success,
        record=ExtractedInfoSchema.from_model(outcome.record) if outcome.record else None,
        detected=DetectedIdTypeSchema.from_model(outcome.detected) if outcome.detected else None,
        method=outcome.whole_card.method.value if outcome.whole_card else None,
        score=outcome.whole_card.score if outcome.whole_card else None,
        rectified=outcome.rectified,
        debug_image=debug_image,
        reason=outcome.reason,
        processing_time_ms=outcome.processing_time_ms,
    )


@router.post("", response_model=OcrTextResponse)
async def ocr_single_pass(
    file: UploadFile = File(..., description="Card photo"),
    invoker: OcrInvoker = Depends(get_ocr_invoker),
    settings: Settings = Depends(get_settings)
):
    """
    Single-pass OCR with the standard enhancement.

    Used for per-field crops and quick text reads.
    """
    _, image = await _load_upload(file)

    try:
        prepared = await asyncio.to_thread(standard_variant, image)
        text = await invoke_with_timeout(invoker, prepared, settings.OCR_TIMEOUT_SECONDS)
    except OcrEngineError as e:
        logger.error(f"Single-pass OCR failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"OCR engine error: {e}"
        )

    return OcrTextResponse(extracted_text=text)


@router.post("/multipass", response_model=MultipassResponse)
async def ocr_multipass(
    file: UploadFile = File(..., description="Card photo"),
    invoker: OcrInvoker = Depends(get_ocr_invoker),
    settings: Settings = Depends(get_settings)
):
    """
    Run all five enhancement variants and return the best-scoring text.

    **Variants:** standard, highContrast, inverted, binarized, adaptiveLocal
    """
    _, image = await _load_upload(file)
    best = await run_multipass(image, invoker, settings.OCR_TIMEOUT_SECONDS)
    return MultipassResponse(extracted_text=best.text, method=best.method.value, score=best.score)


@router.post("/vision", response_model=VisionResponse)
async def ocr_vision(
    file: UploadFile = File(..., description="Card photo"),
    vision: VisionOcrService = Depends(get_vision_service)
):
    """
    Extract fields with a vision-language model instead of Tesseract.
    """
    data, _ = await _load_upload(file)
    result = await vision.extract_fields(data, file.content_type or "image/jpeg")

    response = VisionResponse(
        success=result.success,
        model=result.model,
        fields=VisionFieldsSchema.from_model(result.fields),
        raw_response=result.raw_response,
        error=result.error,
    )
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=response.model_dump(by_alias=True)
        )
    return response


@router.post("/scan", response_model=ScanResponse)
async def scan_id(
    file: UploadFile = File(..., description="Photo of the ID card"),
    id_type: Optional[str] = Form(None, alias="idType", description="Expected ID type, e.g. 'National ID'"),
    service: IdExtractionService = Depends(get_extraction_service)
):
    """
    Full ID scan: rectify, multi-pass OCR, ROI OCR, classify, parse and merge.

    Returns 422 with a human-readable reason when nothing could be read,
    so the operator can retry or switch to manual entry.
    """
    _, image = await _load_upload(file)
    outcome = await service.extract_from_photo(image, id_type or None)
    response = _scan_response(outcome)

    if not outcome.success:
        status_code = (
            status.HTTP_422_UNPROCESSABLE_ENTITY if outcome.reason == NO_DATA_REASON
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        return JSONResponse(status_code=status_code, content=response.model_dump(by_alias=True))

    return response


@router.post("/parse", response_model=ParseResponse)
async def parse_text(request: ParseRequest):
    """
    Classify and parse raw OCR text (diagnostics / replaying captured text).
    """
    detected = detect_id_type(request.text)
    record = parse_text_by_id_type(request.text, request.id_type or detected.id_type)
    return ParseResponse(
        detected=DetectedIdTypeSchema.from_model(detected),
        record=ExtractedInfoSchema.from_model(record),
    )


@router.get("/templates", response_model=List[TemplateResponse])
async def get_templates():
    """List the ROI templates of all supported layouts"""
    return [TemplateResponse.from_model(template) for template in list_templates()]


@router.get("/templates/{id_type}", response_model=TemplateResponse)
async def get_template_by_type(id_type: str):
    """ROI template for one ID type"""
    template = get_template(id_type)
    if template is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No ROI template for ID type '{id_type}'"
        )
    return TemplateResponse.from_model(template)
