"""
ID Extraction Service
Photo-to-record pipeline: rectify, multi-pass OCR, ROI OCR, classify, parse, merge
"""
import asyncio
import time
from typing import Dict, Optional, Union

from loguru import logger

from idscan.config import Settings, settings as default_settings
from idscan.models.card import (
    CardTemplate, IdType, RawImage, RoiFields, RoiKey, ScanOutcome
)
from idscan.services.classifier import detect_id_type
from idscan.services.enhancer import standard_variant
from idscan.services.id_parsers import parse_text_by_id_type
from idscan.services.merge import NO_DATA_REASON, merge_fields
from idscan.services.multipass import run_multipass
from idscan.services.normalizers import (
    clean_roi_name, extract_dob_from_text, extract_national_id_number
)
from idscan.services.ocr_engine import (
    OcrEngineError, OcrInvoker, TesseractOcrInvoker, invoke_with_timeout
)
from idscan.services.rectifier import rectify_card
from idscan.services.region_extractor import crop_regions
from idscan.services.templates import get_template


PIPELINE_ERROR_REASON = "OCR pipeline error. Retry, or use Manual Entry."


class IdExtractionService:
    """Turns a photo of an ID card into an ExtractedInfo record"""

    def __init__(self, invoker: OcrInvoker = None, settings: Settings = None):
        self.settings = settings or default_settings
        self.invoker = invoker or TesseractOcrInvoker(self.settings)

    async def extract_from_photo(
        self,
        raw_photo: RawImage,
        expected_id_type: Union[IdType, str, None] = None,
    ) -> ScanOutcome:
        """
        Main method to process an ID photo.
        Never raises: every failure degrades to a ScanOutcome with success=False.
        """
        start_time = time.time()

        try:
            outcome = await self._run(raw_photo, expected_id_type)
        except Exception as e:
            logger.exception(f"ID extraction pipeline error: {e}")
            outcome = ScanOutcome(success=False, reason=PIPELINE_ERROR_REASON)

        outcome.processing_time_ms = int((time.time() - start_time) * 1000)
        return outcome

    async def _run(
        self, raw_photo: RawImage, expected_id_type: Union[IdType, str, None]
    ) -> ScanOutcome:
        if raw_photo is None or raw_photo.size == 0:
            return ScanOutcome(success=False, reason="Empty image")

        expected = IdType.from_label(expected_id_type)
        if expected_id_type and expected is None:
            logger.warning(f"Unrecognized expected ID type {expected_id_type!r}; auto-detecting")

        # 1. Deskew and crop; fall back to the raw photo
        rectified = await asyncio.to_thread(rectify_card, raw_photo, self.settings)
        if rectified.success:
            card = rectified.image
        else:
            logger.warning(f"Rectification skipped: {rectified.reason}")
            card = raw_photo

        timeout = self.settings.OCR_TIMEOUT_SECONDS

        # 2. Whole-card multi-pass OCR, with ROI OCR alongside when the layout is known
        template = get_template(expected)
        if template is not None:
            whole_card, roi_fields = await asyncio.gather(
                run_multipass(card, self.invoker, timeout),
                self.read_regions(card, template),
            )
            detected = detect_id_type(whole_card.text)
        else:
            whole_card = await run_multipass(card, self.invoker, timeout)
            detected = detect_id_type(whole_card.text)
            template = get_template(detected.id_type)
            roi_fields = await self.read_regions(card, template) if template else RoiFields()

        # 3. Parse with the expected type, or whatever the classifier saw
        parse_type = expected.value if expected else detected.id_type
        parsed = parse_text_by_id_type(whole_card.text, parse_type)

        # 4. Merge
        merged = merge_fields(roi_fields, parsed, expected)
        if not merged.has_signal:
            logger.info("No usable fields extracted from photo")
            return ScanOutcome(
                success=False,
                reason=NO_DATA_REASON,
                debug_image=card,
                detected=detected,
                whole_card=whole_card,
                rectified=rectified.success,
                roi_fields=roi_fields,
            )

        logger.info(
            f"Extracted {merged.record.id_type}: name={bool(merged.record.full_name)} "
            f"dob={bool(merged.record.dob)} id={bool(merged.record.id_number)}"
        )
        return ScanOutcome(
            success=True,
            record=merged.record,
            debug_image=card,
            detected=detected,
            whole_card=whole_card,
            rectified=rectified.success,
            roi_fields=roi_fields,
        )

    async def read_regions(self, image: RawImage, template: Optional[CardTemplate]) -> RoiFields:
        """OCR each template region concurrently and clean the text per field"""
        if template is None:
            return RoiFields()

        crops = crop_regions(image, template.rois)
        keys = list(crops)
        texts = await asyncio.gather(*(self._read_crop(key, crops[key]) for key in keys))
        raw: Dict[RoiKey, str] = dict(zip(keys, texts))

        id_text = raw.get(RoiKey.ID_NUMBER, "")
        if template.id_type == IdType.NATIONAL_ID:
            # A malformed PhilSys number stays empty so the whole-card value can win
            id_number = extract_national_id_number(id_text)
        else:
            id_number = extract_national_id_number(id_text) or id_text.strip()

        return RoiFields(
            full_name=clean_roi_name(raw.get(RoiKey.FULL_NAME, "")),
            dob=extract_dob_from_text(raw.get(RoiKey.DOB, "")),
            id_number=id_number,
        )

    async def _read_crop(self, key: RoiKey, crop: RawImage) -> str:
        try:
            prepared = await asyncio.to_thread(standard_variant, crop)
            text = await invoke_with_timeout(self.invoker, prepared, self.settings.OCR_TIMEOUT_SECONDS)
        except OcrEngineError as e:
            logger.warning(f"ROI '{key.value}' OCR failed: {e}")
            return ""
        logger.debug(f"ROI '{key.value}' text: {text!r}")
        return text
