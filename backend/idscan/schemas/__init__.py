# Schemas Package
from idscan.schemas.ocr import (
    OcrTextResponse, MultipassResponse, FieldConfidenceSchema, ExtractedInfoSchema,
    DetectedIdTypeSchema, ScanResponse, ParseRequest, ParseResponse,
    VisionFieldsSchema, VisionResponse, RoiSpecSchema, TemplateResponse
)

__all__ = [
    "OcrTextResponse", "MultipassResponse", "FieldConfidenceSchema", "ExtractedInfoSchema",
    "DetectedIdTypeSchema", "ScanResponse", "ParseRequest", "ParseResponse",
    "VisionFieldsSchema", "VisionResponse", "RoiSpecSchema", "TemplateResponse"
]
