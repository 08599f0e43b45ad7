# Models Package
from idscan.models.card import (
    RawImage, IdType, RoiKey, OcrMethod, RoiSpec, CardTemplate, OcrPassResult,
    DetectedIdType, FieldConfidence, ExtractedInfo, RoiFields, RectifyResult,
    MergeResult, ScanOutcome, VisionFields, VisionResult
)

__all__ = [
    "RawImage", "IdType", "RoiKey", "OcrMethod", "RoiSpec", "CardTemplate",
    "OcrPassResult", "DetectedIdType", "FieldConfidence", "ExtractedInfo",
    "RoiFields", "RectifyResult", "MergeResult", "ScanOutcome",
    "VisionFields", "VisionResult"
]
