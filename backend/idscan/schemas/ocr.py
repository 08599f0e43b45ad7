"""
OCR Schemas
Pydantic models for the OCR / ID scanning API (camelCase on the wire)
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from idscan.models.card import (
    CardTemplate, DetectedIdType, ExtractedInfo, FieldConfidence, VisionFields
)


class OcrTextResponse(BaseModel):
    """Single-pass OCR result"""
    extracted_text: str = Field(..., alias="extractedText")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"extractedText": "REPUBLIC OF THE PHILIPPINES\nPHILSYS\n..."}
        }


class MultipassResponse(BaseModel):
    """Best multi-pass OCR result"""
    extracted_text: str = Field(..., alias="extractedText")
    method: str
    score: int

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "extractedText": "DELA CRUZ\nJUAN PEDRO\n1234-5678-9012-3456",
                "method": "binarized",
                "score": 41
            }
        }


class FieldConfidenceSchema(BaseModel):
    full_name: Optional[float] = Field(None, alias="fullName")
    dob: Optional[float] = None
    id_number: Optional[float] = Field(None, alias="idNumber")
    address: Optional[float] = None

    class Config:
        populate_by_name = True

    @classmethod
    def from_model(cls, confidence: FieldConfidence) -> "FieldConfidenceSchema":
        return cls(
            full_name=confidence.full_name,
            dob=confidence.dob,
            id_number=confidence.id_number,
            address=confidence.address,
        )


class ExtractedInfoSchema(BaseModel):
    """Extracted ID record"""
    full_name: str = Field("", alias="fullName")
    dob: str = ""
    id_number: str = Field("", alias="idNumber")
    id_type: str = Field("Unknown", alias="idType")
    address: Optional[str] = None
    confidence: Optional[FieldConfidenceSchema] = None

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "fullName": "JUAN PEDRO DELA CRUZ",
                "dob": "1999-01-03",
                "idNumber": "1234-5678-9012-3456",
                "idType": "National ID",
                "confidence": {"fullName": 0.95, "dob": 0.9, "idNumber": 1.0}
            }
        }

    @classmethod
    def from_model(cls, info: ExtractedInfo) -> "ExtractedInfoSchema":
        return cls(
            full_name=info.full_name,
            dob=info.dob,
            id_number=info.id_number,
            id_type=info.id_type,
            address=info.address,
            confidence=FieldConfidenceSchema.from_model(info.confidence) if info.confidence else None,
        )


class DetectedIdTypeSchema(BaseModel):
    id_type: str = Field(..., alias="idType")
    confidence: float
    matched_patterns: List[str] = Field(default_factory=list, alias="matchedPatterns")

    class Config:
        populate_by_name = True

    @classmethod
    def from_model(cls, detected: DetectedIdType) -> "DetectedIdTypeSchema":
        return cls(
            id_type=detected.id_type,
            confidence=detected.confidence,
            matched_patterns=list(detected.matched_patterns),
        )


class ScanResponse(BaseModel):
    """Result of the full photo-to-record pipeline"""
    success: bool
    record: Optional[ExtractedInfoSchema] = None
    detected: Optional[DetectedIdTypeSchema] = None
    method: Optional[str] = None
    score: Optional[int] = None
    rectified: bool = False
    debug_image: Optional[str] = Field(None, alias="debugImage")
    reason: Optional[str] = None
    processing_time_ms: int = Field(0, alias="processingTimeMs")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "success": True,
                "record": {
                    "fullName": "JUAN PEDRO DELA CRUZ",
                    "dob": "1999-01-03",
                    "idNumber": "1234-5678-9012-3456",
                    "idType": "National ID"
                },
                "detected": {"idType": "National ID", "confidence": 0.95, "matchedPatterns": []},
                "method": "standard",
                "score": 57,
                "rectified": True,
                "debugImage": "data:image/png;base64,...",
                "processingTimeMs": 1840
            }
        }


class ParseRequest(BaseModel):
    """Raw OCR text to classify and parse"""
    text: str = Field(..., max_length=20000)
    id_type: Optional[str] = Field(None, alias="idType")

    class Config:
        populate_by_name = True


class ParseResponse(BaseModel):
    detected: DetectedIdTypeSchema
    record: ExtractedInfoSchema


class VisionFieldsSchema(BaseModel):
    full_name: str = Field("", alias="fullName")
    id_number: str = Field("", alias="idNumber")
    dob: str = ""
    address: str = ""
    id_type: str = Field("", alias="idType")
    gender: str = ""

    class Config:
        populate_by_name = True

    @classmethod
    def from_model(cls, fields: VisionFields) -> "VisionFieldsSchema":
        return cls(
            full_name=fields.full_name,
            id_number=fields.id_number,
            dob=fields.dob,
            address=fields.address,
            id_type=fields.id_type,
            gender=fields.gender,
        )


class VisionResponse(BaseModel):
    """Vision-model extraction result"""
    success: bool
    method: str = "vision"
    model: str
    fields: VisionFieldsSchema
    raw_response: Optional[str] = Field(None, alias="rawResponse")
    error: Optional[str] = None

    class Config:
        populate_by_name = True
        protected_namespaces = ()


class RoiSpecSchema(BaseModel):
    key: str
    label: str
    x: float
    y: float
    width: float
    height: float


class TemplateResponse(BaseModel):
    id_type: str = Field(..., alias="idType")
    display_name: str = Field(..., alias="displayName")
    rois: List[RoiSpecSchema]

    class Config:
        populate_by_name = True

    @classmethod
    def from_model(cls, template: CardTemplate) -> "TemplateResponse":
        return cls(
            id_type=template.id_type.value,
            display_name=template.display_name,
            rois=[
                RoiSpecSchema(
                    key=roi.key.value, label=roi.label,
                    x=roi.x, y=roi.y, width=roi.width, height=roi.height
                )
                for roi in template.rois
            ],
        )
