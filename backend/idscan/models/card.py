"""
Card and Extraction Models
In-memory domain types produced and consumed by the ID extraction pipeline
"""
import enum
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np


# Images travel through the pipeline as OpenCV arrays (BGR or single-channel)
RawImage = np.ndarray

_ROI_EPSILON = 1e-9


class IdType(str, enum.Enum):
    """Supported identity document types"""
    NATIONAL_ID = "National ID"
    UMID = "UMID"
    DRIVERS_LICENSE = "Driver's License"
    PHILHEALTH = "PhilHealth ID"
    SSS = "SSS ID"
    CITY_ID = "City ID"
    SCHOOL_ID = "School ID"
    OTHER = "Other"
    UNKNOWN = "Unknown"

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["IdType"]:
        """Resolve a display label (case-insensitive) to an IdType, None if unrecognized"""
        if label is None:
            return None
        if isinstance(label, IdType):
            return label

        wanted = str(label).strip().casefold()
        if not wanted:
            return None
        if wanted in _ID_TYPE_ALIASES:
            return _ID_TYPE_ALIASES[wanted]

        for member in cls:
            if member.value.casefold() == wanted or member.name.casefold() == wanted:
                return member
        return None


_ID_TYPE_ALIASES = {
    "qc id": IdType.CITY_ID,
    "philsys": IdType.NATIONAL_ID,
    "drivers license": IdType.DRIVERS_LICENSE,
}


class RoiKey(str, enum.Enum):
    """Fields that can be read from a card region"""
    FULL_NAME = "fullName"
    DOB = "dob"
    ID_NUMBER = "idNumber"


class OcrMethod(str, enum.Enum):
    """Enhancement variants, in tie-break order"""
    STANDARD = "standard"
    HIGH_CONTRAST = "highContrast"
    INVERTED = "inverted"
    BINARIZED = "binarized"
    ADAPTIVE_LOCAL = "adaptiveLocal"


@dataclass(frozen=True)
class RoiSpec:
    """
    Normalized region of a rectified card.
    Coordinates are fractions of the card width/height, (0, 0) being top-left.
    """
    key: RoiKey
    label: str
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        if self.x < 0 or self.y < 0 or self.width < 0 or self.height < 0:
            raise ValueError(f"ROI '{self.key.value}' has negative geometry")
        if self.x + self.width > 1 + _ROI_EPSILON or self.y + self.height > 1 + _ROI_EPSILON:
            raise ValueError(f"ROI '{self.key.value}' extends past the card bounds")


@dataclass(frozen=True)
class CardTemplate:
    """ROI layout for one ID type"""
    id_type: IdType
    display_name: str
    rois: Tuple[RoiSpec, ...]


@dataclass(frozen=True)
class OcrPassResult:
    """Text produced by one enhancement variant"""
    text: str
    method: OcrMethod
    score: int


@dataclass(frozen=True)
class DetectedIdType:
    """Classifier verdict over whole-card text"""
    id_type: str
    confidence: float
    matched_patterns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FieldConfidence:
    """Categorical per-field confidence"""
    full_name: float
    dob: float
    id_number: float
    address: Optional[float] = None


@dataclass(frozen=True)
class ExtractedInfo:
    """Final (or parser-level) extracted record"""
    full_name: str = ""
    dob: str = ""
    id_number: str = ""
    id_type: str = IdType.UNKNOWN.value
    address: Optional[str] = None
    confidence: Optional[FieldConfidence] = None

    def has_any_field(self) -> bool:
        return bool(self.full_name or self.dob or self.id_number)


@dataclass(frozen=True)
class RoiFields:
    """Cleaned text read from the per-field crops"""
    full_name: str = ""
    dob: str = ""
    id_number: str = ""

    def has_any(self) -> bool:
        return bool(self.full_name or self.dob or self.id_number)


@dataclass(frozen=True)
class RectifyResult:
    success: bool
    image: Optional[RawImage] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class MergeResult:
    record: ExtractedInfo
    has_signal: bool


@dataclass
class ScanOutcome:
    """Result of a full photo-to-record extraction"""
    success: bool
    record: Optional[ExtractedInfo] = None
    debug_image: Optional[RawImage] = None
    reason: Optional[str] = None
    detected: Optional[DetectedIdType] = None
    whole_card: Optional[OcrPassResult] = None
    rectified: bool = False
    roi_fields: Optional[RoiFields] = None
    processing_time_ms: int = 0


@dataclass(frozen=True)
class VisionFields:
    full_name: str = ""
    id_number: str = ""
    dob: str = ""
    address: str = ""
    id_type: str = ""
    gender: str = ""


@dataclass
class VisionResult:
    """Outcome of a vision-model extraction"""
    success: bool
    model: str
    fields: VisionFields = field(default_factory=VisionFields)
    raw_response: Optional[str] = None
    error: Optional[str] = None
