"""
ID Type Classifier
Guesses the document type of whole-card OCR text from an ordered signature table
"""
import re
from dataclasses import dataclass
from typing import Callable, List, Tuple

from loguru import logger

from idscan.models.card import DetectedIdType, IdType


# OCR often drops the spaces between words, so phrase patterns use \s*
NATIONAL_ID_NUMBER = re.compile(r"\d{4}-\d{4}-\d{4}-\d{4}")
PHILSYS_TEXT = re.compile(
    r"PHILSYS|PHILIPPINE\s*NATIONAL\s*ID|REPUBLIKA\s*NG\s*PILIPINAS", re.IGNORECASE
)

CRN_NUMBER = re.compile(r"CRN[:\s\-]*\d{4}[\-\s]?\d{7}[\-\s]?\d", re.IGNORECASE)
UMID_TOKEN = re.compile(r"\bUMID\b", re.IGNORECASE)
REPUBLIC_TEXT = re.compile(r"REPUBLIC\s*OF\s*THE\s*PHILIPPINES", re.IGNORECASE)
MULTI_PURPOSE_TEXT = re.compile(r"MULTI[\-\s]?PURPOSE", re.IGNORECASE)
UNIFIED_TEXT = re.compile(r"UNIFIED", re.IGNORECASE)

LTO_TEXT = re.compile(
    r"LAND\s*TRANSPORTATION\s*OFFICE|\bLTO\b|DRIVER['’]?S?\s*LICENSE|LICENSE\s*NO",
    re.IGNORECASE,
)
# Case-sensitive: the optional prefix is an upper-case letter
LICENSE_NUMBER = re.compile(r"[A-Z]?\d{2,3}-\d{2}-\d{6}")

PHILHEALTH_TEXT = re.compile(r"PHILHEALTH|PHILIPPINE\s*HEALTH\s*INSURANCE", re.IGNORECASE)
PHILHEALTH_NUMBER = re.compile(r"\d{2}-\d{9}-\d")

SSS_TEXT = re.compile(r"SOCIAL\s*SECURITY\s*SYSTEM", re.IGNORECASE)
SSS_TOKEN = re.compile(r"\bSSS\b", re.IGNORECASE)
SSS_CONFLICTS = re.compile(r"PHILSYS|UMID|MULTI.?PURPOSE", re.IGNORECASE)
SSS_NUMBER = re.compile(r"\d{2}-\d{7}-\d")

CITY_TEXT = re.compile(
    r"QUEZON\s*CITY|CITY\s*OF\s*MANILA|CITY\s*ID|BARANGAY\s*ID", re.IGNORECASE
)
SCHOOL_TEXT = re.compile(r"UNIVERSITY|COLLEGE|STUDENT\s*ID|SCHOOL\s*ID", re.IGNORECASE)


def _national_id(text: str) -> List[str]:
    if not NATIONAL_ID_NUMBER.search(text):
        return []
    matched = ["ID: XXXX-XXXX-XXXX-XXXX"]
    if PHILSYS_TEXT.search(text):
        matched.append("PhilSys / National ID")
    return matched


def _umid(text: str) -> List[str]:
    upper = text.upper()
    has_crn = bool(CRN_NUMBER.search(text))
    has_umid = bool(UMID_TOKEN.search(text))
    # Fragmented OCR: accept the key words anywhere on the card
    has_republic = bool(REPUBLIC_TEXT.search(text)) or (
        "REPUBLIC" in upper and "PHILIPPINES" in upper
    )
    has_multi_purpose = bool(MULTI_PURPOSE_TEXT.search(text)) or (
        "MULTI" in upper and "PURPOSE" in upper
    ) or bool(UNIFIED_TEXT.search(text))

    if not (has_crn or has_umid or (has_republic and has_multi_purpose)):
        return []

    matched = []
    if has_crn:
        matched.append("CRN-XXXX-XXXXXXX-X")
    if has_umid:
        matched.append("UMID text found")
    if has_republic:
        matched.append("Republic of the Philippines")
    if has_multi_purpose:
        matched.append("Multi-Purpose ID text")
    return matched


def _drivers_license(text: str) -> List[str]:
    matched = []
    if LTO_TEXT.search(text):
        matched.append("LTO / Driver's License")
    if LICENSE_NUMBER.search(text):
        matched.append("ID: N##-##-######")
    return matched


def _philhealth(text: str) -> List[str]:
    matched = []
    if PHILHEALTH_TEXT.search(text):
        matched.append("PhilHealth text")
    if PHILHEALTH_NUMBER.search(text):
        matched.append("ID: XX-XXXXXXXXX-X")
    return matched


def _sss(text: str) -> List[str]:
    has_name = bool(SSS_TEXT.search(text))
    has_token = bool(SSS_TOKEN.search(text)) and not SSS_CONFLICTS.search(text)
    has_number = bool(SSS_NUMBER.search(text))
    if not (has_name or (has_token and has_number)):
        return []

    matched = ["Social Security System"] if has_name else ["SSS text"]
    if has_number:
        matched.append("ID: XX-XXXXXXX-X")
    return matched


def _city_id(text: str) -> List[str]:
    return ["City / Barangay ID"] if CITY_TEXT.search(text) else []


def _school_id(text: str) -> List[str]:
    return ["School / University ID"] if SCHOOL_TEXT.search(text) else []


@dataclass(frozen=True)
class IdSignature:
    """One entry of the classification table"""
    id_type: IdType
    confidence: float
    rule: Callable[[str], List[str]]


# More specific signatures come first. UMID must precede SSS since UMID
# cards also carry SSS branding.
SIGNATURES: Tuple[IdSignature, ...] = (
    IdSignature(IdType.NATIONAL_ID, 0.95, _national_id),
    IdSignature(IdType.UMID, 0.95, _umid),
    IdSignature(IdType.DRIVERS_LICENSE, 0.9, _drivers_license),
    IdSignature(IdType.PHILHEALTH, 0.9, _philhealth),
    IdSignature(IdType.SSS, 0.85, _sss),
    IdSignature(IdType.CITY_ID, 0.8, _city_id),
    IdSignature(IdType.SCHOOL_ID, 0.7, _school_id),
)

DEFAULT_CONFIDENCE = 0.3


def detect_id_type(text: str) -> DetectedIdType:
    """
    Classify whole-card OCR text.
    The first matching signature wins; unmatched text is reported as "Other".
    """
    if not text or not text.strip():
        return DetectedIdType(IdType.OTHER.value, 0.0, ())

    for signature in SIGNATURES:
        matched = signature.rule(text)
        if matched:
            logger.info(
                f"Detected ID type: {signature.id_type.value} "
                f"(confidence={signature.confidence}, patterns={matched})"
            )
            return DetectedIdType(signature.id_type.value, signature.confidence, tuple(matched))

    logger.debug("No ID signature matched")
    return DetectedIdType(IdType.OTHER.value, DEFAULT_CONFIDENCE, ("No patterns matched",))
