"""
Merge Resolver
Combines per-field ROI text with the whole-card parse into the final record
"""
from typing import Optional, Tuple, Union

from idscan.models.card import (
    ExtractedInfo, FieldConfidence, IdType, MergeResult, RoiFields
)
from idscan.services.normalizers import is_reasonable_roi_name


ROI_FIELD_CONFIDENCE = 0.85
EMPTY_FIELD_CONFIDENCE = 0.2

NO_DATA_REASON = (
    "OCR couldn't extract details. Adjust lighting/position, retry, or use Manual Entry."
)


def _resolve_id_type(whole: ExtractedInfo, expected_type: Union[IdType, str, None]) -> str:
    if whole.id_type and whole.id_type != IdType.UNKNOWN.value:
        return whole.id_type
    if expected_type:
        resolved = IdType.from_label(expected_type)
        return resolved.value if resolved else str(expected_type)
    return IdType.UNKNOWN.value


def _pick(roi_value: str, whole_value: str, whole_conf: Optional[float]) -> Tuple[str, float]:
    """ROI value when present, otherwise the whole-card value"""
    if roi_value:
        return roi_value, ROI_FIELD_CONFIDENCE
    if whole_value:
        return whole_value, whole_conf if whole_conf is not None else ROI_FIELD_CONFIDENCE
    return "", EMPTY_FIELD_CONFIDENCE


def merge_fields(
    roi: Optional[RoiFields],
    whole: ExtractedInfo,
    expected_type: Union[IdType, str, None] = None,
) -> MergeResult:
    """
    Merge ROI and whole-card fields.

    - id type: whole-card type, then the expected type, then "Unknown"
    - dob / id number: ROI value wins when non-empty
    - full name: whole-card wins for National IDs (expected type first, then
      the resolved type); otherwise the ROI value is used only if it looks
      like a name
    """
    roi = roi or RoiFields()
    whole_conf = whole.confidence or FieldConfidence(None, None, None)
    id_type = _resolve_id_type(whole, expected_type)

    dob, dob_conf = _pick(roi.dob, whole.dob, whole_conf.dob)
    id_number, id_conf = _pick(roi.id_number, whole.id_number, whole_conf.id_number)

    layout = IdType.from_label(expected_type) or IdType.from_label(id_type)
    if layout == IdType.NATIONAL_ID:
        if whole.full_name:
            full_name, name_conf = whole.full_name, whole_conf.full_name or ROI_FIELD_CONFIDENCE
        else:
            full_name, name_conf = _pick(roi.full_name, "", None)
    elif is_reasonable_roi_name(roi.full_name):
        full_name, name_conf = roi.full_name.strip(), ROI_FIELD_CONFIDENCE
    else:
        full_name, name_conf = _pick("", whole.full_name, whole_conf.full_name)

    record = ExtractedInfo(
        full_name=full_name,
        dob=dob,
        id_number=id_number,
        id_type=id_type,
        address=whole.address,
        confidence=FieldConfidence(
            full_name=name_conf,
            dob=dob_conf,
            id_number=id_conf,
            address=whole_conf.address,
        ),
    )

    has_signal = record.has_any_field() or roi.has_any()
    return MergeResult(record=record, has_signal=has_signal)
