"""
Card Templates
Static ROI layouts (fractions of the rectified card) for the supported ID types
"""
from typing import Dict, List, Optional, Union

from idscan.models.card import CardTemplate, IdType, RoiKey, RoiSpec


TEMPLATES: Dict[IdType, CardTemplate] = {
    IdType.NATIONAL_ID: CardTemplate(
        id_type=IdType.NATIONAL_ID,
        display_name="Philippine National ID",
        rois=(
            RoiSpec(RoiKey.FULL_NAME, "Last / Given / Middle", x=0.42, y=0.28, width=0.48, height=0.46),
            RoiSpec(RoiKey.DOB, "Date of Birth", x=0.42, y=0.725, width=0.48, height=0.18),
            RoiSpec(RoiKey.ID_NUMBER, "ID Number", x=0.01, y=0.24, width=0.38, height=0.15),
        ),
    ),
    IdType.PHILHEALTH: CardTemplate(
        id_type=IdType.PHILHEALTH,
        display_name="PhilHealth ID",
        rois=(
            RoiSpec(RoiKey.FULL_NAME, "Full Name", x=0.35, y=0.40, width=0.60, height=0.10),
            RoiSpec(RoiKey.DOB, "Date of Birth", x=0.35, y=0.48, width=0.25, height=0.07),
            RoiSpec(RoiKey.ID_NUMBER, "PhilHealth No.", x=0.35, y=0.33, width=0.40, height=0.10),
        ),
    ),
    IdType.UMID: CardTemplate(
        id_type=IdType.UMID,
        display_name="UMID",
        rois=(
            RoiSpec(RoiKey.FULL_NAME, "Full Name", x=0.38, y=0.33, width=0.62, height=0.38),
            RoiSpec(RoiKey.DOB, "Date of Birth", x=0.62, y=0.675, width=0.235, height=0.10),
            RoiSpec(RoiKey.ID_NUMBER, "CRN / ID No.", x=0.55, y=0.23, width=0.45, height=0.12),
        ),
    ),
}


def get_template(id_type: Union[IdType, str, None]) -> Optional[CardTemplate]:
    """Template for an ID type label, or None when no ROI layout is known"""
    resolved = IdType.from_label(id_type)
    if resolved is None:
        return None
    return TEMPLATES.get(resolved)


def list_templates() -> List[CardTemplate]:
    return list(TEMPLATES.values())
