"""
ID Field Parsers
Per-ID-type extraction of name, date of birth, ID number and address from whole-card text
"""
import re
from typing import Callable, Dict, List, Optional, Union

from loguru import logger

from idscan.models.card import ExtractedInfo, FieldConfidence, IdType
from idscan.services.normalizers import (
    MONTH_ABBREVIATIONS,
    collapse_whitespace,
    extract_address,
    line_below_label,
    normalize_date,
    pick_best_dob,
    pick_best_id_token,
    pick_best_name_line,
    split_lines,
)


def _presence(value: Optional[str], found: float, missing: float) -> float:
    """Categorical confidence: fixed high value when present, fixed low value when empty"""
    return found if value else missing


# ========== NATIONAL ID (PhilSys) ==========

NATIONAL_PATTERNS = {
    "id_number": re.compile(r"\b\d{4}-\d{4}-\d{4}-\d{4}\b"),
    "last_name": re.compile(r"Apelyido|Last\s*Name", re.IGNORECASE),
    "given_names": re.compile(r"Mga\s*Pangalan|Given\s*Names", re.IGNORECASE),
    "middle_name": re.compile(r"Gitnang\s*Apelyido|Middle\s*Name", re.IGNORECASE),
    "caps_line": re.compile(r"[A-Z\s]{3,}"),
    "dob": re.compile(
        r"\b(January|February|March|April|May|June|July|August|September|October|November|December)"
        r"\s+\d{1,2},?\s*\d{4}\b",
        re.IGNORECASE
    ),
}


def parse_national_id(text: str) -> ExtractedInfo:
    """Parse a PhilSys National ID (bilingual stacked labels)"""
    lines = split_lines(text)
    joined = collapse_whitespace(text)

    id_match = NATIONAL_PATTERNS["id_number"].search(joined)
    id_number = id_match.group(0) if id_match else ""

    last_name = line_below_label(lines, NATIONAL_PATTERNS["last_name"])
    if not last_name:
        last_name = next(
            (line for line in lines if NATIONAL_PATTERNS["caps_line"].fullmatch(line)), ""
        )
    given_names = line_below_label(lines, NATIONAL_PATTERNS["given_names"])
    middle_name = line_below_label(lines, NATIONAL_PATTERNS["middle_name"])

    dob_match = NATIONAL_PATTERNS["dob"].search(joined)
    dob = normalize_date(dob_match.group(0)) if dob_match else ""

    full_name = " ".join(part for part in (given_names, middle_name, last_name) if part).strip()

    return ExtractedInfo(
        full_name=full_name,
        dob=dob,
        id_number=id_number,
        id_type=IdType.NATIONAL_ID.value,
        confidence=FieldConfidence(
            full_name=_presence(full_name, 0.95, 0.4),
            dob=_presence(dob, 0.9, 0.4),
            id_number=_presence(id_number, 1.0, 0.3),
        ),
    )


# ========== PHILHEALTH ==========

PHILHEALTH_PATTERNS = {
    "id_number": re.compile(r"\b\d{2}-\d{9}-\d\b"),
    "name_line": re.compile(r"^[A-Z][A-Za-z'\-]+,\s*[A-Za-z]"),
    "dob": re.compile(
        r"\b(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\.?\s+(\d{1,2}),\s*(\d{4})\b",
        re.IGNORECASE
    ),
}


def parse_philhealth_id(text: str) -> ExtractedInfo:
    """Parse a PhilHealth ID ("LAST, Given M." name line, "Jan. 03, 1999" dates)"""
    lines = split_lines(text)
    joined = collapse_whitespace(text)

    id_match = PHILHEALTH_PATTERNS["id_number"].search(joined)
    id_number = id_match.group(0) if id_match else ""

    full_name = ""
    name_line = next((line for line in lines if PHILHEALTH_PATTERNS["name_line"].search(line)), None)
    if name_line:
        last_part, _, given_part = name_line.partition(",")
        if last_part.strip() and given_part.strip():
            full_name = collapse_whitespace(f"{given_part} {last_part}")
        else:
            full_name = name_line

    dob = ""
    dob_match = PHILHEALTH_PATTERNS["dob"].search(joined)
    if dob_match:
        month = MONTH_ABBREVIATIONS.get(dob_match.group(1).lower())
        if month:
            dob = f"{dob_match.group(3)}-{month}-{int(dob_match.group(2)):02d}"

    return ExtractedInfo(
        full_name=full_name,
        dob=dob,
        id_number=id_number,
        id_type=IdType.PHILHEALTH.value,
        confidence=FieldConfidence(
            full_name=_presence(full_name, 0.85, 0.3),
            dob=_presence(dob, 0.85, 0.3),
            id_number=_presence(id_number, 0.98, 0.4),
        ),
    )


# ========== UMID ==========

UMID_PATTERNS = {
    "crn": re.compile(r"CRN-?\s*(\d{4})-?\s*(\d{7})-?\s*(\d)", re.IGNORECASE),
    "surname": re.compile(r"surname", re.IGNORECASE),
    "given_name": re.compile(r"given\s+name", re.IGNORECASE),
    "middle_name": re.compile(r"middle\s+name", re.IGNORECASE),
    "dob_label": re.compile(r"date\s+of\s+birth", re.IGNORECASE),
    "dob_value": re.compile(r"(\d{4})[/\-](\d{2})[/\-](\d{2})"),
}


def _index_of(lines: List[str], pattern) -> int:
    return next((idx for idx, line in enumerate(lines) if pattern.search(line)), -1)


def parse_umid(text: str) -> ExtractedInfo:
    """Parse a UMID card (CRN number, stacked Surname/Given/Middle labels)"""
    lines = split_lines(text)
    joined = collapse_whitespace(text)

    id_number = ""
    crn = UMID_PATTERNS["crn"].search(joined)
    if crn:
        id_number = "CRN-{}-{}-{}".format(*crn.groups())

    surname_idx = _index_of(lines, UMID_PATTERNS["surname"])
    given_idx = _index_of(lines, UMID_PATTERNS["given_name"])
    middle_idx = _index_of(lines, UMID_PATTERNS["middle_name"])

    last_name = lines[surname_idx + 1] if 0 <= surname_idx < len(lines) - 1 else ""
    middle_name = lines[middle_idx + 1] if 0 <= middle_idx < len(lines) - 1 else ""

    given_names = ""
    if given_idx != -1:
        end = middle_idx if middle_idx > given_idx else len(lines)
        given_names = collapse_whitespace(" ".join(
            line for line in lines[given_idx + 1:end]
            if not UMID_PATTERNS["middle_name"].search(line)
        ))

    full_name = collapse_whitespace(" ".join(p for p in (given_names, middle_name, last_name) if p))

    dob = ""
    dob_idx = _index_of(lines, UMID_PATTERNS["dob_label"])
    if 0 <= dob_idx < len(lines) - 1:
        value = UMID_PATTERNS["dob_value"].search(lines[dob_idx + 1])
        if value:
            dob = "{}-{}-{}".format(*value.groups())

    return ExtractedInfo(
        full_name=full_name,
        dob=dob,
        id_number=id_number,
        id_type=IdType.UMID.value,
        confidence=FieldConfidence(
            full_name=_presence(full_name, 0.8, 0.3),
            dob=_presence(dob, 0.85, 0.3),
            id_number=_presence(id_number, 0.95, 0.4),
        ),
    )


# ========== DRIVER'S LICENSE ==========

LICENSE_PATTERNS = {
    "id_number": re.compile(r"N?\d{2,3}[-\s]?\d{2}[-\s]?\d{5,6}"),
    "comma_name": re.compile(r"([A-Z]{2,}(?:\s+[A-Z]{2,})*),\s*([A-Z]{2,}(?:\s+[A-Z]{2,})*)"),
    "caps_run": re.compile(r"\b([A-Z]{3,}(?:\s+[A-Z]{3,}){2,4})\b"),
    "after_labels": re.compile(
        r"(?:Last|First|Middle)\s*(?:Name|Nome)[^A-Z]*([A-Z]{3,}(?:\s+[A-Z]{3,}){2,4})",
        re.IGNORECASE
    ),
    "dob_full": re.compile(r"\b(\d{4})[/\-](\d{2})[/\-](\d{2})\b"),
    "dob_joined": re.compile(r"\b(\d{4})[/\-](\d{4})\b"),
}

LICENSE_HEADER_WORDS = re.compile(r"REPUBLIC|PHILIPPINES|TRANSPORTATION|LICENSE|PROFESSIONAL", re.IGNORECASE)
LICENSE_CAPS_SKIP = re.compile(
    r"REPUBLIC|PHILIPPINES|TRANSPORTATION|LICENSE|DRIVER|PROFESSIONAL|DEPARTMENT|OFFICE|NON-PROFESSIONAL",
    re.IGNORECASE
)


def _license_name(joined: str) -> str:
    comma = LICENSE_PATTERNS["comma_name"].search(joined)
    if comma:
        last_name, first_name = comma.group(1).strip(), comma.group(2).strip()
        if not LICENSE_HEADER_WORDS.search(last_name):
            return f"{first_name} {last_name}"

    for candidate in LICENSE_PATTERNS["caps_run"].findall(joined):
        if not LICENSE_CAPS_SKIP.search(candidate):
            return candidate

    after_labels = LICENSE_PATTERNS["after_labels"].search(joined)
    if after_labels:
        return after_labels.group(1)

    return ""


def parse_drivers_license(text: str) -> ExtractedInfo:
    """Parse an LTO driver's license"""
    joined = collapse_whitespace(text)

    id_number = ""
    id_match = LICENSE_PATTERNS["id_number"].search(joined)
    if id_match:
        digits = re.sub(r"\D", "", id_match.group(0))
        if len(digits) >= 10:
            id_number = f"N{digits[:2]}-{digits[2:4]}-{digits[4:]}"

    full_name = _license_name(joined)
    if full_name:
        # Leading single characters are OCR noise from the photo border
        full_name = re.sub(r"^[a-z]\s+", "", full_name, flags=re.IGNORECASE).strip()

    dob = ""
    full = LICENSE_PATTERNS["dob_full"].search(joined)
    if full:
        dob = "{}-{}-{}".format(*full.groups())
    if not dob:
        compact = LICENSE_PATTERNS["dob_joined"].search(joined)
        if compact:
            mmdd = compact.group(2)
            dob = f"{compact.group(1)}-{mmdd[:2]}-{mmdd[2:]}"
    if not dob:
        dob = pick_best_dob(joined)

    address = extract_address(text)
    full_name = collapse_whitespace(full_name)

    return ExtractedInfo(
        full_name=full_name,
        dob=dob,
        id_number=id_number,
        id_type=IdType.DRIVERS_LICENSE.value,
        address=address,
        confidence=FieldConfidence(
            full_name=_presence(full_name, 0.85, 0.3),
            dob=_presence(dob, 0.8, 0.3),
            id_number=_presence(id_number, 0.95, 0.3),
            address=_presence(address, 0.7, 0.2),
        ),
    )


# ========== SSS ID ==========

SSS_PATTERNS = {
    "id_number": re.compile(r"\d{2}-\d{7}-\d"),
    "bare_digits": re.compile(r"\b(\d{9,10})\b"),
    "comma_name": re.compile(r"([A-Z][A-Z']+),\s*([A-Z][A-Z'\s.]+)"),
    "caps_words": re.compile(r"\b([A-Z]{3,})\s+([A-Z]{3,})(?:\s+([A-Z]{3,}))?\b"),
    "before_id": re.compile(r"([A-Z]{2,}\s+[A-Z]{2,}(?:\s+[A-Z]{2,})?)\s*$"),
}

SSS_LABEL_WORDS = re.compile(
    r"REPUBLIC|PHILIPPINES|SOCIAL|SECURITY|SYSTEM|PROUD|FILIPINO|PRESIDENT", re.IGNORECASE
)
SSS_LINE_EXCLUDES = re.compile(
    r"REPUBLIC|PHILIPPINES|SOCIAL|SECURITY|SYSTEM|PRESIDENT|PROUD|FILIPINO|SSS|CORAZON|DE LA PAZ",
    re.IGNORECASE
)


def _sss_number(joined: str) -> str:
    match = SSS_PATTERNS["id_number"].search(joined)
    if match:
        return match.group(0)

    # OCR sometimes drops the dashes
    bare = SSS_PATTERNS["bare_digits"].search(joined)
    if bare:
        digits = bare.group(1)
        if len(digits) == 10:
            return f"{digits[:2]}-{digits[2:9]}-{digits[9:]}"
        return f"0{digits[:1]}-{digits[1:8]}-{digits[8:]}"
    return ""


def _sss_name(lines: List[str], joined: str) -> str:
    comma = SSS_PATTERNS["comma_name"].search(joined)
    if comma:
        return f"{comma.group(2).strip()} {comma.group(1).strip()}"

    for match in SSS_PATTERNS["caps_words"].finditer(joined):
        if not SSS_LABEL_WORDS.search(match.group(0)):
            return match.group(0)

    for line in lines:
        words = [re.sub(r"[^A-Za-z]", "", word) for word in line.split()]
        words = [word for word in words if len(word) >= 3]
        if 2 <= len(words) <= 4 and all(word.isupper() for word in words):
            candidate = " ".join(words)
            if not SSS_LINE_EXCLUDES.search(candidate):
                return candidate

    id_match = SSS_PATTERNS["id_number"].search(joined)
    if id_match:
        before = SSS_PATTERNS["before_id"].search(joined[:id_match.start()])
        if before:
            return before.group(1)

    return ""


def _trim_noise_words(name: str) -> str:
    """Drop 1-2 character OCR fragments from both ends of a name"""
    words = name.split()
    while len(words) > 2 and len(words[0]) <= 2:
        words.pop(0)
    while len(words) > 2 and len(words[-1]) <= 2:
        words.pop()
    return " ".join(words)


def parse_sss_id(text: str) -> ExtractedInfo:
    """Parse an SSS ID"""
    lines = split_lines(text)
    joined = collapse_whitespace(text)

    id_number = _sss_number(joined)
    full_name = _sss_name(lines, joined)
    if full_name:
        full_name = collapse_whitespace(_trim_noise_words(full_name))
    dob = pick_best_dob(joined)

    return ExtractedInfo(
        full_name=full_name,
        dob=dob,
        id_number=id_number,
        id_type=IdType.SSS.value,
        confidence=FieldConfidence(
            full_name=_presence(full_name, 0.85, 0.3),
            dob=_presence(dob, 0.8, 0.3),
            id_number=_presence(id_number, 0.95, 0.3),
        ),
    )


# ========== CITY ID / QC ID ==========

CITY_PATTERNS = {
    "qc_number": re.compile(r"QC-?\s*\d{6,}", re.IGNORECASE),
    "long_digits": re.compile(r"\b\d{8,}\b"),
    "comma_name": re.compile(r"([A-Z][A-Z']+),\s*([A-Z][A-Z'\s.]+)"),
}


def parse_city_id(text: str) -> ExtractedInfo:
    """Parse a city or barangay ID; also the fallback for unclassified cards"""
    lines = split_lines(text)
    joined = collapse_whitespace(text)

    id_number = ""
    qc = CITY_PATTERNS["qc_number"].search(joined)
    if qc:
        id_number = re.sub(r"\s", "", qc.group(0))
    else:
        digits = CITY_PATTERNS["long_digits"].search(joined)
        if digits:
            id_number = digits.group(0)

    comma = CITY_PATTERNS["comma_name"].search(joined)
    if comma:
        full_name = f"{comma.group(2).strip()} {comma.group(1).strip()}"
    else:
        full_name = pick_best_name_line(lines)
    full_name = collapse_whitespace(full_name)

    dob = pick_best_dob(joined)
    address = extract_address(text)

    return ExtractedInfo(
        full_name=full_name,
        dob=dob,
        id_number=id_number,
        id_type=IdType.CITY_ID.value,
        address=address,
        confidence=FieldConfidence(
            full_name=_presence(full_name, 0.75, 0.3),
            dob=_presence(dob, 0.7, 0.3),
            id_number=_presence(id_number, 0.8, 0.3),
            address=_presence(address, 0.7, 0.2),
        ),
    )


# ========== GENERIC FALLBACK ==========

def parse_generic(text: str) -> ExtractedInfo:
    """Best-effort parse for layouts without a dedicated parser"""
    lines = split_lines(text)
    joined = collapse_whitespace(text)

    full_name = pick_best_name_line(lines)
    dob = pick_best_dob(joined)
    id_number = pick_best_id_token(joined)

    return ExtractedInfo(
        full_name=full_name,
        dob=dob,
        id_number=id_number,
        id_type=IdType.UNKNOWN.value,
        confidence=FieldConfidence(
            full_name=_presence(full_name, 0.7, 0.3),
            dob=_presence(dob, 0.6, 0.2),
            id_number=_presence(id_number, 0.6, 0.2),
        ),
    )


PARSERS: Dict[IdType, Callable[[str], ExtractedInfo]] = {
    IdType.NATIONAL_ID: parse_national_id,
    IdType.PHILHEALTH: parse_philhealth_id,
    IdType.UMID: parse_umid,
    IdType.DRIVERS_LICENSE: parse_drivers_license,
    IdType.SSS: parse_sss_id,
    IdType.CITY_ID: parse_city_id,
    IdType.OTHER: parse_city_id,
}


def parse_text_by_id_type(text: str, id_type: Union[IdType, str, None]) -> ExtractedInfo:
    """Dispatch whole-card text to the parser for `id_type`, generic parser otherwise"""
    resolved = IdType.from_label(id_type)
    parser = PARSERS.get(resolved, parse_generic)
    logger.debug(f"Parsing text as {resolved.value if resolved else id_type!r} with {parser.__name__}")
    return parser(text or "")
