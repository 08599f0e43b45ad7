"""
Field Normalizers
Shared text heuristics for turning noisy OCR output into clean field values
"""
import re
from typing import List, Optional, Pattern


MONTHS = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december"
]

MONTH_ABBREVIATIONS = {name[:3]: f"{idx + 1:02d}" for idx, name in enumerate(MONTHS)}

_MONTH_ALTERNATION = "|".join(MONTHS + ["sept"] + [m[:3] for m in MONTHS])

# "January 3 1999", "Jan. 3, 1999", "SEPT 12 1988"
MONTH_NAME_DATE = re.compile(
    rf"\b({_MONTH_ALTERNATION})\.?\s+(\d{{1,2}}),?\s+(\d{{4}})\b",
    re.IGNORECASE
)

# "12/31/1999", "1-2-99" (taken positionally as month, day, year)
NUMERIC_DATE = re.compile(r"\b(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})\b")

# Lines that are themselves field labels and must not be read as values
LABEL_LINE = re.compile(
    r"Apelyido|Given|Petsa|Date|Kapanganakan|Birth|\bID\b|Numero",
    re.IGNORECASE
)

NAME_LABEL_WORDS = re.compile(
    r"name\b|surname\b|given\b|middle\b|birth\b|date\b|sex\b|gender\b",
    re.IGNORECASE
)

NATIONAL_ID_NUMBER = re.compile(r"\b\d{4}\s*-\s*\d{4}\s*-\s*\d{4}\s*-\s*\d{4}\b")

ROI_NAME_LABELS = re.compile(
    r"(Gitnang\s*Apelyido|Apelyido|Last\s*Name|Mga\s*Pangalan|Given\s*Names|"
    r"Middle\s*Name|Petsa\s*ng\s*Kapanganakan|Date\s*of\s*Birth)",
    re.IGNORECASE
)

ROI_NAME_DATE_FRAGMENT = re.compile(
    r"(January|February|March|April|May|June|July|August|September|October|November|December)"
    r"\s+\d{1,2},?\s+\d{4}",
    re.IGNORECASE
)

ADDRESS_LABEL = re.compile(r"^address|\baddress\s*:", re.IGNORECASE)
ADDRESS_NOISE = re.compile(r"(name|birth|sex|date|id|number|license|expiry)", re.IGNORECASE)
ADDRESS_HINT = re.compile(
    r"(brgy|barangay|street|st\.|ave|avenue|city|metro|manila|quezon)",
    re.IGNORECASE
)


def split_lines(text: str) -> List[str]:
    """Split OCR output into trimmed, non-empty lines"""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def normalize_date(date_str: Optional[str]) -> str:
    """
    Normalize a date string to YYYY-MM-DD.

    Understands full month names, abbreviated months (with or without a period)
    and numeric M/D/Y forms. Two-digit years are expanded with a "20" prefix.
    Anything else yields an empty string.
    """
    if not date_str:
        return ""

    cleaned = collapse_whitespace(date_str.replace(",", " ")).lower()

    match = MONTH_NAME_DATE.search(cleaned)
    if match:
        month = MONTH_ABBREVIATIONS.get(match.group(1)[:3])
        return f"{match.group(3)}-{month}-{int(match.group(2)):02d}"

    match = NUMERIC_DATE.search(cleaned)
    if match:
        month, day, year = match.groups()
        if len(year) == 2:
            year = f"20{year}"
        elif len(year) == 3:
            return ""
        return f"{year}-{int(month):02d}-{int(day):02d}"

    return ""


def extract_dob_from_text(text: Optional[str]) -> str:
    """Read a date of birth out of a cropped DOB region"""
    return normalize_date(text)


def line_below_label(
    lines: List[str], label: Pattern, stop: Pattern = LABEL_LINE
) -> str:
    """
    Return the line right after the first line matching `label`,
    unless that line is itself another label.
    """
    for idx, line in enumerate(lines):
        if label.search(line):
            if idx + 1 < len(lines):
                candidate = lines[idx + 1].strip()
                if not stop.search(candidate):
                    return candidate
            return ""
    return ""


def is_likely_name_line(line: str) -> bool:
    """Whether a line looks like a person's name rather than a label or noise"""
    trimmed = line.strip()
    if len(trimmed) < 5:
        return False

    if len(trimmed.split()) < 2:
        return False

    letters = len(re.sub(r"[^A-Za-z\s]", "", trimmed))
    if letters / max(len(trimmed), 1) < 0.6:
        return False

    if NAME_LABEL_WORDS.search(trimmed):
        return False

    return True


def pick_best_name_line(lines: List[str]) -> str:
    """Longest line that passes the name heuristic"""
    candidates = [line.strip() for line in lines if is_likely_name_line(line)]
    if not candidates:
        return ""
    return max(candidates, key=len)


def pick_best_dob(text: str) -> str:
    """First normalizable date in the text, numeric forms first"""
    joined = collapse_whitespace(text)

    numeric = NUMERIC_DATE.search(joined)
    if numeric:
        normalized = normalize_date(numeric.group(0))
        if normalized:
            return normalized

    named = MONTH_NAME_DATE.search(joined)
    if named:
        normalized = normalize_date(named.group(0))
        if normalized:
            return normalized

    return ""


def pick_best_id_token(text: str) -> str:
    """Longest ID-looking token: 6+ chars, has a digit, mostly alphanumeric or '-'"""
    candidates = []
    for token in (text or "").split():
        if len(token) < 6:
            continue
        if not re.search(r"\d", token):
            continue
        cleaned = re.sub(r"[^A-Za-z0-9\-]", "", token)
        if len(cleaned) / len(token) < 0.7:
            continue
        candidates.append(token)

    if not candidates:
        return ""

    best = max(candidates, key=len)
    return re.sub(r"[.,]+$", "", best)


def extract_national_id_number(text: Optional[str]) -> str:
    """
    Recover a PhilSys number (####-####-####-####) from noisy OCR text.
    O is read as 0 and I/l as 1. Returns "" unless exactly 16 digits result.
    """
    if not text:
        return ""

    cleaned = text.replace("O", "0")
    cleaned = re.sub(r"[Il]", "1", cleaned)
    cleaned = collapse_whitespace(cleaned)

    match = NATIONAL_ID_NUMBER.search(cleaned)
    if not match:
        return ""

    digits = re.sub(r"\D", "", match.group(0))
    if len(digits) != 16:
        return ""

    return "-".join(digits[i:i + 4] for i in range(0, 16, 4))


def clean_roi_name(text: Optional[str]) -> str:
    """Strip label words and leaked dates from a cropped name region"""
    if not text:
        return ""
    cleaned = collapse_whitespace(text)
    cleaned = ROI_NAME_LABELS.sub(" ", cleaned)
    cleaned = ROI_NAME_DATE_FRAGMENT.sub(" ", cleaned)
    return collapse_whitespace(cleaned)


def is_reasonable_roi_name(value: Optional[str]) -> bool:
    """An ROI name is trusted only if it is long enough, multi-token and not a label"""
    trimmed = (value or "").strip()
    if len(trimmed) < 5:
        return False
    if "name" in trimmed.lower():
        return False
    return bool(re.search(r"\s", trimmed))


def extract_address(text: str) -> str:
    """Address lines following an ADDRESS label, or the first locality-looking line"""
    lines = split_lines(text)

    for idx, line in enumerate(lines):
        if ADDRESS_LABEL.search(line):
            address_lines = [
                candidate for candidate in lines[idx + 1:idx + 4]
                if not ADDRESS_NOISE.search(candidate)
            ]
            if address_lines:
                return collapse_whitespace(", ".join(address_lines))
            break

    for line in lines:
        if ADDRESS_HINT.search(line):
            return line

    return ""
