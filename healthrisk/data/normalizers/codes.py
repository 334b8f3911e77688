"""
Disease code surface forms

A disease may arrive as "D01", "d01", "1", "01" or "d1". These helpers expand
a raw value into every spelling that may be stored as a code.
"""
import re
from typing import List, Optional

DIGITS_RE = re.compile(r"^[0-9]+$")
PREFIXED_RE = re.compile(r"^[dD]([0-9]+)$")

# Upper bound of the integer key columns (province_no, region_id, disease_id)
INT4_MAX = 2**31 - 1


def is_digits(value: str) -> bool:
    return bool(DIGITS_RE.fullmatch(value))


def key_number(value: str) -> Optional[int]:
    """Integer key of an all-digit value; None when it exceeds the int4 key columns."""
    number = int(value)
    return number if number <= INT4_MAX else None


def padded_number(value: str) -> Optional[str]:
    """'1', '01', 'd1', 'D001' -> '01'; anything else -> None."""
    match = PREFIXED_RE.fullmatch(value)
    digits = match.group(1) if match else (value if is_digits(value) else None)
    if digits is None:
        return None
    return str(int(digits)).zfill(2)


def disease_candidates(raw: Optional[str], include_bare_digits: bool = False) -> List[str]:
    """
    Candidate spellings for a disease identifier

    Args:
        raw: user supplied value
        include_bare_digits: also add the padded number without prefix ("01"),
            as fact-table mappings sometimes store it that way

    Returns:
        Distinct candidates in insertion order, raw value first; empty for
        blank input
    """
    value = (raw or "").strip()
    if not value:
        return []

    candidates = [value, value.upper(), value.lower()]

    number = padded_number(value)
    if number is not None:
        candidates += [f"D{number}", f"d{number}"]
        if include_bare_digits:
            candidates.append(number)

    return list(dict.fromkeys(candidates))
