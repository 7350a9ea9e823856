# app/utils/validators.py
"""
Format checks and normalisation for plates, driver licenses, phones and names.
Checks return booleans; the services turn a False into a ValidationError.
"""

import re

_OLD_PLATE = re.compile(r"^[A-Z]{3}\d{4}$")        # ABC1234
_MERCOSUL_PLATE = re.compile(r"^[A-Z]{3}\d[A-Z]\d{2}$")   # ABC1D23


def _strip_plate(plate: str) -> str:
    return (plate or "").replace("-", "").replace(" ", "").upper()


def is_valid_plate(plate: str) -> bool:
    raw = _strip_plate(plate)
    return bool(_OLD_PLATE.match(raw) or _MERCOSUL_PLATE.match(raw))


def normalize_plate(plate: str) -> str:
    """'abc1234' → 'ABC-1234', 'abc 1d23' → 'ABC-1D23'. Unknown formats are only upper-cased."""
    raw = _strip_plate(plate)
    if _OLD_PLATE.match(raw) or _MERCOSUL_PLATE.match(raw):
        return f"{raw[:3]}-{raw[3:]}"
    return raw


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def normalize_license(number: str) -> str:
    return _digits(number)


def is_valid_license(number: str) -> bool:
    return len(_digits(number)) == 11


def is_valid_phone(phone: str) -> bool:
    return len(_digits(phone)) in (10, 11)


def normalize_phone(phone: str) -> str:
    """(XX) XXXXX-XXXX for mobiles, (XX) XXXX-XXXX for landlines."""
    digits = _digits(phone)
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return phone


def normalize_name(name: str) -> str:
    words = (name or "").strip().lower().split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words)


def clean_text(value):
    """Trim free text; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None
