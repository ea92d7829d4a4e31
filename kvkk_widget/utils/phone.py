"""
Phone number normalization.

Converts free-form Turkish phone numbers into the 10-digit national form
used as the lookup key by the cari directory service.

Malformed input is reported as INVALID_PHONE and never coerced into a
plausible-looking number.
"""

import re
from typing import Optional

COUNTRY_CODE = "90"
INTERNATIONAL_PREFIX = "00"
NATIONAL_LENGTH = 10

# Sentinel returned for input that matches no recognized shape
INVALID_PHONE = None

# ASCII only: other scripts' digits are not phone digits
_ALLOWED_INPUT = re.compile(r"^\+?[\d\s().\-/]+$", re.ASCII)
_NON_DIGIT = re.compile(r"\D", re.ASCII)


def normalize_phone(raw: object) -> Optional[str]:
    """
    Normalize a phone number to its 10-digit national form.

    Recognized shapes (separators removed):
        5321234567        national number
        05321234567       trunk prefix
        905321234567      country code
        +905321234567     international, "+" form
        00905321234567    international, "00" form

    Args:
        raw: Phone number as typed by an operator or sent by the host.

    Returns:
        The national number, or INVALID_PHONE.
    """
    if not isinstance(raw, str):
        return INVALID_PHONE

    candidate = raw.strip()
    if not candidate or not _ALLOWED_INPUT.match(candidate):
        return INVALID_PHONE

    digits = _NON_DIGIT.sub("", candidate)
    national = _strip_prefix(digits, international=candidate.startswith("+"))

    if national is None or len(national) != NATIONAL_LENGTH:
        return INVALID_PHONE

    # National numbers never start with the trunk or special-service digit
    if national[0] in "01":
        return INVALID_PHONE

    return national


def _strip_prefix(digits: str, *, international: bool) -> Optional[str]:
    if international:
        if digits.startswith(COUNTRY_CODE):
            return digits[len(COUNTRY_CODE):]
        return None

    length = len(digits)

    if length == NATIONAL_LENGTH:
        return digits

    if length == NATIONAL_LENGTH + 1 and digits.startswith("0"):
        return digits[1:]

    if length == NATIONAL_LENGTH + 2 and digits.startswith(COUNTRY_CODE):
        return digits[2:]

    intl = INTERNATIONAL_PREFIX + COUNTRY_CODE
    if length == NATIONAL_LENGTH + 4 and digits.startswith(intl):
        return digits[4:]

    return None
