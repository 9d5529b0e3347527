"""
Phone number normalization for legacy records.

Legacy exports hold free-text numbers ("(555) 123-4567", "555.123.4567 cell",
"1234567"). Normalization is total: every input yields a string or ``None``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")

DEFAULT_COUNTRY_CODE = "1"
DOMESTIC_TRUNK_DIGIT = "1"
MIN_DIGITS = 7
MAX_DIGITS = 15


@dataclass(frozen=True)
class PhoneResult:
    """Normalized phone value plus review flags."""

    value: str
    digits: str
    needs_review: bool = False
    warning: str | None = None


def _strip_digits(value: object | None) -> str:
    if value is None:
        return ""
    try:
        return _NON_DIGITS.sub("", str(value))
    except Exception:  # pragma: no cover - str() of exotic objects
        return ""


def normalize_phone(value: object | None, *, country_code: str = DEFAULT_COUNTRY_CODE) -> PhoneResult | None:
    """
    Normalize a free-text phone number.

    - 10 digits: domestic, prefixed with ``+<country_code>``
    - 11 digits starting with the trunk digit: prefixed with ``+``
    - 7 digits: returned unchanged and flagged (area code missing)
    - any other digit count: bare digits with a warning
    - no digits: ``None``
    """

    digits = _strip_digits(value)
    if not digits:
        return None

    if len(digits) == 10:
        return PhoneResult(value=f"+{country_code}{digits}", digits=digits)
    if len(digits) == 11 and digits.startswith(DOMESTIC_TRUNK_DIGIT):
        return PhoneResult(value=f"+{digits}", digits=digits)
    if len(digits) == MIN_DIGITS:
        logger.warning("Phone number %s flagged for review: missing area code", digits)
        return PhoneResult(
            value=digits,
            digits=digits,
            needs_review=True,
            warning="Phone number may be missing area code",
        )
    if len(digits) < MIN_DIGITS:
        warning = "Phone number too short"
    elif len(digits) > MAX_DIGITS:
        warning = "Phone number too long"
    else:
        warning = f"Unexpected phone number length ({len(digits)} digits)"
    logger.warning("Phone number %s flagged for review: %s", digits, warning)
    return PhoneResult(value=digits, digits=digits, needs_review=True, warning=warning)


def normalize_phone_number(value: object | None, *, country_code: str = DEFAULT_COUNTRY_CODE) -> str | None:
    """Return only the normalized string form of :func:`normalize_phone`."""

    result = normalize_phone(value, country_code=country_code)
    return result.value if result else None
