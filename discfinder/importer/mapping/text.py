"""
Free-text heuristics for legacy found-disc descriptions.

Legacy rows carry a single ``Description`` such as "Innova Destroyer Star red
#12345". Brand, mold and color are pulled out with fixed patterns. The
heuristics are lossy on purpose and never fail: a missing brand comes back
as :data:`UNKNOWN`, a missing mold or color as ``None``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

UNKNOWN = "Unknown"

# Anchored at the start of the description; whitespace must follow the brand.
KNOWN_BRAND_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(rf"^({pattern})\s+", re.IGNORECASE)
    for pattern in (
        r"Innova",
        r"Discraft",
        r"Dynamic\s*Disc?s?",
        r"Latitude\s*64|Lat64",
        r"Westside",
        r"MVP",
        r"Axiom",
        r"Prodigy",
        r"Discmania",
        r"Gateway",
        r"Millennium",
        r"Legacy",
        r"Vibram",
    )
)

COLOR_VOCABULARY = (
    "red",
    "blue",
    "green",
    "yellow",
    "orange",
    "purple",
    "pink",
    "white",
    "black",
    "clear",
    "grey",
    "gray",
)
_COLOR_PATTERN = re.compile(r"\b(" + "|".join(COLOR_VOCABULARY) + r")\b", re.IGNORECASE)
_MOLD_TOKEN = re.compile(r"^([A-Za-z0-9\-\s]+)")
_PDGA_PATTERN = re.compile(r"#?\s*(\d{4,6})")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class BrandMold:
    brand: str
    mold: str | None


@dataclass(frozen=True)
class DiscDescriptor:
    """Structured view of a free-text disc description."""

    brand: str
    mold: str | None
    color: str


def clean_string(value: object | None) -> str | None:
    """Strip whitespace; blank values become ``None``."""

    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_int(value: object | None) -> int | None:
    text = clean_string(value)
    if text is None:
        return None
    try:
        return int(float(text.replace(",", "")))
    except (TypeError, ValueError):
        return None


def extract_brand_and_mold(description: object | None, mold: object | None = None) -> BrandMold:
    """
    Pull brand and mold out of a description.

    A known brand anchored at the start wins and the first token after it is
    the mold. Otherwise the first token is taken as the brand and the second
    as the mold. An explicit ``mold`` always takes precedence over extraction.
    """

    explicit_mold = clean_string(mold)
    text = clean_string(description)
    if text is None:
        return BrandMold(brand=UNKNOWN, mold=explicit_mold)

    for pattern in KNOWN_BRAND_PATTERNS:
        match = pattern.match(text)
        if match is None:
            continue
        extracted_mold = explicit_mold
        if extracted_mold is None:
            remaining = text[match.end() :].strip()
            mold_match = _MOLD_TOKEN.match(remaining)
            if mold_match:
                tokens = mold_match.group(1).split()
                extracted_mold = tokens[0] if tokens else None
        return BrandMold(brand=match.group(1), mold=extracted_mold)

    words = _WHITESPACE.split(text)
    brand = words[0] if words and words[0] else UNKNOWN
    extracted_mold = explicit_mold
    if extracted_mold is None and len(words) > 1:
        extracted_mold = words[1] or None
    return BrandMold(brand=brand, mold=extracted_mold)


def extract_color(description: object | None) -> str | None:
    """Return the first vocabulary color found anywhere in the text."""

    text = clean_string(description)
    if text is None:
        return None
    match = _COLOR_PATTERN.search(text)
    return match.group(1) if match else None


def describe_disc(description: object | None, mold: object | None = None) -> DiscDescriptor:
    brand_mold = extract_brand_and_mold(description, mold)
    return DiscDescriptor(
        brand=brand_mold.brand,
        mold=brand_mold.mold,
        color=extract_color(description) or UNKNOWN,
    )


def extract_pdga_number(text: object | None) -> int | None:
    """Find a 4-6 digit membership number, optionally prefixed with ``#``."""

    value = clean_string(text)
    if value is None:
        return None
    match = _PDGA_PATTERN.search(value)
    return int(match.group(1)) if match else None
