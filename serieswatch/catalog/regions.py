"""
Audible region information and identifier helpers.

This module provides:
- Region code to domain suffix mapping
- ASIN validation
- Series sequence cleanup
"""

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us"

# =============================================================================
# Region Information
# =============================================================================


@dataclass(frozen=True)
class RegionInfo:
    """Information about an Audible marketplace region."""

    code: str
    tld: str
    name: str

    @property
    def domain(self) -> str:
        """Storefront domain, e.g. audible.co.uk."""
        return f"audible{self.tld}"


# Known Audible regions
REGIONS: dict[str, RegionInfo] = {
    "us": RegionInfo(code="us", tld=".com", name="United States"),
    "ca": RegionInfo(code="ca", tld=".ca", name="Canada"),
    "uk": RegionInfo(code="uk", tld=".co.uk", name="United Kingdom"),
    "au": RegionInfo(code="au", tld=".com.au", name="Australia"),
    "fr": RegionInfo(code="fr", tld=".fr", name="France"),
    "de": RegionInfo(code="de", tld=".de", name="Germany"),
    "jp": RegionInfo(code="jp", tld=".co.jp", name="Japan"),
    "it": RegionInfo(code="it", tld=".it", name="Italy"),
    "in": RegionInfo(code="in", tld=".in", name="India"),
    "es": RegionInfo(code="es", tld=".es", name="Spain"),
}

_PROVIDER_REGION_RE = re.compile(r"^audible\.(\w+)$")


def get_region(region: str | None) -> RegionInfo | None:
    """
    Get region information for a region code.

    Args:
        region: Region code (us, uk, de, ...)

    Returns:
        RegionInfo or None if unknown
    """
    if not region:
        return None
    return REGIONS.get(region.lower())


def normalize_region(region: str | None) -> str:
    """
    Return a known region code, downgrading anything else to "us".

    Args:
        region: Region code, possibly empty or unknown

    Returns:
        A key of REGIONS
    """
    info = get_region(region)
    if info is None:
        if region:
            logger.warning("Invalid region %r, defaulting to %s", region, DEFAULT_REGION)
        return DEFAULT_REGION
    return info.code


def get_region_tld(region: str | None) -> str:
    """Domain suffix for a region, e.g. "de" -> ".de"; unknown regions use the us suffix."""
    return REGIONS[normalize_region(region)].tld


def list_regions() -> list[RegionInfo]:
    """Get list of all known regions."""
    return list(REGIONS.values())


def region_from_provider(provider: str | None) -> str | None:
    """
    Extract a region from a library metadata provider tag.

    Audiobookshelf libraries store their match provider as e.g. "audible.uk".

    Args:
        provider: Provider tag

    Returns:
        Region code or None if the tag does not name an Audible region
    """
    if not provider:
        return None
    match = _PROVIDER_REGION_RE.match(provider)
    if not match:
        return None
    return match.group(1)


# =============================================================================
# Identifiers
# =============================================================================

ASIN_REGEX = re.compile(r"^[A-Z0-9]{10}$", re.IGNORECASE)

# First integer or decimal number, including leading-dot decimals like ".5"
_SEQUENCE_NUMBER_RE = re.compile(r"\.\d+|\d+(?:\.\d+)?")


def is_valid_asin(value: str | None) -> bool:
    """Check that a value looks like an Audible ASIN (10 alphanumerics)."""
    if not value:
        return False
    return bool(ASIN_REGEX.match(value))


def clean_series_sequence(series_name: str | None, sequence: str | None) -> str:
    """
    Reduce a raw series position to its number.

    Audible sometimes sends positions like "Book 1" or "2, Dramatized Adaptation".
    The first number found is kept; a position without any number is
    returned unchanged.

    Args:
        series_name: Series name (for logging only)
        sequence: Raw position string

    Returns:
        Cleaned position, or "" when no position was given
    """
    if not sequence:
        return ""
    match = _SEQUENCE_NUMBER_RE.search(sequence)
    cleaned = match.group(0) if match else sequence
    if cleaned != sequence:
        logger.debug('Series "%s" sequence was cleaned from "%s" to "%s"', series_name, sequence, cleaned)
    return cleaned
