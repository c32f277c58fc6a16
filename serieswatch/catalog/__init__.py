"""
Catalog providers: where the list of books in a series comes from.
"""

from .audible import AudibleProvider
from .models import BookSeries, CatalogBook, ProviderInfo, SeriesInfo
from .provider import (
    PROVIDERS,
    CatalogProvider,
    UnknownProviderError,
    describe_provider,
    get_provider_class,
)
from .regions import (
    DEFAULT_REGION,
    REGIONS,
    clean_series_sequence,
    get_region_tld,
    is_valid_asin,
    normalize_region,
    region_from_provider,
)

__all__ = [
    # Providers
    "CatalogProvider",
    "AudibleProvider",
    "PROVIDERS",
    "UnknownProviderError",
    "get_provider_class",
    "describe_provider",
    # Models
    "CatalogBook",
    "BookSeries",
    "SeriesInfo",
    "ProviderInfo",
    # Regions & identifiers
    "DEFAULT_REGION",
    "REGIONS",
    "get_region_tld",
    "normalize_region",
    "region_from_provider",
    "is_valid_asin",
    "clean_series_sequence",
]
