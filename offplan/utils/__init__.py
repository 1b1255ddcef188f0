"""Utils package initialization."""

from offplan.utils.geo import parse_coordinate_from_address, parse_coordinates
from offplan.utils.html_cleaner import (
    clean_html_content,
    clean_property_description,
    extract_key_features,
    extract_location_highlights,
)
from offplan.utils.logging import SyncLogger, get_logger, setup_logging
from offplan.utils.text import normalize_key, normalize_payment_plans, parse_date, slugify

__all__ = [
    # Content
    "clean_html_content",
    "clean_property_description",
    "extract_key_features",
    "extract_location_highlights",
    # Geo
    "parse_coordinate_from_address",
    "parse_coordinates",
    # Text
    "slugify",
    "normalize_key",
    "parse_date",
    "normalize_payment_plans",
    # Logging
    "get_logger",
    "setup_logging",
    "SyncLogger",
]
