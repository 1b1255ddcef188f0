"""HTML content cleaning for upstream property text.

Upstream descriptions arrive as loosely formed HTML. These helpers turn them
into plain readable text and pull short highlights out of it. All of them
are pure and never raise on odd input.
"""

import re
from typing import Final, List, Optional

MIN_DESCRIPTION_LENGTH: Final[int] = 20
MAX_DESCRIPTION_LENGTH: Final[int] = 1500
ELLIPSIS: Final[str] = "..."
MAX_KEY_FEATURES: Final[int] = 5
MAX_LOCATION_HIGHLIGHTS: Final[int] = 6
MAX_FEATURE_LENGTH: Final[int] = 50

HTML_ENTITIES: Final = (
    ("&nbsp;", " "),
    ("&ndash;", "–"),
    ("&mdash;", "—"),
    ("&ldquo;", '"'),
    ("&rdquo;", '"'),
    ("&lsquo;", "'"),
    ("&rsquo;", "'"),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&ccedil;", "ç"),
)

LANDMARKS: Final = (
    "Dubai Mall",
    "Burj Khalifa",
    "Downtown Dubai",
    "Business Bay",
    "Dubai Marina",
    "Palm Jumeirah",
    "JBR",
    "DIFC",
    "Sheikh Zayed Road",
    "Dubai International Airport",
    "Al Maktoum Airport",
    "Expo City",
    "Jumeirah Beach",
    "Dubai South",
    "Al Wasl",
    "Creek Harbour",
)

_SCRIPT_BLOCK = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_BLOCK = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")
_TIME_TO_PLACE = re.compile(r"(\d+)\s*minutes?\s*[–—-]\s*([^.]+)", re.IGNORECASE)
_TIME_PREFIX = re.compile(r"^\d+\s*minutes?\s*[–—-]\s*", re.IGNORECASE)
_ROOM_COUNT = re.compile(r"(\d+)\s*(bedroom|bathroom|bhk|br)", re.IGNORECASE)


def clean_html_content(html_content: Optional[str]) -> str:
    """Strip markup from ``html_content`` and collapse whitespace."""
    if not html_content:
        return ""

    cleaned = _SCRIPT_BLOCK.sub("", html_content)
    cleaned = _STYLE_BLOCK.sub("", cleaned)
    for entity, replacement in HTML_ENTITIES:
        cleaned = cleaned.replace(entity, replacement)
    cleaned = _TAG.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def clean_property_description(description: Optional[str]) -> str:
    """Clean a listing description, dropping noise and capping its length."""
    cleaned = clean_html_content(description)
    if len(cleaned) < MIN_DESCRIPTION_LENGTH:
        return ""
    if len(cleaned) > MAX_DESCRIPTION_LENGTH:
        return cleaned[:MAX_DESCRIPTION_LENGTH].strip() + ELLIPSIS
    return cleaned


def extract_key_features(description: Optional[str]) -> List[str]:
    """Pull short travel-time and room-count phrases out of a description."""
    cleaned = clean_html_content(description)
    if not cleaned:
        return []

    features: List[str] = []
    for match in _TIME_TO_PLACE.finditer(cleaned):
        place = _TIME_PREFIX.sub("", match.group(0)).strip()
        if place and len(place) < MAX_FEATURE_LENGTH and place not in features:
            features.append(place)

    for match in _ROOM_COUNT.finditer(cleaned):
        phrase = match.group(0).strip()
        lowered = phrase.lower()
        if not any(lowered in feature.lower() for feature in features):
            features.append(phrase)

    return features[:MAX_KEY_FEATURES]


def extract_location_highlights(description: Optional[str]) -> List[str]:
    """Return known landmarks mentioned in a description.

    A phrase such as ``"5 minutes to Dubai Mall"`` wins over the bare landmark.
    """
    cleaned = clean_html_content(description)
    if not cleaned:
        return []

    highlights: List[str] = []
    for landmark in LANDMARKS:
        escaped = re.escape(landmark)
        if not re.search(rf"\b{escaped}\b", cleaned, re.IGNORECASE):
            continue
        context = re.search(rf"\d+\s*minutes?[^.]*?{escaped}", cleaned, re.IGNORECASE)
        highlights.append(context.group(0).strip() if context else landmark)

    return highlights[:MAX_LOCATION_HIGHLIGHTS]
