import math
import re
from datetime import datetime, timezone
from typing import Any, Final, List, Optional

_NON_KEY_CHARS: Final = re.compile(r"[^a-z0-9]+")
_WHITESPACE: Final = re.compile(r"\s+")
_NON_WORD: Final = re.compile(r"[^\w\-]+")
_DASH_RUN: Final = re.compile(r"-{2,}")

DEFAULT_PAYMENT_PLAN_NAME: Final[str] = "Payment Plan"


def slugify(text: Any) -> str:
    """Lowercase, dash-separated slug built from word characters only."""
    if text is None:
        return ""
    slug = str(text).lower().strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = _NON_WORD.sub("", slug)
    slug = _DASH_RUN.sub("-", slug)
    return slug.strip("-")


def normalize_key(value: Any) -> str:
    """Collapse a free-text upstream value into a lookup key like ``sold_out``.

    Lists use their first string element, ``None`` maps to an empty key.
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        if not value or not isinstance(value[0], str):
            return ""
        value = value[0]
    key = _NON_KEY_CHARS.sub("_", str(value).lower().strip())
    return key.strip("_")


def parse_date(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Upstream numeric dates are epoch milliseconds.
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            pass
        for fmt in ("%Y-%m-%d %H:%M:%S", "%Y/%m/%d", "%d-%m-%Y", "%d/%m/%Y", "%Y-%m"):
            try:
                return datetime.strptime(raw, fmt)
            except ValueError:
                continue
    return None


def parse_float(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    # NaN and infinities carry no usable value.
    return number if math.isfinite(number) else None


def parse_int(value: Any) -> Optional[int]:
    number = parse_float(value)
    if number is None:
        return None
    return int(number)


def normalize_payment_plans(plans: Any) -> List[str]:
    if not plans or not isinstance(plans, list):
        return []

    normalized = []
    for plan in plans:
        if isinstance(plan, str):
            normalized.append(plan)
        elif isinstance(plan, dict):
            description = plan.get("description") or ""
            name = plan.get("name") or description or DEFAULT_PAYMENT_PLAN_NAME
            normalized.append(f"{name}: {description}" if description else name)
        elif plan is not None:
            normalized.append(str(plan))
    return normalized


def string_list(values: Any) -> List[str]:
    """Coerce an upstream tag collection into a list of display strings."""
    if not values or not isinstance(values, list):
        return []
    result = []
    for value in values:
        if isinstance(value, str):
            result.append(value)
        elif isinstance(value, dict):
            label = value.get("name") or value.get("title")
            if label:
                result.append(str(label))
        elif value is not None:
            result.append(str(value))
    return result
