from datetime import datetime

from offplan.utils.geo import parse_coordinate_from_address, parse_coordinates
from offplan.utils.text import (
    normalize_key,
    normalize_payment_plans,
    parse_date,
    parse_float,
    parse_int,
    slugify,
)


def test_coordinate_inside_region():
    assert parse_coordinate_from_address("25.2,55.3", "lat") == 25.2
    assert parse_coordinate_from_address("25.2, 55.3", "lng") == 55.3


def test_coordinate_outside_region_is_absent():
    assert parse_coordinate_from_address("40.7,-74.0", "lat") is None
    assert parse_coordinate_from_address("40.7,-74.0", "lng") is None


def test_coordinate_from_free_text_address_is_absent():
    assert parse_coordinate_from_address("not a coord", "lat") is None
    assert parse_coordinate_from_address("Business Bay, Dubai", "lat") is None
    assert parse_coordinate_from_address(None, "lat") is None
    assert parse_coordinate_from_address(25.2, "lat") is None


def test_parse_coordinates_trims_whitespace():
    assert parse_coordinates("  24.5,54.4 ") == (24.5, 54.4)


def test_slugify():
    assert slugify("  Sobha Hartland  II ") == "sobha-hartland-ii"
    assert slugify("Emaar / Creek -- Views!") == "emaar-creek-views"
    assert slugify(None) == ""


def test_normalize_key():
    assert normalize_key("Under Construction") == "under_construction"
    assert normalize_key(" sold-out ") == "sold_out"
    assert normalize_key(["Ready", "Other"]) == "ready"
    assert normalize_key(None) == ""
    assert normalize_key(3) == "3"


def test_parse_date_variants():
    assert parse_date("2027-06-30") == datetime(2027, 6, 30)
    assert parse_date("2027-06-30T00:00:00Z").year == 2027
    assert parse_date(0) is None
    assert parse_date("Q4 sometime") is None
    assert parse_date({"year": 2027}) is None


def test_normalize_payment_plans():
    plans = [
        "60/40",
        {"name": "Post Handover", "description": "50% after handover"},
        {"description": "Flexible"},
        {},
        7,
    ]
    assert normalize_payment_plans(plans) == [
        "60/40",
        "Post Handover: 50% after handover",
        "Flexible: Flexible",
        "Payment Plan",
        "7",
    ]
    assert normalize_payment_plans("60/40") == []


def test_parse_float_and_int_drop_non_finite_values():
    for value in ("NaN", "nan", "Infinity", "-inf", 1e400, float("nan")):
        assert parse_float(value) is None
        assert parse_int(value) is None

    assert parse_float("12.5") == 12.5
    assert parse_int("3.9") == 3
    assert parse_int("abc") is None
    assert parse_int(True) is None
