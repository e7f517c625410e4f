"""Advisory Rule Engine — fragment selection, ordering and tolerance.

Tests:
    - Temperature bands: boundaries belong to the upper band, exactly one fires
    - Humidity/wind thresholds are strict (> not >=)
    - Description keywords match case-insensitively and independently
    - Daylight rule fires under 10 hours; malformed times skip silently
    - Full sentences for the two reference scenarios
"""

import pytest

from travel_advisor.core.advisory_rules import (
    HOT_FRAGMENT, HUMIDITY_FRAGMENT, SHORT_DAYLIGHT_FRAGMENT, WIND_FRAGMENT,
    build_advisory, daylight_fragment, humidity_fragment, keyword_fragments,
    temperature_fragment, wind_fragment,
)
from travel_advisor.core.snapshots import AdvisorySnapshot


def snapshot(
    temperature=20.0, humidity=50, wind_speed=2.0, description="few clouds",
    sunrise="06:00 AM", sunset="07:00 PM",
) -> AdvisorySnapshot:
    return AdvisorySnapshot(
        description=description, temperature=temperature, feels_like=temperature,
        humidity=humidity, wind_speed=wind_speed, sunrise=sunrise, sunset=sunset,
    )


@pytest.mark.parametrize("temperature, expected_start", [
    (-10, "Very cold weather"),
    (4.9, "Very cold weather"),
    (5, "Cold conditions"),
    (14.9, "Cold conditions"),
    (15, "Pleasant temperature"),
    (24.9, "Pleasant temperature"),
    (25, "Warm weather"),
    (31.9, "Warm weather"),
    (32, "Very hot weather"),
    (45, "Very hot weather"),
])
def test_temperature_bands(temperature, expected_start):
    assert temperature_fragment(temperature).startswith(expected_start)


def test_hot_band_text():
    assert temperature_fragment(40) == HOT_FRAGMENT


def test_humidity_threshold_is_strict():
    assert humidity_fragment(70) is None
    assert humidity_fragment(71) == HUMIDITY_FRAGMENT


def test_wind_threshold_is_strict():
    assert wind_fragment(8.0) is None
    assert wind_fragment(8.1) == WIND_FRAGMENT


def test_keywords_are_case_insensitive_and_independent():
    fragments = keyword_fragments("Thunderstorm with RAIN, later Snow")
    assert fragments == [
        "Carry an umbrella.",
        "Snow conditions. Travel carefully.",
        "Severe weather warning. Limit outdoor activity.",
    ]


def test_missing_description_adds_nothing():
    assert keyword_fragments(None) == []
    assert keyword_fragments("") == []


def test_daylight_under_ten_hours_warns():
    assert daylight_fragment("08:00 AM", "05:59 PM") == SHORT_DAYLIGHT_FRAGMENT


def test_daylight_of_exactly_ten_hours_is_fine():
    assert daylight_fragment("08:00 AM", "06:00 PM") is None


@pytest.mark.parametrize("sunrise, sunset", [
    ("", "06:00 PM"),
    (None, None),
    ("Mon, 01 Jan 2024 06:00 AM", "06:00 PM"),
    ("6 o'clock", "garbage"),
    ("25:99 XM", "06:00 PM"),
])
def test_malformed_daylight_never_raises(sunrise, sunset):
    assert daylight_fragment(sunrise, sunset) is None
    # The rest of the sentence is still produced
    assert build_advisory(snapshot(sunrise=sunrise, sunset=sunset))


def test_cold_clear_day():
    text = build_advisory(snapshot(
        temperature=3, humidity=40, wind_speed=2, description="clear sky",
        sunrise="06:00 AM", sunset="06:00 PM",
    ))
    assert text.startswith("Very cold weather")
    assert text.endswith("great for sightseeing.")
    assert HUMIDITY_FRAGMENT not in text
    assert WIND_FRAGMENT not in text
    assert SHORT_DAYLIGHT_FRAGMENT not in text


def test_warm_stormy_short_day_orders_fragments():
    text = build_advisory(snapshot(
        temperature=30, humidity=85, wind_speed=10,
        description="heavy rain and storm", sunrise="07:30 AM", sunset="04:00 PM",
    ))
    assert text == (
        "Warm weather. Stay hydrated. "
        "High humidity may feel uncomfortable. "
        "Windy conditions. Secure loose items. "
        "Carry an umbrella. "
        "Severe weather warning. Limit outdoor activity. "
        "Short daylight hours, plan activities early."
    )


def test_rule_engine_is_deterministic():
    snap = snapshot(temperature=12, humidity=90, description="light snow")
    assert build_advisory(snap) == build_advisory(snap)
