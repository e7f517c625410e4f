"""Advisory Rule Engine — weather snapshot in, human-readable advisory sentence out.

Invariants:
    - PURE and TOTAL: no IO, no state, never raises for any AdvisorySnapshot
    - Rule order is fixed: temperature band → humidity → wind → description keywords → daylight
    - Exactly one temperature band fires, so the sentence is never empty
    - Description keywords are matched case-insensitively and independently of each other
    - Daylight rule is skipped silently when sunrise or sunset does not parse

Design Decisions:
    - Rules as small functions returning a fragment or None, chained by build_advisory
      (same shape as the gate checks elsewhere in core: first-class, testable in isolation)
    - Thresholds as module constants so tests and docs read the same numbers
"""

from travel_advisor.core.snapshots import AdvisorySnapshot
from travel_advisor.core.time_format import minutes_between, parse_clock_time

HUMIDITY_THRESHOLD = 70
WIND_THRESHOLD = 8.0
SHORT_DAYLIGHT_MINUTES = 10 * 60

# (upper bound exclusive, fragment); the last band catches everything above
TEMPERATURE_BANDS: tuple[tuple[float, str], ...] = (
    (5, "Very cold weather. Winter gear required."),
    (15, "Cold conditions. Wear warm clothing."),
    (25, "Pleasant temperature. Ideal for travel."),
    (32, "Warm weather. Stay hydrated."),
)
HOT_FRAGMENT = "Very hot weather. Avoid prolonged sun exposure."

HUMIDITY_FRAGMENT = "High humidity may feel uncomfortable."
WIND_FRAGMENT = "Windy conditions. Secure loose items."

KEYWORD_FRAGMENTS: tuple[tuple[str, str], ...] = (
    ("rain", "Carry an umbrella."),
    ("snow", "Snow conditions. Travel carefully."),
    ("storm", "Severe weather warning. Limit outdoor activity."),
    ("clear", "Clear skies, great for sightseeing."),
)

SHORT_DAYLIGHT_FRAGMENT = "Short daylight hours, plan activities early."


def temperature_fragment(temperature: float) -> str:
    for upper, fragment in TEMPERATURE_BANDS:
        if temperature < upper:
            return fragment
    return HOT_FRAGMENT


def humidity_fragment(humidity: int) -> str | None:
    return HUMIDITY_FRAGMENT if humidity > HUMIDITY_THRESHOLD else None


def wind_fragment(wind_speed: float) -> str | None:
    return WIND_FRAGMENT if wind_speed > WIND_THRESHOLD else None


def keyword_fragments(description: str | None) -> list[str]:
    text = (description or "").lower()
    return [fragment for keyword, fragment in KEYWORD_FRAGMENTS if keyword in text]


def daylight_fragment(sunrise: str | None, sunset: str | None) -> str | None:
    """Short-daylight warning when both times parse and span under 10 hours."""
    start = parse_clock_time(sunrise)
    end = parse_clock_time(sunset)
    if start is None or end is None:
        return None
    if minutes_between(start, end) < SHORT_DAYLIGHT_MINUTES:
        return SHORT_DAYLIGHT_FRAGMENT
    return None


def build_advisory(snapshot: AdvisorySnapshot) -> str:
    """Concatenate every triggered fragment in rule order."""
    fragments: list[str | None] = [
        temperature_fragment(snapshot.temperature),
        humidity_fragment(snapshot.humidity),
        wind_fragment(snapshot.wind_speed),
        *keyword_fragments(snapshot.description),
        daylight_fragment(snapshot.sunrise, snapshot.sunset),
    ]
    return " ".join(f for f in fragments if f).strip()
