"""
Priority-Date Wait Engine

Estimates how many months a priority date waits behind a Visa Bulletin
cutoff. The bulletin's advancement speed comes from a demand/supply model:

    velocity ratio = annual demand (incl. dependents) / annual visa supply

If the ratio is <= 1 the cutoff moves a full 12 months per year; otherwise
it moves 12 / ratio months per year, so every month behind the cutoff costs
12 / advancement months of waiting.

Never raises on bad bulletin data: unparsable cutoffs and missing demand
inputs degrade to low-confidence estimates.
"""

import logging

from pathways.data.bulletin_history import historical_advancement_rate
from pathways.data.demand import chargeability, effective_visa_supply, estimate_annual_demand
from pathways.models.path import VelocityExplanation, WaitEstimate
from pathways.models.profile import CountryOfBirth, EBCategory, MonthYear
from pathways.models.snapshot import BulletinChart, BulletinRow, PermStatistics
from pathways.simulation.dates import is_current, months_between, parse_cutoff

logger = logging.getLogger(__name__)

# Beyond 50 years the wait is effectively indefinite
MAX_WAIT_MONTHS = 600

FALLBACK_CONFIDENCE = 0.3

COUNTRY_CONFIDENCE: dict[str, float] = {
    "india": 0.8,  # most consistent bulletin movement
    "china": 0.7,
    "other": 0.6,
}

# Flat months-waited per month-behind when velocity inputs are unavailable
FALLBACK_MULTIPLIER: dict[str, float] = {
    "india": 12.0,
    "china": 6.0,
    "other": 1.0,
}

_FALLBACK_SUMMARY: dict[str, str] = {
    "india": "India backlog: ~1 month bulletin movement per year (estimate)",
    "china": "China backlog: ~2 months bulletin movement per year (estimate)",
    "other": "ROW: category usually current or fast-moving",
}


def _current_estimate(summary: str) -> WaitEstimate:
    return WaitEstimate(
        months=0,
        confidence=1.0,
        range_min=0,
        range_max=0,
        explanation=VelocityExplanation(
            advancement_months_per_year=12.0,
            velocity_ratio=0.0,
            wait_multiplier=1.0,
            confidence=1.0,
            summary=summary,
        ),
    )


def _range(months: int, confidence: float) -> tuple[int, int]:
    uncertainty = (1 - confidence) * 0.5
    range_min = min(round(months * (1 - uncertainty)), MAX_WAIT_MONTHS)
    range_max = min(round(months * (1 + uncertainty)), MAX_WAIT_MONTHS)
    return range_min, range_max


def _velocity_summary(advancement: float, multiplier: float) -> str:
    if advancement >= 12:
        return "Category is current or nearly current. No significant wait expected."
    if advancement <= 3:
        return (
            f"Severe backlog: visa bulletin advances only ~{advancement:.1f} months/year. "
            f"Each month behind = ~{multiplier:.0f} month wait."
        )
    if advancement <= 6:
        return f"Significant backlog: visa bulletin advances ~{advancement:.1f} months/year."
    return f"Moderate backlog: visa bulletin advances ~{advancement:.1f} months/year."


def calculate_velocity(
    category: EBCategory,
    country: CountryOfBirth,
    statistics: PermStatistics | None,
) -> VelocityExplanation | None:
    """Bulletin velocity for a category/country, or None when demand inputs are unavailable."""
    if statistics is None:
        return None
    demand = estimate_annual_demand(category, country, statistics)
    supply = effective_visa_supply(category, country)
    if demand is None or supply <= 0:
        return None

    ratio = demand / supply
    advancement = 12.0 if ratio <= 1 else 12.0 / ratio
    multiplier = 12.0 / advancement
    confidence = COUNTRY_CONFIDENCE[chargeability(country)]

    return VelocityExplanation(
        advancement_months_per_year=advancement,
        velocity_ratio=ratio,
        wait_multiplier=multiplier,
        annual_demand=demand,
        annual_supply=supply,
        historical_months_per_year=historical_advancement_rate(category, country),
        confidence=confidence,
        summary=_velocity_summary(advancement, multiplier),
    )


def _fallback_estimate(country: CountryOfBirth, months_behind: int | None) -> WaitEstimate:
    key = chargeability(country)
    multiplier = FALLBACK_MULTIPLIER[key]
    if months_behind is None:
        months = 0
    else:
        months = min(round(months_behind * multiplier), MAX_WAIT_MONTHS)
    range_min, range_max = _range(months, FALLBACK_CONFIDENCE)
    return WaitEstimate(
        months=months,
        confidence=FALLBACK_CONFIDENCE,
        range_min=range_min,
        range_max=range_max,
        explanation=VelocityExplanation(
            advancement_months_per_year=12.0 / multiplier,
            velocity_ratio=multiplier,
            wait_multiplier=multiplier,
            confidence=FALLBACK_CONFIDENCE,
            summary=_FALLBACK_SUMMARY[key],
        ),
    )


def _wait_summary(months: int, months_behind: int, advancement: float, capped: bool) -> str:
    years = round(months / 12)
    behind_years = round(months_behind / 12)
    if capped:
        return (
            f"Extreme backlog: {behind_years}+ years behind cutoff. Wait time is effectively "
            f"indefinite (50+ years). Consider alternative paths."
        )
    if months <= 6:
        return f"Short wait expected. Bulletin advances ~{advancement:.1f} months/year."
    if months <= 24:
        return (
            f"Moderate backlog: ~{months_behind} months behind cutoff. "
            f"Bulletin advances ~{advancement:.1f} mo/yr."
        )
    if months <= 120:
        return (
            f"Significant backlog: ~{behind_years} years behind. At ~{advancement:.1f} mo/yr "
            f"advancement, expect ~{years} year wait."
        )
    return (
        f"Severe backlog: ~{behind_years} years behind. Bulletin advances "
        f"~{advancement:.1f} mo/yr. ~{years}+ year wait."
    )


def calculate_wait(
    profile_date: MonthYear,
    cutoff: str,
    country: CountryOfBirth,
    category: EBCategory,
    statistics: PermStatistics | None,
) -> WaitEstimate:
    """
    Months until profile_date becomes current against a bulletin cutoff.

    Returns 0 months (full confidence) when the cutoff is "Current" or the
    date is on or before it. Unparsable cutoffs give 0 months at low
    confidence; missing demand data falls back to a flat per-country
    multiplier.
    """
    if is_current(cutoff):
        return _current_estimate("Category is current - no wait required.")

    cutoff_date = parse_cutoff(cutoff)
    if cutoff_date is None:
        logger.warning("Unparsable bulletin cutoff %r, using fallback estimate", cutoff)
        return _fallback_estimate(country, None)

    if profile_date <= cutoff_date:
        return _current_estimate("Your priority date is current - you can file I-485 now.")

    months_behind = months_between(cutoff_date, profile_date)

    velocity = calculate_velocity(category, country, statistics)
    if velocity is None:
        logger.debug("No demand data for %s/%s, using flat multiplier", category, country)
        return _fallback_estimate(country, months_behind)

    months = round(months_behind * velocity.wait_multiplier)
    capped = months > MAX_WAIT_MONTHS
    if capped:
        months = MAX_WAIT_MONTHS

    range_min, range_max = _range(months, velocity.confidence)

    return WaitEstimate(
        months=months,
        confidence=FALLBACK_CONFIDENCE if capped else velocity.confidence,
        range_min=range_min,
        range_max=range_max,
        explanation=velocity.model_copy(update={
            "summary": _wait_summary(months, months_behind, velocity.advancement_months_per_year, capped),
        }),
    )


def cutoff_for(chart: BulletinChart, category: EBCategory, country: CountryOfBirth) -> str:
    """The bulletin cell for a category row and the country's chargeability column."""
    row: BulletinRow = getattr(chart, EBCategory(category).value)
    column = chargeability(country)
    if column == "other":
        return row.all_other
    return getattr(row, column)
