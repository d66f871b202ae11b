"""
Visa demand and supply estimates per category and country.

Demand: annual PERM certifications x country share x category share x
people per case (principal + dependents).
Supply: statutory category allocation under the 7% per-country cap, plus
the share of spillover that typically reaches capped countries.
"""

import math

from pathways.models.profile import CountryOfBirth, EBCategory
from pathways.models.snapshot import PermStatistics

ANNUAL_EB_VISA_LIMIT = 140000

# 28.6% each for EB-1, EB-2, EB-3
CATEGORY_PERCENTAGES: dict[EBCategory, float] = {
    EBCategory.EB1: 0.286,
    EBCategory.EB2: 0.286,
    EBCategory.EB3: 0.286,
}

COUNTRY_CAP_PERCENTAGE = 0.07

# Unused EB-1 numbers flow to EB-2, unused EB-1/EB-2 to EB-3
SPILLOVER: dict[EBCategory, int] = {
    EBCategory.EB1: 0,
    EBCategory.EB2: 5000,
    EBCategory.EB3: 8000,
}

# Fraction of spillover that reaches per-country-capped applicants
CAPPED_SPILLOVER_SHARE = 0.3

# Principal + spouse + children
AVG_PEOPLE_PER_CASE = 2.5

# EB-1 rarely goes through PERM
EB1_PERM_SHARE = 0.05

CAPPED_COUNTRIES = (CountryOfBirth.INDIA, CountryOfBirth.CHINA)


def chargeability(country: CountryOfBirth) -> str:
    """Bulletin column for a country of birth: india, china or other."""
    country = CountryOfBirth(country)
    if country in CAPPED_COUNTRIES:
        return country.value
    return "other"


def annual_category_limit(category: EBCategory) -> int:
    return math.floor(ANNUAL_EB_VISA_LIMIT * CATEGORY_PERCENTAGES[EBCategory(category)])


def per_country_limit(category: EBCategory) -> int:
    return math.floor(annual_category_limit(category) * COUNTRY_CAP_PERCENTAGE)


def effective_visa_supply(category: EBCategory, country: CountryOfBirth) -> int:
    """Visas per year realistically available to one category/country."""
    category = EBCategory(category)
    if chargeability(country) != "other":
        return per_country_limit(category) + math.floor(SPILLOVER[category] * CAPPED_SPILLOVER_SHARE)
    # Rest of world: everything not taken by the two capped countries
    return annual_category_limit(category) - per_country_limit(category) * 2


def estimate_annual_demand(
    category: EBCategory,
    country: CountryOfBirth,
    statistics: PermStatistics,
) -> int | None:
    """People per year (including dependents) entering the queue, or None without data."""
    if not statistics.quarters:
        return None
    recent = statistics.quarters[-1]
    if recent.total <= 0:
        return None

    country_share = getattr(statistics.country_distribution, chargeability(country))

    category = EBCategory(category)
    if category == EBCategory.EB1:
        category_share = EB1_PERM_SHARE
    elif category == EBCategory.EB2:
        category_share = recent.professional / recent.total
    else:
        category_share = (recent.skilled + recent.other) / recent.total

    principals = statistics.annualized_certification_rate * country_share * category_share
    return round(principals * AVG_PEOPLE_PER_CASE)
