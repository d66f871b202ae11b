"""
Default government data, frozen as of December 2025.

Used whenever no live snapshot is supplied, and section by section when a
supplied snapshot is missing one. Sources: DOL FLAG processing times,
USCIS processing-time pages, the January 2026 Visa Bulletin and the USCIS
fee schedule effective April 2024.
"""

from pathways.models.snapshot import (
    BulletinChart,
    BulletinRow,
    CountryDistribution,
    DOLQueue,
    DOLTimes,
    PermQueues,
    PermQuarter,
    PermStatistics,
    ProcessingSnapshot,
    USCISFormTimes,
)

DEFAULT_AS_OF = "December 2025"

# Government filing fees by form id (USD)
DEFAULT_FEES: dict[str, int] = {
    "I-140": 715,
    "I-485": 1440,
    "I-765": 260,
    "I-131": 630,
    "I-130": 625,
    "I-526E": 11160,
    "I-129-H1B": 2780,  # base + ACWIA + fraud prevention
    "H1B-REGISTRATION": 215,
    "I-129-L": 1385,
    "I-129-O": 1055,
    "FRAUD-PREVENTION": 500,
    "ASYLUM-PROGRAM": 600,
    "TN-BORDER": 50,
    "DS-160": 185,
    "I-901-SEVIS": 350,
}

# Used when a form is in neither the snapshot nor the default table
FALLBACK_FEE = 500

DEFAULT_DOL_TIMES = DOLTimes(
    pwd=DOLQueue(currently_processing="July 2025", estimated_months=6),
    perm=PermQueues(
        analyst_review=DOLQueue(currently_processing="August 2024", estimated_months=17),
        audit_review=DOLQueue(currently_processing="March 2024", estimated_months=22),
    ),
)

DEFAULT_USCIS_TIMES: dict[str, list[USCISFormTimes]] = {
    "I-140": [
        USCISFormTimes(service_center="Texas", min_months=6, max_months=9),
        USCISFormTimes(service_center="Nebraska", min_months=5, max_months=8),
        USCISFormTimes(service_center="Premium", min_months=0.5, max_months=0.5),
    ],
    "I-485": [
        USCISFormTimes(service_center="National", min_months=10, max_months=18),
    ],
    "I-765": [
        USCISFormTimes(service_center="National", min_months=3, max_months=5),
    ],
    "I-130": [
        USCISFormTimes(service_center="National", min_months=12, max_months=24),
    ],
    "I-129": [
        USCISFormTimes(service_center="National", min_months=1, max_months=3),
        USCISFormTimes(service_center="Premium", min_months=0.5, max_months=0.5),
    ],
}

DEFAULT_FINAL_ACTION_DATES = BulletinChart(
    eb1=BulletinRow(all_other="Current", china="Feb 2023", india="Feb 2023"),
    eb2=BulletinRow(all_other="Apr 2024", china="Sep 2021", india="Jul 2013"),
    eb3=BulletinRow(all_other="Apr 2023", china="May 2021", india="Nov 2013"),
)

DEFAULT_DATES_FOR_FILING = BulletinChart(
    eb1=BulletinRow(all_other="Current", china="Aug 2023", india="Aug 2023"),
    eb2=BulletinRow(all_other="Oct 2024", china="Jan 2022", india="Dec 2013"),
    eb3=BulletinRow(all_other="Jul 2023", china="Jun 2021", india="Aug 2014"),
)

# Pre-computed from DOL PERM disclosure data (see pathways.data.perm_processor)
DEFAULT_PERM_STATISTICS = PermStatistics(
    quarters=[
        PermQuarter(fiscal_year=2024, quarter=1, total=32500, professional=22000, skilled=9000, other=1500),
        PermQuarter(fiscal_year=2024, quarter=2, total=35000, professional=24000, skilled=9500, other=1500),
        PermQuarter(fiscal_year=2024, quarter=3, total=38000, professional=26000, skilled=10000, other=2000),
        PermQuarter(fiscal_year=2024, quarter=4, total=42000, professional=28000, skilled=12000, other=2000),
        PermQuarter(fiscal_year=2025, quarter=1, total=40000, professional=27000, skilled=11000, other=2000),
        PermQuarter(fiscal_year=2025, quarter=2, total=38000, professional=26000, skilled=10000, other=2000),
    ],
    annualized_certification_rate=155000,
    # PERM records carry no country of birth; shares estimated from H-1B and I-140 patterns
    country_distribution=CountryDistribution(india=0.72, china=0.10, other=0.18),
    last_updated="2025-01-01",
    data_source="DOL PERM Disclosure Data FY2025",
)

DEFAULT_SNAPSHOT = ProcessingSnapshot(
    as_of=DEFAULT_AS_OF,
    dol=DEFAULT_DOL_TIMES,
    uscis=DEFAULT_USCIS_TIMES,
    final_action_dates=DEFAULT_FINAL_ACTION_DATES,
    dates_for_filing=DEFAULT_DATES_FOR_FILING,
    fees=DEFAULT_FEES,
    perm_statistics=DEFAULT_PERM_STATISTICS,
)
