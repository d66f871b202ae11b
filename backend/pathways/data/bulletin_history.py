"""
Historical Visa Bulletin Final Action dates (January bulletins, State Dept archive).

Used to report how fast each category/country cutoff has actually moved,
next to the demand/supply velocity estimate.
"""

import numpy as np

from pathways.models.profile import CountryOfBirth, EBCategory
from pathways.data.demand import chargeability
from pathways.simulation.dates import parse_cutoff

# bulletin year -> Final Action cutoff
HISTORICAL_FINAL_ACTION: dict[EBCategory, dict[str, list[tuple[int, str]]]] = {
    EBCategory.EB1: {
        "india": [(2020, "Current"), (2021, "Current"), (2022, "Jan 2021"),
                  (2023, "Jan 2022"), (2024, "Jan 2022"), (2025, "Feb 2023")],
        "china": [(2020, "Current"), (2021, "Current"), (2022, "Nov 2020"),
                  (2023, "Feb 2022"), (2024, "Jan 2022"), (2025, "Feb 2023")],
        "other": [(2020, "Current"), (2021, "Current"), (2022, "Current"),
                  (2023, "Current"), (2024, "Current"), (2025, "Current")],
    },
    EBCategory.EB2: {
        "india": [(2020, "Apr 2009"), (2021, "Jun 2009"), (2022, "Apr 2010"),
                  (2023, "Aug 2011"), (2024, "Jun 2012"), (2025, "Jul 2013")],
        "china": [(2020, "Dec 2016"), (2021, "May 2017"), (2022, "Sep 2018"),
                  (2023, "Nov 2019"), (2024, "Jul 2020"), (2025, "Sep 2021")],
        "other": [(2020, "Current"), (2021, "Current"), (2022, "Current"),
                  (2023, "Current"), (2024, "Nov 2023"), (2025, "Apr 2024")],
    },
    EBCategory.EB3: {
        "india": [(2020, "Jan 2009"), (2021, "Jun 2009"), (2022, "Oct 2010"),
                  (2023, "Sep 2011"), (2024, "Oct 2012"), (2025, "Nov 2013")],
        "china": [(2020, "Jan 2017"), (2021, "May 2018"), (2022, "Mar 2019"),
                  (2023, "Aug 2019"), (2024, "Mar 2020"), (2025, "May 2021")],
        "other": [(2020, "Mar 2019"), (2021, "Current"), (2022, "Current"),
                  (2023, "Jan 2022"), (2024, "Nov 2022"), (2025, "Apr 2023")],
    },
}

# Clamp range for the reported rate, in months of movement per year
_MIN_RATE = 1.0
_MAX_RATE = 18.0


def _year_over_year_movements(history: list[tuple[int, str]]) -> list[float]:
    movements: list[float] = []
    for (_, prev), (_, curr) in zip(history, history[1:]):
        prev_date = parse_cutoff(prev)
        curr_date = parse_cutoff(curr)
        if prev_date is None and curr_date is None:
            movements.append(12.0)
        elif prev_date is None:
            # Retrogressed from current
            continue
        elif curr_date is None:
            # Became current
            movements.append(24.0)
        else:
            advance = (curr_date.year - prev_date.year) * 12 + (curr_date.month - prev_date.month)
            if advance > 0:
                movements.append(float(advance))
    return movements


def historical_advancement_rate(category: EBCategory, country: CountryOfBirth) -> float:
    """
    Conservative months-per-year the cutoff has advanced.

    Blends the slowest observed year (60%) with the 25th percentile (40%),
    clamped to 1-18 months per year. Defaults to 12 without usable history.
    """
    history = HISTORICAL_FINAL_ACTION[EBCategory(category)][chargeability(country)]
    movements = _year_over_year_movements(history)
    if not movements:
        return 12.0

    rates = np.sort(np.array(movements))
    slowest = rates[0]
    p25 = rates[int(np.floor(len(rates) * 0.25))]
    conservative = slowest * 0.6 + p25 * 0.4
    return float(np.clip(conservative, _MIN_RATE, _MAX_RATE))
