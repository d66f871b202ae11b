"""Path ordering: time to green card, then risk, then simplicity."""

from pathways.models.path import ComposedPath
from pathways.simulation.rules import EB1A, EB1B, EB1C, EB2, EB2_NIW, EB3, EB5, MARRIAGE_BASED
from pathways.simulation.stages import StageId

# Paths whose green card lands within this many years of each other are tied
TIME_BAND_YEARS = 0.5

# Lower is safer. Self-petitions are ranked by evidentiary bar.
RISK_ORDINAL: dict[str, int] = {
    MARRIAGE_BASED: 0,
    EB2: 1,
    EB3: 1,
    EB1B: 2,
    EB1C: 2,
    EB2_NIW: 3,
    EB1A: 4,
    EB5: 5,
}

_UNCOUNTED = (StageId.GC.value, StageId.PRIORITY_WAIT.value)


def risk_ordinal(category: str) -> int:
    return RISK_ORDINAL.get(category, max(RISK_ORDINAL.values()))


def step_count(path: ComposedPath) -> int:
    """Stages the applicant actually has to go through."""
    return sum(1 for stage in path.stages if stage.stage_id not in _UNCOUNTED)


def _time_bands(paths: list[ComposedPath]) -> list[int]:
    # Greedy bands in green-card-year order; a band spans TIME_BAND_YEARS from its first path
    bands = [0] * len(paths)
    band = -1
    band_start = None
    for index in sorted(range(len(paths)), key=lambda i: paths[i].green_card_year):
        year = paths[index].green_card_year
        if band_start is None or year - band_start > TIME_BAND_YEARS:
            band += 1
            band_start = year
        bands[index] = band
    return bands


def sort_paths(paths: list[ComposedPath]) -> list[ComposedPath]:
    """Stable sort; paths equal on every key keep their input order."""
    bands = _time_bands(paths)
    order = sorted(
        range(len(paths)),
        key=lambda i: (bands[i], risk_ordinal(paths[i].category), step_count(paths[i])),
    )
    return [paths[i] for i in order]
