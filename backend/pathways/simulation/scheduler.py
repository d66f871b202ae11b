"""
Stage Scheduler

Lays a status path and a GC method out on one timeline (years from path
start). The status track runs end to end from year 0. The green-card track
starts at the status path's filing offset; each stage either follows the
latest end so far or, when concurrent, starts with the previous stage.

Employment-based categories are checked against both Visa Bulletin charts:

1. "Dates for Filing" decides whether the I-485 can be submitted with the
   petition. If not, a priority-date wait stage is placed between the
   petition and the I-485, and the I-485 is no longer concurrent.
2. "Final Action Dates" decides when the case can be approved. Any approval
   wait left over after filing widens the I-485 duration, since the two
   clocks run in parallel.

Each timeline is walked twice, once with stage maximums (start years and
total max) and once with stage minimums (total min).
"""

import logging
from typing import NamedTuple

from pathways.data.defaults import (
    DEFAULT_AS_OF,
    DEFAULT_FEES,
    DEFAULT_FINAL_ACTION_DATES,
    DEFAULT_SNAPSHOT,
    FALLBACK_FEE,
)
from pathways.models.path import ComposedPath, ComposedStage, Duration, WaitEstimate
from pathways.models.profile import MonthYear, Profile
from pathways.models.snapshot import BulletinChart, ProcessingSnapshot
from pathways.simulation.dates import parse_cutoff
from pathways.simulation.rules import (
    SELF_PETITION_CATEGORIES,
    GCMethod,
    StatusPath,
    StatusStage,
    bulletin_row,
)
from pathways.simulation.stages import StageId, stage_spec
from pathways.simulation.wait import calculate_wait, cutoff_for

logger = logging.getLogger(__name__)

# Premium processing default when the snapshot has no premium row
PREMIUM_PETITION_MONTHS = 0.5
REGULAR_PETITION_MONTHS = 9.0
# NIW premium is 45 business days, not 15
NIW_PREMIUM_FLOOR_MONTHS = 1.5

_PETITION_FORMS = {
    StageId.I140: "I-140",
    StageId.EB1: "I-140",
    StageId.EB2NIW: "I-140",
}


def _months_display(min_months: float, max_months: float) -> str:
    if min_months < 1 and max_months < 1:
        return f"{round(min_months * 30)}-{round(max_months * 30)}d"
    if min_months < 1:
        return f"{round(min_months * 30)}d-{round(max_months)}mo"
    return f"{round(min_months)}-{round(max_months)} mo"


def _from_months(min_months: float, max_months: float) -> Duration:
    return Duration(min=min_months / 12, max=max_months / 12, display=_months_display(min_months, max_months))


def format_wait(months: int) -> str:
    if months < 12:
        return f"~{months} mo"
    return f"~{months / 12:.1f} yr"


def resolve_duration(stage_id: StageId, default: Duration, snapshot: ProcessingSnapshot) -> Duration:
    """
    Processing time for a GC stage, from the snapshot where it publishes one.

    PWD and PERM come from the DOL queues, petitions and the I-485 from USCIS
    form times. Anything the snapshot lacks keeps the rule-table range.
    """
    if stage_id == StageId.PWD and snapshot.dol is not None:
        months = snapshot.dol.pwd.estimated_months
        return _from_months(months * 0.8, months + 1)

    if stage_id == StageId.PERM and snapshot.dol is not None:
        months = snapshot.dol.perm.analyst_review.estimated_months
        return _from_months(max(months - 2, 6), months + 2)

    if stage_id in _PETITION_FORMS:
        rows = snapshot.uscis.get(_PETITION_FORMS[stage_id])
        if not rows:
            return default
        premium = next((r for r in rows if r.service_center == "Premium"), None)
        regular = next((r for r in rows if r.service_center != "Premium"), None)
        min_months = premium.min_months if premium else PREMIUM_PETITION_MONTHS
        max_months = regular.max_months if regular else REGULAR_PETITION_MONTHS
        if stage_id == StageId.EB2NIW:
            min_months = max(min_months, NIW_PREMIUM_FLOOR_MONTHS)
        return _from_months(min_months, max_months)

    if stage_id == StageId.I485:
        rows = snapshot.uscis.get("I-485")
        if not rows:
            return default
        min_months = sum(r.min_months for r in rows) / len(rows)
        max_months = sum(r.max_months for r in rows) / len(rows)
        return _from_months(min_months, max_months)

    return default


def _status_duration(stage: StatusStage, profile: Profile) -> tuple[Duration, str | None]:
    if not stage.post_graduation:
        return stage.duration, stage.note
    if profile.is_stem:
        # 12 months + 24-month STEM extension
        return Duration(min=1, max=3, display="1-3 yr"), "STEM OPT (3 years)"
    return Duration(min=1, max=1, display="1 yr"), "Standard OPT (1 year)"


def _as_of_month(snapshot: ProcessingSnapshot) -> MonthYear:
    as_of = parse_cutoff(snapshot.as_of)
    if as_of is None:
        logger.warning("Unparsable snapshot as_of %r, using %s", snapshot.as_of, DEFAULT_AS_OF)
        as_of = parse_cutoff(DEFAULT_AS_OF)
    return as_of


def _charts(snapshot: ProcessingSnapshot) -> tuple[BulletinChart, BulletinChart]:
    """(dates for filing, final action) charts with fallbacks applied."""
    final_action = snapshot.final_action_dates or DEFAULT_FINAL_ACTION_DATES
    filing = snapshot.dates_for_filing or final_action
    return filing, final_action


class PriorityWaits(NamedTuple):
    profile_date: MonthYear
    filing: WaitEstimate  # against Dates for Filing
    approval: WaitEstimate  # against Final Action Dates
    filing_cutoff: str


def estimate_waits(
    category: str,
    profile: Profile,
    snapshot: ProcessingSnapshot,
) -> PriorityWaits | None:
    """
    Filing and approval waits for a bulletin-governed category.

    Holders of an existing priority date are measured from it; new filers
    from the snapshot's as-of month, the earliest date they could lock in.
    """
    row = bulletin_row(category)
    if row is None:
        return None

    if profile.existing_priority_date is not None:
        profile_date = profile.existing_priority_date.to_month_year()
    else:
        profile_date = _as_of_month(snapshot)

    filing_chart, final_chart = _charts(snapshot)
    country = profile.country_of_birth
    statistics = snapshot.perm_statistics

    filing_cutoff = cutoff_for(filing_chart, row, country)
    filing_wait = calculate_wait(profile_date, filing_cutoff, country, row, statistics)
    approval_wait = calculate_wait(
        profile_date, cutoff_for(final_chart, row, country), country, row, statistics,
    )
    return PriorityWaits(profile_date, filing_wait, approval_wait, filing_cutoff)


def _widen(duration: Duration, wait_months: int) -> Duration:
    """Stretch the I-485 so neither bound ends before the approval wait does."""
    years = wait_months / 12
    if years <= duration.min:
        return duration
    if years >= duration.max:
        return Duration(min=years, max=years, display=format_wait(wait_months))
    return Duration(min=years, max=duration.max, display=_months_display(wait_months, duration.max * 12))


class _Track:
    """Sequential cursor over one green-card-track walk (max or min durations)."""

    def __init__(self, start: float):
        self.cursor = start
        self.end = start
        self.last_start = start

    def place(self, length: float, concurrent: bool) -> float:
        start = self.last_start if concurrent else self.cursor
        finish = start + length
        self.cursor = max(self.cursor, finish)
        self.end = max(self.end, finish)
        self.last_start = start
        return start


def _gc_start(
    status_path: StatusPath,
    category: str,
    status_stages: list[tuple[StatusStage, Duration]],
) -> tuple[float, float]:
    """(max-walk, min-walk) start of the green-card track."""
    start = status_path.gc_start_offset or 0.0
    start_max = start_min = start
    if category in SELF_PETITION_CATEGORIES and status_path.grants_education is not None:
        # Self-petitions rest on the degree, so they wait for graduation
        end_max = end_min = 0.0
        for stage, duration in status_stages:
            end_max += duration.max
            end_min += duration.min
            if stage.completes_degree:
                start_max = max(start_max, end_max)
                start_min = max(start_min, end_min)
                break
    return start_max, start_min


def _estimated_cost(stage_ids: list[str], snapshot: ProcessingSnapshot) -> int:
    total = 0
    for stage_id in dict.fromkeys(stage_ids):
        for form in stage_spec(stage_id).filings:
            fee = snapshot.fees.get(form)
            if fee is None:
                fee = DEFAULT_FEES.get(form)
            if fee is None:
                logger.warning("No filing fee for %s, using %d", form, FALLBACK_FEE)
                fee = FALLBACK_FEE
            total += fee
    return total


def _description(status_path: StatusPath, method: GCMethod) -> str:
    description = status_path.description
    if method.requires_perm:
        offset = status_path.gc_start_offset
        if offset == 0:
            timing = "immediately"
        elif offset == 0.5:
            timing = "after 6 months"
        else:
            timing = f"at year {offset:g}"
        description += f". Start PERM {timing}."
    return description


def compose_path(
    status_path: StatusPath,
    method: GCMethod,
    category: str,
    profile: Profile,
    snapshot: ProcessingSnapshot | None = None,
) -> ComposedPath:
    snapshot = snapshot or DEFAULT_SNAPSHOT
    stages: list[ComposedStage] = []

    # ---- status track ----
    status_stages = [(stage, _status_duration(stage, profile)) for stage in status_path.stages]
    status_end = 0.0
    status_min = 0.0
    for stage, (duration, note) in status_stages:
        stages.append(ComposedStage(
            stage_id=stage.stage_id.value,
            duration=duration,
            track="status",
            start_year=status_end,
            note=note,
        ))
        status_end += duration.max
        status_min += duration.min

    # ---- priority date ----
    waits = estimate_waits(category, profile, snapshot) if method.uses_priority_date else None
    blocked = waits is not None and waits.filing.months > 0
    remaining_months = 0
    if waits is not None:
        remaining_months = waits.approval.months - (waits.filing.months if blocked else 0)

    # ---- green-card track ----
    start_max, start_min = _gc_start(
        status_path, category, [(stage, duration) for stage, (duration, _) in status_stages],
    )
    track_max = _Track(start_max)
    track_min = _Track(start_min)

    for index, gc_stage in enumerate(method.stages):
        spec = stage_spec(gc_stage.stage_id)
        duration = resolve_duration(gc_stage.stage_id, gc_stage.duration, snapshot)
        concurrent = gc_stage.concurrent and index > 0
        note = gc_stage.note

        if spec.is_residency_application:
            if blocked:
                wait_duration = Duration(
                    min=waits.filing.range_min / 12,
                    max=waits.filing.range_max / 12,
                    display=format_wait(waits.filing.months),
                )
                stages.append(ComposedStage(
                    stage_id=StageId.PRIORITY_WAIT.value,
                    duration=wait_duration,
                    track="gc",
                    start_year=track_max.place(wait_duration.max, False),
                    note=f"Wait until {waits.profile_date} is current for filing",
                    is_priority_wait=True,
                    cutoff=waits.filing_cutoff,
                    velocity=waits.filing.explanation,
                ))
                track_min.place(wait_duration.min, False)
                concurrent = False
                note = "After priority date is current for filing"
            elif remaining_months > 0:
                filing = "Concurrent filing" if concurrent else "Filing"
                note = f"{filing} OK. {format_wait(remaining_months)} wait for approval"
            if remaining_months > 0:
                duration = _widen(duration, remaining_months)

        start = track_max.place(duration.max, concurrent)
        track_min.place(duration.min, concurrent)
        stages.append(ComposedStage(
            stage_id=gc_stage.stage_id.value,
            duration=duration,
            track="gc",
            start_year=start,
            note=note,
            is_concurrent=concurrent,
        ))

    total_max = max(status_end, track_max.end)
    total_min = max(status_min, track_min.end)

    if not status_path.stages:
        name = f"{method.name} (Direct)"
    else:
        name = f"{status_path.name} → {category}"

    stage_ids = [s.stage_id for s in stages]

    return ComposedPath(
        id=f"{status_path.id}_{method.id}",
        name=name,
        description=_description(status_path, method),
        category=category,
        total_years=Duration(min=total_min, max=total_max, display=f"{total_min:.1f}-{total_max:.1f} yr"),
        stages=stages,
        estimated_cost=_estimated_cost(stage_ids, snapshot),
        has_lottery=any(stage_spec(s).lottery_gated for s in stage_ids),
        is_self_petition=category in SELF_PETITION_CATEGORIES,
    )
