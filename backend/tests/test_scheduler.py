"""
Stage Scheduler Tests

Timeline layout, snapshot-driven durations, priority-date wait placement
and filing-fee totals.
"""
import pytest

from pathways.data.defaults import DEFAULT_SNAPSHOT
from pathways.models.path import Duration
from pathways.models.profile import CountryOfBirth, CurrentStatus, EBCategory, PriorityDate, Profile
from pathways.models.snapshot import BulletinRow, ProcessingSnapshot, USCISFormTimes
from pathways.simulation.rules import EB2, EB2_NIW, EB3, GC_METHODS_BY_ID, MARRIAGE_BASED, STATUS_PATHS_BY_ID
from pathways.simulation.scheduler import _estimated_cost, compose_path, estimate_waits, resolve_duration
from pathways.simulation.stages import StageId


def compose(status_path_id, method_id, category, profile, snapshot=None):
    return compose_path(
        STATUS_PATHS_BY_ID[status_path_id], GC_METHODS_BY_ID[method_id], category, profile, snapshot,
    )


def stage(path, stage_id):
    return next(s for s in path.stages if s.stage_id == stage_id)


class TestTimelineLayout:
    """Test cases for stage placement on both tracks."""

    def test_perm_route_when_bulletin_current(self, default_profile, current_snapshot):
        """Test sequential and concurrent placement of the PERM route."""
        path = compose("tn_direct", "perm_route", EB3, default_profile, current_snapshot)

        assert [s.stage_id for s in path.stages] == ["tn", "pwd", "recruit", "perm", "i140", "i485", "gc"]
        assert stage(path, "tn").track == "status"
        assert stage(path, "pwd").start_year == 0
        assert stage(path, "recruit").start_year == pytest.approx(7 / 12)
        assert stage(path, "perm").start_year == pytest.approx(10 / 12)

        i140 = stage(path, "i140")
        i485 = stage(path, "i485")
        assert i485.is_concurrent
        assert i485.start_year == i140.start_year
        assert stage(path, "gc").start_year == pytest.approx(i485.end_year)

        assert path.total_years.max == pytest.approx(3.9167, abs=1e-4)
        assert path.total_years.min == pytest.approx(2.6533, abs=1e-4)

    def test_path_ends_in_green_card(self, default_profile):
        path = compose("tn_to_h1b", "perm_route", EB3, default_profile)
        assert path.stages[-1].stage_id == "gc"
        assert path.green_card_year == path.stages[-1].start_year

    def test_status_track_runs_end_to_end(self, default_profile):
        path = compose("tn_to_h1b", "perm_route", EB3, default_profile)
        assert stage(path, "tn").start_year == 0
        assert stage(path, "h1b").start_year == 2

    def test_gc_track_starts_at_filing_offset(self, default_profile, current_snapshot):
        path = compose("l1b", "perm_route", EB3, default_profile, current_snapshot)
        assert stage(path, "pwd").start_year == 0.5

    def test_self_petition_waits_for_degree(self, default_profile, current_snapshot):
        """Test that NIW on a degree path starts at graduation, not the filing offset."""
        masters = compose("student_masters", "niw", EB2_NIW, default_profile, current_snapshot)
        phd = compose("student_phd", "niw", EB2_NIW, default_profile, current_snapshot)

        assert stage(masters, "eb2niw").start_year == 2
        assert stage(phd, "eb2niw").start_year == 6

    def test_employer_route_uses_filing_offset_on_degree_path(self, default_profile, current_snapshot):
        path = compose("student_masters", "perm_route", EB2, default_profile, current_snapshot)
        assert stage(path, "pwd").start_year == 1.5

    def test_direct_filing(self):
        path = compose("none", "marriage", MARRIAGE_BASED, Profile(is_married_to_us_citizen=True))

        assert path.id == "none_marriage"
        assert path.name == "Marriage (Direct)"
        assert [s.stage_id for s in path.stages] == ["marriage", "gc"]
        assert path.total_years.max == pytest.approx(1.2)
        assert path.total_years.min == pytest.approx(0.7)

    def test_name_and_description(self, default_profile):
        path = compose("l1b", "perm_route", EB3, default_profile)
        assert path.name == "L-1B Specialized → EB-3"
        assert path.description.endswith(". Start PERM after 6 months.")

        immediate = compose("tn_direct", "perm_route", EB3, default_profile)
        assert immediate.description.endswith(". Start PERM immediately.")

        later = compose("student_phd", "perm_route", EB2, default_profile)
        assert later.description.endswith(". Start PERM at year 4.")


class TestPostGraduationStage:
    """Test cases for the technical-field (STEM) work authorization length."""

    def test_stem_toggle_changes_only_opt(self, default_profile):
        standard = compose("student_masters", "perm_route", EB2, default_profile)
        stem = compose("student_masters", "perm_route", EB2, default_profile.model_copy(update={"is_stem": True}))

        assert [s.stage_id for s in standard.stages] == [s.stage_id for s in stem.stages]
        for before, after in zip(standard.stages, stem.stages):
            if before.stage_id == "opt":
                assert before.duration.max == 1
                assert after.duration.max == 3
                assert before.note == "Standard OPT (1 year)"
                assert after.note == "STEM OPT (3 years)"
            else:
                assert before.duration == after.duration

    def test_bridging_opt_is_not_adjusted(self):
        profile = Profile(current_status=CurrentStatus.F1, is_stem=True)
        path = compose("opt_h1b", "perm_route", EB3, profile)
        assert stage(path, "opt").duration.max == 1.5


class TestPriorityDateWait:
    """Test cases for wait stage insertion and I-485 widening."""

    def test_blocked_filing_inserts_wait_stage(self, default_profile):
        """Test a new filer behind the Dates for Filing cutoff."""
        path = compose("tn_direct", "perm_route", EB3, default_profile)

        assert [s.stage_id for s in path.stages] == [
            "tn", "pwd", "recruit", "perm", "i140", "priority_wait", "i485", "gc",
        ]
        wait = stage(path, "priority_wait")
        i140 = stage(path, "i140")
        i485 = stage(path, "i485")

        assert wait.is_priority_wait
        assert wait.cutoff == "Jul 2023"
        assert wait.velocity is not None
        # December 2025 as-of is 29 months behind July 2023, at 12 months/year
        assert wait.duration.min == pytest.approx(23 / 12)
        assert wait.duration.max == pytest.approx(35 / 12)
        assert wait.start_year == pytest.approx(i140.end_year)
        assert i485.start_year == pytest.approx(wait.end_year)
        assert not i485.is_concurrent
        assert stage(path, "gc").start_year == pytest.approx(i485.end_year)
        assert path.total_years.max == pytest.approx(i485.end_year)

    def test_concurrent_filing_with_approval_wait_widens_i485(self, default_profile, current_snapshot):
        """Test Dates for Filing current while Final Action is 32 months behind."""
        snapshot = current_snapshot.model_copy(update={
            "final_action_dates": DEFAULT_SNAPSHOT.final_action_dates,
        })
        path = compose("tn_direct", "perm_route", EB3, default_profile, snapshot)

        assert "priority_wait" not in [s.stage_id for s in path.stages]
        i485 = stage(path, "i485")
        assert i485.is_concurrent
        assert i485.duration.max == pytest.approx(32 / 12)
        assert i485.note.startswith("Concurrent filing OK")

    def test_approval_wait_inside_i485_range_raises_minimum(self, default_profile, current_snapshot):
        """Test a 12-month approval wait against a 10-18 month I-485."""
        final_action = current_snapshot.final_action_dates.model_copy(update={
            "eb3": BulletinRow(all_other="Apr 2023", china="Current", india="Current"),
        })
        snapshot = current_snapshot.model_copy(update={
            "final_action_dates": final_action,
            "as_of": "April 2024",
        })
        path = compose("tn_direct", "perm_route", EB3, default_profile, snapshot)
        baseline = compose("tn_direct", "perm_route", EB3, default_profile, current_snapshot)

        i485 = stage(path, "i485")
        assert i485.is_concurrent
        assert i485.note == "Concurrent filing OK. ~1.0 yr wait for approval"
        assert i485.duration.min == pytest.approx(1.0)
        assert i485.duration.max == pytest.approx(1.5)
        assert i485.duration.display == "12-18 mo"
        assert path.total_years.min > baseline.total_years.min
        assert path.total_years.max == pytest.approx(baseline.total_years.max)

    def test_blocked_filing_widens_i485_for_final_action_wait(self, default_profile, current_snapshot):
        """Test Final Action far behind Dates for Filing: both waits land on the timeline."""
        snapshot = current_snapshot.model_copy(update={
            "dates_for_filing": current_snapshot.dates_for_filing.model_copy(update={
                "eb3": BulletinRow(all_other="Jul 2023", china="Current", india="Current"),
            }),
            "final_action_dates": current_snapshot.final_action_dates.model_copy(update={
                "eb3": BulletinRow(all_other="Jan 2021", china="Current", india="Current"),
            }),
        })
        waits = estimate_waits(EB3, default_profile, snapshot)
        # December 2025 as-of: 29 months behind filing, 59 behind final action
        assert (waits.filing.months, waits.approval.months) == (29, 59)

        path = compose("tn_direct", "perm_route", EB3, default_profile, snapshot)
        wait = stage(path, "priority_wait")
        i485 = stage(path, "i485")

        assert i485.start_year == pytest.approx(wait.end_year)
        assert not i485.is_concurrent
        assert i485.note == "After priority date is current for filing"
        assert i485.duration.max == pytest.approx((waits.approval.months - waits.filing.months) / 12)
        assert i485.duration.min == pytest.approx(30 / 12)
        assert stage(path, "gc").start_year == pytest.approx(i485.end_year)

    def test_existing_priority_date_blocked(self):
        """Test an Indian EB-2 priority date of January 2023 against a December 2013 cutoff."""
        profile = Profile(
            current_status=CurrentStatus.H1B,
            education="masters",
            country_of_birth=CountryOfBirth.INDIA,
            has_approved_i140=True,
            existing_priority_date=PriorityDate(day=15, month=1, year=2023),
            existing_priority_date_category=EBCategory.EB2,
        )
        path = compose("h1b_direct", "approved_i140", EB2, profile)

        assert [s.stage_id for s in path.stages] == ["h1b", "priority_wait", "i485", "gc"]
        wait = stage(path, "priority_wait")
        assert wait.cutoff == "Dec 2013"
        assert wait.note == "Wait until January 2023 is current for filing"
        assert wait.duration.max == pytest.approx(50)
        assert wait.velocity.confidence == 0.8
        assert not stage(path, "i485").is_concurrent

    def test_missing_filing_chart_uses_final_action(self, default_profile):
        snapshot = DEFAULT_SNAPSHOT.model_copy(update={"dates_for_filing": None})
        path = compose("tn_direct", "perm_route", EB3, default_profile, snapshot)
        assert stage(path, "priority_wait").cutoff == "Apr 2023"

    def test_marriage_is_not_bulletin_governed(self):
        path = compose("none", "marriage", MARRIAGE_BASED, Profile(is_married_to_us_citizen=True))
        assert not any(s.is_priority_wait for s in path.stages)

    def test_unparsable_as_of_uses_default(self, default_profile):
        broken = DEFAULT_SNAPSHOT.model_copy(update={"as_of": "sometime"})
        assert (
            compose("tn_direct", "perm_route", EB3, default_profile, broken).stages
            == compose("tn_direct", "perm_route", EB3, default_profile).stages
        )


class TestSnapshotDurations:
    """Test cases for processing times taken from the snapshot."""

    def test_dol_queues(self):
        pwd = resolve_duration(StageId.PWD, Duration(min=0, max=0), DEFAULT_SNAPSHOT)
        perm = resolve_duration(StageId.PERM, Duration(min=0, max=0), DEFAULT_SNAPSHOT)
        assert (pwd.min, pwd.max) == pytest.approx((4.8 / 12, 7 / 12))
        assert (perm.min, perm.max) == pytest.approx((15 / 12, 19 / 12))

    def test_petition_premium_and_regular(self):
        i140 = resolve_duration(StageId.I140, Duration(min=0, max=0), DEFAULT_SNAPSHOT)
        niw = resolve_duration(StageId.EB2NIW, Duration(min=0, max=0), DEFAULT_SNAPSHOT)
        assert (i140.min, i140.max) == pytest.approx((0.5 / 12, 9 / 12))
        assert i140.display == "15d-9mo"
        assert niw.min == pytest.approx(1.5 / 12)

    def test_i485_averages_service_centers(self):
        snapshot = DEFAULT_SNAPSHOT.model_copy(update={"uscis": {"I-485": [
            USCISFormTimes(service_center="National", min_months=8, max_months=12),
            USCISFormTimes(service_center="Field", min_months=12, max_months=24),
        ]}})
        i485 = resolve_duration(StageId.I485, Duration(min=0, max=0), snapshot)
        assert (i485.min, i485.max) == pytest.approx((10 / 12, 18 / 12))
        assert i485.display == "10-18 mo"

    def test_missing_sections_keep_static_ranges(self, default_profile):
        bare = ProcessingSnapshot(as_of="December 2025")
        path = compose("tn_direct", "perm_route", EB3, default_profile, bare)
        assert stage(path, "pwd").duration.max == 0.58
        assert stage(path, "perm").duration.max == 1.5
        assert stage(path, "i140").duration.max == 0.75

    def test_static_stage_ignores_snapshot(self):
        static = Duration(min=0.17, max=0.25, display="2-3 mo")
        assert resolve_duration(StageId.RECRUIT, static, DEFAULT_SNAPSHOT) == static

    def test_no_snapshot_matches_default_snapshot(self, default_profile):
        assert (
            compose("student_masters", "niw", EB2_NIW, default_profile)
            == compose("student_masters", "niw", EB2_NIW, default_profile, DEFAULT_SNAPSHOT)
        )


class TestEstimatedCost:
    """Test cases for filing-fee totals."""

    def test_fees_per_distinct_stage(self, default_profile):
        path = compose("tn_direct", "perm_route", EB3, default_profile)
        # TN border fee + I-140 with asylum fee + I-485 with EAD and travel document
        assert path.estimated_cost == 50 + (715 + 600) + (1440 + 260 + 630)

    def test_repeated_stage_charged_once(self):
        assert _estimated_cost(["tn", "gc", "tn"], DEFAULT_SNAPSHOT) == 50

    def test_snapshot_fees_override_defaults(self, default_profile):
        snapshot = DEFAULT_SNAPSHOT.model_copy(update={"fees": {"TN-BORDER": 100}})
        path = compose("tn_direct", "perm_route", EB3, default_profile, snapshot)
        assert path.estimated_cost == 100 + (715 + 600) + (1440 + 260 + 630)

    def test_lottery_flag(self, default_profile):
        assert compose("tn_to_h1b", "perm_route", EB3, default_profile).has_lottery
        assert not compose("tn_direct", "perm_route", EB3, default_profile).has_lottery
