"""
Path Composer Tests

End-to-end path generation: categories, concrete profiles and the
properties every generated path set must hold.
"""
import itertools

import pytest

from pathways.data.defaults import DEFAULT_SNAPSHOT
from pathways.models.profile import (
    CountryOfBirth,
    CurrentStatus,
    EBCategory,
    Education,
    Experience,
    PriorityDate,
    Profile,
)
from pathways.simulation.composer import compute_category, generate_paths
from pathways.simulation.rules import (
    GC_METHODS_BY_ID,
    SELF_PETITION_CATEGORIES,
    STATUS_PATHS_BY_ID,
)

QUALIFICATION_SETS = [
    {},
    {"is_stem": True, "has_extraordinary_ability": True},
    {"is_married_to_us_citizen": True, "has_investment_capital": True},
    {"is_executive": True, "is_outstanding_researcher": True, "experience": Experience.GT5},
    {
        "has_approved_i140": True,
        "existing_priority_date": PriorityDate(day=1, month=3, year=2020),
        "existing_priority_date_category": EBCategory.EB2,
    },
]


def profile_sweep(educations=tuple(Education)):
    for status, country, education, extras in itertools.product(
        CurrentStatus, CountryOfBirth, educations, QUALIFICATION_SETS,
    ):
        yield Profile(current_status=status, country_of_birth=country, education=education, **extras)


class TestComputeCategory:
    """Test cases for the category a method files under."""

    def test_fixed_category_wins(self):
        profile = Profile(education=Education.HIGHSCHOOL)
        assert compute_category(profile, GC_METHODS_BY_ID["eb5"], STATUS_PATHS_BY_ID["none"]) == "EB-5"

    @pytest.mark.parametrize("education,experience,expected", [
        (Education.PHD, Experience.LT2, "EB-2"),
        (Education.MASTERS, Experience.LT2, "EB-2"),
        (Education.BACHELORS, Experience.GT5, "EB-2"),
        (Education.BACHELORS, Experience.TWO_TO_FIVE, "EB-3"),
        (Education.HIGHSCHOOL, Experience.GT5, "EB-3"),
    ])
    def test_employer_category_from_education(self, education, experience, expected):
        profile = Profile(education=education, experience=experience)
        assert compute_category(profile, GC_METHODS_BY_ID["perm_route"], STATUS_PATHS_BY_ID["tn_direct"]) == expected

    def test_granted_degree_sets_category(self, default_profile):
        perm = GC_METHODS_BY_ID["perm_route"]
        assert compute_category(default_profile, perm, STATUS_PATHS_BY_ID["student_masters"]) == "EB-2"
        assert compute_category(default_profile, perm, STATUS_PATHS_BY_ID["tn_direct"]) == "EB-3"

    def test_approved_petition_keeps_its_category(self):
        profile = Profile(
            education=Education.MASTERS,
            has_approved_i140=True,
            existing_priority_date=PriorityDate(day=1, month=6, year=2019),
            existing_priority_date_category=EBCategory.EB3,
        )
        method = GC_METHODS_BY_ID["approved_i140"]
        assert compute_category(profile, method, STATUS_PATHS_BY_ID["tn_direct"]) == "EB-3"


class TestGeneratePaths:
    """Test cases for concrete profiles."""

    def test_default_profile(self, default_profile):
        ids = {p.id for p in generate_paths(default_profile)}
        assert ids == {
            "student_masters_perm_route",
            "student_masters_niw",
            "student_phd_perm_route",
            "student_phd_niw",
            "tn_direct_perm_route",
            "tn_to_h1b_perm_route",
            "l1b_perm_route",
        }

    def test_existing_priority_date_behind_filing_cutoff(self):
        """Test that a January 2023 Indian EB-2 date waits before the I-485."""
        profile = Profile(
            current_status=CurrentStatus.H1B,
            education=Education.MASTERS,
            country_of_birth=CountryOfBirth.INDIA,
            has_approved_i140=True,
            existing_priority_date=PriorityDate(day=15, month=1, year=2023),
            existing_priority_date_category=EBCategory.EB2,
        )
        paths = {p.id: p for p in generate_paths(profile)}
        path = paths["h1b_direct_approved_i140"]

        assert path.category == "EB-2"
        stage_ids = [s.stage_id for s in path.stages]
        assert "priority_wait" in stage_ids
        assert stage_ids.index("priority_wait") < stage_ids.index("i485")
        i485 = next(s for s in path.stages if s.stage_id == "i485")
        assert not i485.is_concurrent

    def test_bachelors_with_experience_reaches_higher_category(self):
        profile = Profile(education=Education.BACHELORS, experience=Experience.GT5)
        paths = generate_paths(profile)
        categories = {p.category for p in paths}

        assert "EB-2" in categories
        assert "EB-2 NIW" in categories
        assert next(p for p in paths if p.id == "tn_direct_perm_route").category == "EB-2"

    def test_marriage_is_fastest(self):
        paths = generate_paths(Profile(is_married_to_us_citizen=True))
        marriage = next(p for p in paths if p.id == "none_marriage")

        assert paths[0] == marriage
        assert marriage.total_years.max == min(p.total_years.max for p in paths)

    def test_investor_without_degree(self):
        profile = Profile(education=Education.HIGHSCHOOL, has_investment_capital=True)
        paths = {p.id: p for p in generate_paths(profile)}

        assert "none_eb5" in paths
        assert paths["none_eb5"].category == "EB-5"
        assert paths["none_eb5"].estimated_cost > 11160

    def test_extraordinary_ability_self_petition(self):
        paths = {p.id: p for p in generate_paths(Profile(has_extraordinary_ability=True))}

        assert "o1_eb1a" in paths
        assert "none_eb1a" in paths
        assert paths["none_eb1a"].is_self_petition
        assert paths["none_eb1a"].name == "EB-1A (Direct)"

    def test_executive_transfer(self):
        paths = {p.id for p in generate_paths(Profile(is_executive=True))}
        assert "l1a_eb1c" in paths
        assert "tn_direct_eb1c" not in paths

    def test_default_snapshot_is_implicit(self, default_profile):
        assert generate_paths(default_profile) == generate_paths(default_profile, DEFAULT_SNAPSHOT)


class TestProperties:
    """Test cases for invariants over a sweep of profiles."""

    def test_deterministic(self):
        for profile in profile_sweep(educations=(Education.BACHELORS, Education.PHD)):
            first = generate_paths(profile)
            second = generate_paths(profile)
            assert [p.model_dump() for p in first] == [p.model_dump() for p in second]

    def test_more_education_never_removes_a_path(self):
        """Test monotonicity, apart from the master's program hidden from master's holders."""
        for profile in profile_sweep(educations=(Education.BACHELORS,)):
            at_bachelors = {p.id for p in generate_paths(profile)}
            at_masters = {p.id for p in generate_paths(profile.model_copy(update={"education": Education.MASTERS}))}
            assert {i for i in at_bachelors - at_masters if not i.startswith("student_masters_")} == set(), profile

    def test_paths_are_well_formed(self):
        for profile in profile_sweep():
            for path in generate_paths(profile):
                stage_ids = [s.stage_id for s in path.stages]

                assert path.stages[-1].stage_id == "gc"
                assert path.estimated_cost > 0
                assert path.is_self_petition == (path.category in SELF_PETITION_CATEGORIES)
                assert path.has_lottery == ("h1b" in stage_ids)
                assert path.total_years.min <= path.total_years.max

                i485 = [s for s in path.stages if s.stage_id == "i485"]
                if "priority_wait" in stage_ids:
                    assert not any(s.is_concurrent for s in i485)

                for track in ("status", "gc"):
                    starts = [s.start_year for s in path.stages if s.track == track]
                    assert starts == sorted(starts)

    def test_ids_unique(self):
        for profile in profile_sweep(educations=(Education.MASTERS,)):
            ids = [p.id for p in generate_paths(profile)]
            assert len(ids) == len(set(ids))
