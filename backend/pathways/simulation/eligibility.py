"""
Eligibility Matcher

Decides whether a profile can start a status path, and whether a GC method
can be layered on top of it.
"""

from pathways.models.profile import (
    CountryOfBirth,
    Education,
    Experience,
    Profile,
    education_rank,
    experience_rank,
    needs_perm,
)
from pathways.simulation.rules import GCMethod, Requirements, StatusPath

USMCA_BIRTH_COUNTRIES = (CountryOfBirth.CANADA, CountryOfBirth.MEXICO)

# Profile flag satisfying each special-qualification requirement
_QUALIFICATION_FLAGS = {
    "extraordinary_ability": "has_extraordinary_ability",
    "outstanding_researcher": "is_outstanding_researcher",
    "executive": "is_executive",
    "married": "is_married_to_us_citizen",
    "investor": "has_investment_capital",
}


def _satisfies_min_education(
    education: Education,
    experience: Experience,
    minimum: Education,
    allows_substitution: bool,
) -> bool:
    if education_rank(education) >= education_rank(minimum):
        return True
    # Bachelor's + 5 years progressive experience is equivalent to a master's
    return (
        allows_substitution
        and minimum == Education.MASTERS
        and education == Education.BACHELORS
        and experience == Experience.GT5
    )


def meets_requirements(
    requirements: Requirements,
    profile: Profile,
    education: Education | None = None,
) -> bool:
    """
    Check a requirements predicate against a profile.

    `education` overrides the profile's education, for methods evaluated
    against the degree a status path grants.
    """
    education = Education(education if education is not None else profile.education)

    if requirements.min_education is not None and not _satisfies_min_education(
        education,
        profile.experience,
        requirements.min_education,
        requirements.allows_degree_substitution,
    ):
        return False

    if requirements.max_education is not None:
        if education_rank(education) > education_rank(requirements.max_education):
            return False

    if requirements.min_experience is not None:
        if experience_rank(profile.experience) < experience_rank(requirements.min_experience):
            return False

    for requirement, flag in _QUALIFICATION_FLAGS.items():
        if getattr(requirements, requirement) and not getattr(profile, flag):
            return False

    return True


def is_usmca_eligible(profile: Profile) -> bool:
    return profile.country_of_birth in USMCA_BIRTH_COUNTRIES or profile.is_usmca_citizen


def is_eligible_status_path(profile: Profile, status_path: StatusPath) -> bool:
    if profile.current_status not in status_path.valid_from:
        return False
    if not meets_requirements(status_path.requirements, profile):
        return False
    if status_path.requires_usmca_citizenship and not is_usmca_eligible(profile):
        return False
    return True


def is_compatible(status_path: StatusPath, method: GCMethod, profile: Profile) -> bool:
    """Whether `method` can be filed from `status_path` for this profile."""
    if method.requires_prior_status is not None:
        if method.requires_prior_status not in status_path.capabilities:
            return False

    # Labor certification needs an employer-backed status to file from
    if method.requires_perm and status_path.gc_start_offset is None:
        return False

    if needs_perm(profile):
        if method.reuses_approved_petition:
            return False
    elif method.requires_perm:
        return False

    effective_education = status_path.grants_education or profile.education
    return meets_requirements(method.requirements, profile, education=effective_education)
