"""
Path Composer

Cross-products every status path the profile can start with every GC method
compatible with it, schedules each combination and ranks the result.
"""

import logging

from pathways.data.defaults import DEFAULT_SNAPSHOT
from pathways.models.path import ComposedPath
from pathways.models.profile import EBCategory, Education, Experience, Profile
from pathways.models.snapshot import ProcessingSnapshot
from pathways.simulation.eligibility import is_compatible, is_eligible_status_path
from pathways.simulation.ranker import sort_paths
from pathways.simulation.rules import (
    CATEGORY_FOR_BULLETIN_ROW,
    EB2,
    EB3,
    GC_METHODS,
    STATUS_PATHS,
    GCMethod,
    StatusPath,
)
from pathways.simulation.scheduler import compose_path

logger = logging.getLogger(__name__)


def compute_category(profile: Profile, method: GCMethod, status_path: StatusPath) -> str:
    """
    Green card category a method files under.

    Degree-based categories use the degree the status path grants, not the
    one the applicant holds today.
    """
    if method.fixed_category:
        return method.fixed_category

    if method.reuses_approved_petition and profile.existing_priority_date_category is not None:
        return CATEGORY_FOR_BULLETIN_ROW[EBCategory(profile.existing_priority_date_category)]

    education = status_path.grants_education or profile.education
    if education in (Education.MASTERS, Education.PHD):
        return EB2
    if education == Education.BACHELORS and profile.experience == Experience.GT5:
        return EB2
    return EB3


def generate_paths(profile: Profile, snapshot: ProcessingSnapshot | None = None) -> list[ComposedPath]:
    snapshot = snapshot or DEFAULT_SNAPSHOT

    paths: list[ComposedPath] = []
    for status_path in STATUS_PATHS:
        if not is_eligible_status_path(profile, status_path):
            continue
        for method in GC_METHODS:
            if not is_compatible(status_path, method, profile):
                continue
            category = compute_category(profile, method, status_path)
            paths.append(compose_path(status_path, method, category, profile, snapshot))

    logger.debug("Composed %d paths for %s / %s", len(paths), profile.current_status, profile.education)
    return sort_paths(paths)
