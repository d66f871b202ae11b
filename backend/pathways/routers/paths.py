from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel

from pathways.data.defaults import DEFAULT_SNAPSHOT
from pathways.models.path import ComposedPath, WaitEstimate
from pathways.models.profile import CountryOfBirth, EBCategory, PriorityDate, Profile
from pathways.models.snapshot import ProcessingSnapshot
from pathways.simulation.composer import generate_paths
from pathways.simulation.rules import GC_METHODS, STATUS_PATHS
from pathways.simulation.stages import STAGE_CATALOG
from pathways.simulation.wait import calculate_wait, cutoff_for

router = APIRouter()


class PathRequest(BaseModel):
    profile: Profile = Profile()
    snapshot: ProcessingSnapshot | None = None  # omitted: built-in defaults


class PathResponse(BaseModel):
    as_of: str
    count: int
    paths: list[ComposedPath]


class WaitRequest(BaseModel):
    priority_date: PriorityDate
    category: EBCategory
    country_of_birth: CountryOfBirth
    chart: Literal["final_action", "dates_for_filing"] = "final_action"
    snapshot: ProcessingSnapshot | None = None


class WaitResponse(BaseModel):
    cutoff: str
    estimate: WaitEstimate


@router.post("", response_model=PathResponse)
async def compose_paths(request: PathRequest):
    """Every route to a green card for the profile, fastest and safest first."""
    snapshot = request.snapshot or DEFAULT_SNAPSHOT
    paths = generate_paths(request.profile, snapshot)
    return PathResponse(as_of=snapshot.as_of, count=len(paths), paths=paths)


@router.post("/wait", response_model=WaitResponse)
async def priority_date_wait(request: WaitRequest):
    """Estimate the Visa Bulletin wait for a single priority date."""
    snapshot = request.snapshot or DEFAULT_SNAPSHOT
    final_action = snapshot.final_action_dates or DEFAULT_SNAPSHOT.final_action_dates
    if request.chart == "dates_for_filing":
        chart = snapshot.dates_for_filing or final_action
    else:
        chart = final_action

    cutoff = cutoff_for(chart, request.category, request.country_of_birth)
    estimate = calculate_wait(
        request.priority_date.to_month_year(),
        cutoff,
        request.country_of_birth,
        request.category,
        snapshot.perm_statistics,
    )
    return WaitResponse(cutoff=cutoff, estimate=estimate)


@router.get("/snapshot/default", response_model=ProcessingSnapshot)
async def default_snapshot():
    """Government data the engine uses when no live snapshot is supplied."""
    return DEFAULT_SNAPSHOT


@router.get("/catalog")
async def catalog():
    """Rule tables and the stage catalog, for rendering labels and filters."""
    return {
        "status_paths": [p.model_dump(mode="json") for p in STATUS_PATHS],
        "gc_methods": [m.model_dump(mode="json") for m in GC_METHODS],
        "stages": [s.model_dump(mode="json") for s in STAGE_CATALOG.values()],
    }
