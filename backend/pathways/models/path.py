from typing import Literal

from pydantic import BaseModel, ConfigDict


class Duration(BaseModel):
    """Duration range in years."""
    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    display: str = ""


class VelocityExplanation(BaseModel):
    model_config = ConfigDict(frozen=True)

    advancement_months_per_year: float
    velocity_ratio: float  # annual demand / annual supply
    wait_multiplier: float  # months waited per month behind the cutoff
    annual_demand: int | None = None
    annual_supply: int | None = None
    historical_months_per_year: float | None = None
    confidence: float
    summary: str


class WaitEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    months: int
    confidence: float
    range_min: int
    range_max: int
    explanation: VelocityExplanation


class ComposedStage(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage_id: str
    duration: Duration
    track: Literal["status", "gc"]
    start_year: float
    note: str | None = None
    is_concurrent: bool = False
    is_priority_wait: bool = False
    cutoff: str | None = None  # only on priority wait stages
    velocity: VelocityExplanation | None = None  # only on priority wait stages

    @property
    def end_year(self) -> float:
        return self.start_year + self.duration.max


class ComposedPath(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str  # "{status_path_id}_{gc_method_id}"
    name: str
    description: str
    category: str
    total_years: Duration
    stages: list[ComposedStage]
    estimated_cost: int
    has_lottery: bool
    is_self_petition: bool

    @property
    def green_card_year(self) -> float:
        """Start of the terminal green-card milestone."""
        return self.stages[-1].start_year
