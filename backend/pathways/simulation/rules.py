"""
Rule tables: ways to hold work authorization (status paths) and ways to
file for the green card (GC methods), each with its eligibility requirements.

Durations are in years. Stages whose processing time is published by
DOL/USCIS are overridden from the snapshot at composition time; the ranges
here are the fallback.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_serializer

from pathways.models.path import Duration
from pathways.models.profile import CurrentStatus, EBCategory, Education, Experience
from pathways.simulation.stages import StageId


class Capability(str, Enum):
    EMPLOYER_SPONSORSHIP = "employer_sponsorship"  # employer can run PERM / I-140 during this status
    MULTINATIONAL_EXECUTIVE = "multinational_executive"  # intracompany executive transfer


class Requirements(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_education: Education | None = None
    max_education: Education | None = None  # hides "go back to school" paths
    min_experience: Experience | None = None
    allows_degree_substitution: bool = False  # bachelor's + 5 yr counts as master's
    extraordinary_ability: bool = False
    outstanding_researcher: bool = False
    executive: bool = False
    married: bool = False
    investor: bool = False


class StatusStage(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage_id: StageId
    duration: Duration
    note: str | None = None
    completes_degree: bool = False
    post_graduation: bool = False  # length depends on technical (STEM) field


class StatusPath(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    valid_from: frozenset[CurrentStatus]
    requirements: Requirements = Requirements()
    stages: tuple[StatusStage, ...] = ()
    gc_start_offset: float | None = None  # years from path start; None = no employer filing
    grants_education: Education | None = None
    capabilities: frozenset[Capability] = frozenset()
    requires_usmca_citizenship: bool = False

    @field_serializer("valid_from", "capabilities")
    def serialize_in_declaration_order(self, values: frozenset[Enum]) -> list[str]:
        # sets serialize in hash order, which varies between processes
        return [v.value for v in sorted(values, key=lambda v: list(type(v)).index(v))]


class GCStage(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage_id: StageId
    duration: Duration
    concurrent: bool = False  # runs alongside the previous stage
    note: str | None = None


class GCMethod(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    requires_perm: bool
    stages: tuple[GCStage, ...]
    requirements: Requirements = Requirements()
    fixed_category: str | None = None
    requires_prior_status: Capability | None = None
    reuses_approved_petition: bool = False  # approved I-140 holders staying with their employer
    uses_priority_date: bool = True


# ============== CATEGORIES ==============

EB1A = "EB-1A"
EB1B = "EB-1B"
EB1C = "EB-1C"
EB2 = "EB-2"
EB2_NIW = "EB-2 NIW"
EB3 = "EB-3"
MARRIAGE_BASED = "Marriage-based"
EB5 = "EB-5"

# Category label -> Visa Bulletin row; None when not governed by the EB bulletin
BULLETIN_ROWS: dict[str, EBCategory | None] = {
    EB1A: EBCategory.EB1,
    EB1B: EBCategory.EB1,
    EB1C: EBCategory.EB1,
    EB2: EBCategory.EB2,
    EB2_NIW: EBCategory.EB2,
    EB3: EBCategory.EB3,
    MARRIAGE_BASED: None,
    EB5: None,
}

CATEGORY_FOR_BULLETIN_ROW: dict[EBCategory, str] = {
    EBCategory.EB1: EB1A,
    EBCategory.EB2: EB2,
    EBCategory.EB3: EB3,
}

# No employer sponsor
SELF_PETITION_CATEGORIES = frozenset({EB1A, EB2_NIW})


def bulletin_row(category: str) -> EBCategory | None:
    if category not in BULLETIN_ROWS:
        raise ValueError(f"Unknown green card category: {category!r}")
    return BULLETIN_ROWS[category]


def _d(min_years: float, max_years: float, display: str) -> Duration:
    return Duration(min=min_years, max=max_years, display=display)


_ALL_STATUSES = frozenset(CurrentStatus)
_SPONSORABLE = frozenset({Capability.EMPLOYER_SPONSORSHIP})


# ============== STATUS PATHS ==============

STATUS_PATHS: tuple[StatusPath, ...] = (
    StatusPath(
        id="student_masters",
        name="Student → Master's",
        description="Get a US Master's degree to qualify for EB-2. Work on OPT while pursuing green card",
        valid_from=_ALL_STATUSES,
        requirements=Requirements(min_education=Education.BACHELORS, max_education=Education.BACHELORS),
        stages=(
            StatusStage(stage_id=StageId.F1, duration=_d(1.5, 2, "1.5-2 yr"), note="Master's program",
                        completes_degree=True),
            StatusStage(stage_id=StageId.OPT, duration=_d(1, 3, "1-3 yr"), note="STEM: up to 3 years",
                        post_graduation=True),
        ),
        gc_start_offset=1.5,
        grants_education=Education.MASTERS,
        capabilities=_SPONSORABLE,
    ),
    StatusPath(
        id="student_phd",
        name="Student → PhD",
        description="Get a US PhD. Strong for NIW/EB-1A self-petition. Work on OPT while pursuing green card",
        valid_from=_ALL_STATUSES,
        requirements=Requirements(min_education=Education.BACHELORS, max_education=Education.MASTERS),
        stages=(
            StatusStage(stage_id=StageId.F1, duration=_d(4, 6, "4-6 yr"), note="PhD program",
                        completes_degree=True),
            StatusStage(stage_id=StageId.OPT, duration=_d(1, 3, "1-3 yr"), note="STEM: up to 3 years",
                        post_graduation=True),
        ),
        gc_start_offset=4,
        grants_education=Education.PHD,
        capabilities=_SPONSORABLE,
    ),
    StatusPath(
        id="student_bachelors",
        name="Student → Bachelor's",
        description="Get a US Bachelor's degree, then work on OPT while pursuing green card",
        valid_from=frozenset({CurrentStatus.CANADA, CurrentStatus.F1}),
        requirements=Requirements(max_education=Education.HIGHSCHOOL),
        stages=(
            StatusStage(stage_id=StageId.F1, duration=_d(4, 4, "4 yr"), note="Bachelor's program",
                        completes_degree=True),
            StatusStage(stage_id=StageId.OPT, duration=_d(1, 3, "1-3 yr"), note="STEM: up to 3 years",
                        post_graduation=True),
        ),
        gc_start_offset=4,
        grants_education=Education.BACHELORS,
        capabilities=_SPONSORABLE,
    ),
    StatusPath(
        id="tn_direct",
        name="TN Professional",
        description="TN visa for USMCA professionals. Apply at the border or via I-129 change of status",
        valid_from=frozenset({CurrentStatus.CANADA, CurrentStatus.TN, CurrentStatus.H1B,
                              CurrentStatus.F1, CurrentStatus.OPT}),
        requirements=Requirements(min_education=Education.BACHELORS),
        stages=(
            StatusStage(stage_id=StageId.TN, duration=_d(2, 3, "2-3 yr"), note="Renewable indefinitely"),
        ),
        gc_start_offset=0,
        capabilities=_SPONSORABLE,
        requires_usmca_citizenship=True,
    ),
    StatusPath(
        id="opt_h1b",
        name="OPT → H-1B",
        description="Transition from OPT to H-1B via lottery while pursuing green card",
        valid_from=frozenset({CurrentStatus.F1, CurrentStatus.OPT}),
        requirements=Requirements(min_education=Education.BACHELORS),
        stages=(
            StatusStage(stage_id=StageId.OPT, duration=_d(1, 1.5, "1-1.5 yr")),
            StatusStage(stage_id=StageId.H1B, duration=_d(1, 2, "1-2 yr"), note="If lottery selected"),
        ),
        gc_start_offset=0,
        capabilities=_SPONSORABLE,
    ),
    StatusPath(
        id="h1b_direct",
        name="H-1B Direct",
        description="Continue on H-1B status while pursuing green card",
        valid_from=frozenset({CurrentStatus.H1B}),
        requirements=Requirements(min_education=Education.BACHELORS),
        stages=(
            StatusStage(stage_id=StageId.H1B, duration=_d(1, 6, "1-6 yr")),
        ),
        gc_start_offset=0,
        capabilities=_SPONSORABLE,
    ),
    StatusPath(
        id="opt_to_tn",
        name="OPT → TN",
        description="Use OPT initially, then get TN at border. No lottery required",
        valid_from=frozenset({CurrentStatus.F1, CurrentStatus.OPT}),
        requirements=Requirements(min_education=Education.BACHELORS),
        stages=(
            StatusStage(stage_id=StageId.OPT, duration=_d(0.5, 1, "6-12 mo"), note="Initial work authorization"),
            StatusStage(stage_id=StageId.TN, duration=_d(2, 3, "2-3 yr"), note="Get TN at border"),
        ),
        gc_start_offset=0,
        capabilities=_SPONSORABLE,
        requires_usmca_citizenship=True,
    ),
    StatusPath(
        id="tn_to_h1b",
        name="TN → H-1B",
        description="Start on TN, then switch to H-1B. H-1B allows dual intent for green card",
        valid_from=frozenset({CurrentStatus.CANADA, CurrentStatus.TN}),
        requirements=Requirements(min_education=Education.BACHELORS),
        stages=(
            StatusStage(stage_id=StageId.TN, duration=_d(1, 2, "1-2 yr"), note="Initial TN status"),
            StatusStage(stage_id=StageId.H1B, duration=_d(1, 3, "1-3 yr"), note="H-1B via lottery"),
        ),
        gc_start_offset=0,
        capabilities=_SPONSORABLE,
        requires_usmca_citizenship=True,
    ),
    StatusPath(
        id="l1a",
        name="L-1A Executive",
        description="Intracompany transfer as executive/manager, then EB-1C green card",
        valid_from=frozenset({CurrentStatus.CANADA, CurrentStatus.OTHER}),
        requirements=Requirements(executive=True),
        stages=(
            StatusStage(stage_id=StageId.L1A, duration=_d(1, 2, "1-2 yr"), note="Establish US role"),
        ),
        gc_start_offset=None,
        capabilities=frozenset({Capability.MULTINATIONAL_EXECUTIVE}),
    ),
    StatusPath(
        id="l1b",
        name="L-1B Specialized",
        description="Intracompany transfer with specialized knowledge. Requires PERM for green card",
        valid_from=frozenset({CurrentStatus.CANADA, CurrentStatus.OTHER}),
        requirements=Requirements(min_education=Education.BACHELORS),
        stages=(
            StatusStage(stage_id=StageId.L1B, duration=_d(1, 5, "1-5 yr"), note="5-year max stay"),
        ),
        gc_start_offset=0.5,
        capabilities=_SPONSORABLE,
    ),
    StatusPath(
        id="o1",
        name="O-1 Extraordinary",
        description="Work visa for extraordinary ability. Strong path to EB-1A green card",
        valid_from=frozenset({CurrentStatus.CANADA, CurrentStatus.TN, CurrentStatus.H1B,
                              CurrentStatus.OPT, CurrentStatus.OTHER}),
        requirements=Requirements(extraordinary_ability=True),
        stages=(
            StatusStage(stage_id=StageId.O1, duration=_d(1, 3, "1-3 yr"), note="Renewable"),
        ),
        gc_start_offset=None,  # O-1 holders typically self-petition
    ),
    StatusPath(
        id="none",
        name="Direct Filing",
        description="File directly for green card without employer sponsorship",
        valid_from=_ALL_STATUSES,
    ),
)


# ============== GC METHODS ==============

_I485 = GCStage(stage_id=StageId.I485, duration=_d(0.88, 1.5, "10-18 mo"), concurrent=True,
                note="Concurrent with I-140")
_GC = GCStage(stage_id=StageId.GC, duration=_d(0, 0, ""))

GC_METHODS: tuple[GCMethod, ...] = (
    GCMethod(
        id="perm_route",
        name="PERM",
        requires_perm=True,
        stages=(
            GCStage(stage_id=StageId.PWD, duration=_d(0.42, 0.58, "5-7 mo")),
            GCStage(stage_id=StageId.RECRUIT, duration=_d(0.17, 0.25, "2-3 mo")),
            GCStage(stage_id=StageId.PERM, duration=_d(1.17, 1.5, "14-18 mo")),
            GCStage(stage_id=StageId.I140, duration=_d(0.04, 0.75, "15d-9mo"),
                    note="15 business days w/ premium"),
            GCStage(stage_id=StageId.I485, duration=_d(0.88, 1.5, "10-18 mo"), concurrent=True),
            _GC,
        ),
        requirements=Requirements(min_education=Education.BACHELORS),
        requires_prior_status=Capability.EMPLOYER_SPONSORSHIP,
    ),
    GCMethod(
        id="approved_i140",
        name="Approved I-140",
        requires_perm=False,
        stages=(
            GCStage(stage_id=StageId.I485, duration=_d(0.88, 1.5, "10-18 mo"),
                    note="Filed on approved I-140, no new PERM"),
            _GC,
        ),
        requires_prior_status=Capability.EMPLOYER_SPONSORSHIP,
        reuses_approved_petition=True,
    ),
    GCMethod(
        id="niw",
        name="EB-2 NIW",
        requires_perm=False,
        stages=(
            GCStage(stage_id=StageId.EB2NIW, duration=_d(0.15, 0.75, "2-9 mo"),
                    note="45 business days (~9 wks) w/ premium"),
            _I485,
            _GC,
        ),
        requirements=Requirements(min_education=Education.MASTERS, allows_degree_substitution=True),
        fixed_category=EB2_NIW,
    ),
    GCMethod(
        id="eb1a",
        name="EB-1A",
        requires_perm=False,
        stages=(
            GCStage(stage_id=StageId.EB1, duration=_d(0.04, 0.75, "15d-9mo"), note="15 business days w/ premium"),
            _I485,
            _GC,
        ),
        requirements=Requirements(extraordinary_ability=True),
        fixed_category=EB1A,
    ),
    GCMethod(
        id="eb1b",
        name="EB-1B",
        requires_perm=False,
        stages=(
            GCStage(stage_id=StageId.EB1, duration=_d(0.04, 0.75, "15d-9mo"), note="15 business days w/ premium"),
            _I485,
            _GC,
        ),
        requirements=Requirements(outstanding_researcher=True, min_education=Education.MASTERS,
                                  allows_degree_substitution=True),
        fixed_category=EB1B,
    ),
    GCMethod(
        id="eb1c",
        name="EB-1C",
        requires_perm=False,
        stages=(
            GCStage(stage_id=StageId.EB1, duration=_d(0.04, 0.75, "15d-9mo"), note="15 business days w/ premium"),
            _I485,
            _GC,
        ),
        requirements=Requirements(executive=True),
        fixed_category=EB1C,
        requires_prior_status=Capability.MULTINATIONAL_EXECUTIVE,
    ),
    GCMethod(
        id="marriage",
        name="Marriage",
        requires_perm=False,
        stages=(
            GCStage(stage_id=StageId.MARRIAGE, duration=_d(0.7, 1.2, "8-14 mo"), note="I-130 + I-485 concurrent"),
            GCStage(stage_id=StageId.GC, duration=_d(0, 0, "Done!")),
        ),
        requirements=Requirements(married=True),
        fixed_category=MARRIAGE_BASED,
        uses_priority_date=False,
    ),
    GCMethod(
        id="eb5",
        name="EB-5",
        requires_perm=False,
        stages=(
            GCStage(stage_id=StageId.EB5, duration=_d(2, 3, "2-3 yr"), note="I-526E petition"),
            GCStage(stage_id=StageId.I485, duration=_d(1, 2, "1-2 yr"), note="Conditional GC"),
            GCStage(stage_id=StageId.GC, duration=_d(0, 0, "Done!")),
        ),
        requirements=Requirements(investor=True),
        fixed_category=EB5,
        uses_priority_date=False,
    ),
)

STATUS_PATHS_BY_ID: dict[str, StatusPath] = {p.id: p for p in STATUS_PATHS}
GC_METHODS_BY_ID: dict[str, GCMethod] = {m.id: m for m in GC_METHODS}
