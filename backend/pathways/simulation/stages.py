"""
Stage catalog.

Every stage a rule table can reference is a StageId member, and every member
has exactly one StageSpec, so a rule-table stage always resolves.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class StageId(str, Enum):
    # Status (work authorization) stages
    F1 = "f1"
    OPT = "opt"
    TN = "tn"
    H1B = "h1b"
    L1A = "l1a"
    L1B = "l1b"
    O1 = "o1"
    # Labor certification
    PWD = "pwd"
    RECRUIT = "recruit"
    PERM = "perm"
    # Petitions
    I140 = "i140"
    EB1 = "eb1"
    EB2NIW = "eb2niw"
    # Residency
    I485 = "i485"
    MARRIAGE = "marriage"
    EB5 = "eb5"
    # Synthetic
    PRIORITY_WAIT = "priority_wait"
    GC = "gc"


class StageSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: StageId
    label: str
    filings: tuple[str, ...] = ()  # fee table form ids
    lottery_gated: bool = False
    is_petition: bool = False  # establishes the priority date
    is_residency_application: bool = False  # the I-485 clock
    is_terminal: bool = False


_SPECS = [
    StageSpec(id=StageId.F1, label="F-1 Student", filings=("I-901-SEVIS", "DS-160")),
    StageSpec(id=StageId.OPT, label="OPT", filings=("I-765",)),
    StageSpec(id=StageId.TN, label="TN Visa", filings=("TN-BORDER",)),
    StageSpec(id=StageId.H1B, label="H-1B", filings=("H1B-REGISTRATION", "I-129-H1B"), lottery_gated=True),
    StageSpec(id=StageId.L1A, label="L-1A", filings=("I-129-L", "FRAUD-PREVENTION")),
    StageSpec(id=StageId.L1B, label="L-1B", filings=("I-129-L", "FRAUD-PREVENTION")),
    StageSpec(id=StageId.O1, label="O-1", filings=("I-129-O",)),
    StageSpec(id=StageId.PWD, label="Prevailing Wage"),
    StageSpec(id=StageId.RECRUIT, label="Recruitment"),
    StageSpec(id=StageId.PERM, label="PERM"),
    StageSpec(id=StageId.I140, label="I-140", filings=("I-140", "ASYLUM-PROGRAM"), is_petition=True),
    StageSpec(id=StageId.EB1, label="EB-1 I-140", filings=("I-140", "ASYLUM-PROGRAM"), is_petition=True),
    StageSpec(id=StageId.EB2NIW, label="NIW I-140", filings=("I-140", "ASYLUM-PROGRAM"), is_petition=True),
    StageSpec(
        id=StageId.I485,
        label="I-485",
        filings=("I-485", "I-765", "I-131"),
        is_residency_application=True,
    ),
    StageSpec(id=StageId.MARRIAGE, label="Marriage I-130 + I-485", filings=("I-130", "I-485")),
    StageSpec(id=StageId.EB5, label="EB-5 I-526E", filings=("I-526E",), is_petition=True),
    StageSpec(id=StageId.PRIORITY_WAIT, label="Priority Date Wait"),
    StageSpec(id=StageId.GC, label="Green Card", is_terminal=True),
]

STAGE_CATALOG: dict[StageId, StageSpec] = {spec.id: spec for spec in _SPECS}

_missing = set(StageId) - set(STAGE_CATALOG)
if _missing:
    raise RuntimeError(f"Stage catalog missing specs for: {sorted(s.value for s in _missing)}")


def stage_spec(stage_id: StageId | str) -> StageSpec:
    return STAGE_CATALOG[StageId(stage_id)]
