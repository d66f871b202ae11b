import calendar
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, model_validator


class Education(str, Enum):
    HIGHSCHOOL = "highschool"
    BACHELORS = "bachelors"
    MASTERS = "masters"
    PHD = "phd"


class Experience(str, Enum):
    LT2 = "lt2"
    TWO_TO_FIVE = "2to5"
    GT5 = "gt5"


class CurrentStatus(str, Enum):
    CANADA = "canada"  # not in the US yet
    F1 = "f1"
    OPT = "opt"
    TN = "tn"
    H1B = "h1b"
    OTHER = "other"


class CountryOfBirth(str, Enum):
    CANADA = "canada"
    MEXICO = "mexico"
    INDIA = "india"
    CHINA = "china"
    OTHER = "other"


class EBCategory(str, Enum):
    EB1 = "eb1"
    EB2 = "eb2"
    EB3 = "eb3"


EDUCATION_RANK: dict[Education, int] = {
    Education.HIGHSCHOOL: 0,
    Education.BACHELORS: 1,
    Education.MASTERS: 2,
    Education.PHD: 3,
}

EXPERIENCE_RANK: dict[Experience, int] = {
    Experience.LT2: 0,
    Experience.TWO_TO_FIVE: 1,
    Experience.GT5: 2,
}


def education_rank(education: Education) -> int:
    return EDUCATION_RANK[Education(education)]


def experience_rank(experience: Experience) -> int:
    return EXPERIENCE_RANK[Experience(experience)]


class MonthYear(NamedTuple):
    """Month-resolution date, ordered chronologically."""
    year: int
    month: int  # 1-12

    def __str__(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"


class PriorityDate(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: int
    month: int
    year: int

    @model_validator(mode="after")
    def _check_calendar(self):
        if not 1900 <= self.year <= 2100:
            raise ValueError(f"year out of range: {self.year}")
        if not 1 <= self.month <= 12:
            raise ValueError(f"month out of range: {self.month}")
        days_in_month = calendar.monthrange(self.year, self.month)[1]
        if not 1 <= self.day <= days_in_month:
            raise ValueError(f"day out of range for {self.year}-{self.month:02d}: {self.day}")
        return self

    @classmethod
    def from_iso(cls, value: str) -> "PriorityDate":
        """Parse a YYYY-MM-DD string."""
        parts = value.split("-")
        if len(parts) != 3 or not all(p.isdigit() for p in parts):
            raise ValueError(f"not an ISO date: {value!r}")
        year, month, day = (int(p) for p in parts)
        return cls(day=day, month=month, year=year)

    def to_month_year(self) -> MonthYear:
        # Bulletin cutoffs have no day resolution
        return MonthYear(self.year, self.month)

    def to_iso(self) -> str:
        return f"{self.year}-{self.month:02d}-{self.day:02d}"


class Profile(BaseModel):
    """An individual's immigration profile (the filter state driving path generation)."""
    model_config = ConfigDict(frozen=True)

    education: Education = Education.BACHELORS
    experience: Experience = Experience.LT2
    current_status: CurrentStatus = CurrentStatus.CANADA
    country_of_birth: CountryOfBirth = CountryOfBirth.CANADA
    has_extraordinary_ability: bool = False
    is_outstanding_researcher: bool = False
    is_executive: bool = False
    is_stem: bool = False
    is_married_to_us_citizen: bool = False
    has_investment_capital: bool = False
    is_usmca_citizen: bool = False  # Canadian/Mexican citizen born elsewhere
    has_approved_i140: bool = False
    needs_new_perm: bool | None = None  # switching employers with an approved I-140
    existing_priority_date: PriorityDate | None = None
    existing_priority_date_category: EBCategory | None = None

    @model_validator(mode="after")
    def _priority_date_has_category(self):
        if self.existing_priority_date is not None and self.existing_priority_date_category is None:
            raise ValueError("existing_priority_date requires existing_priority_date_category")
        return self


def needs_perm(profile: Profile) -> bool:
    """Whether a new labor certification is required for employer-sponsored routes."""
    if profile.has_approved_i140 and not profile.needs_new_perm:
        return False
    return True
