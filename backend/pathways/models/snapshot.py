from pydantic import BaseModel, ConfigDict


class DOLQueue(BaseModel):
    model_config = ConfigDict(frozen=True)

    currently_processing: str  # "Month Year"
    estimated_months: float


class PermQueues(BaseModel):
    model_config = ConfigDict(frozen=True)

    analyst_review: DOLQueue
    audit_review: DOLQueue


class DOLTimes(BaseModel):
    model_config = ConfigDict(frozen=True)

    pwd: DOLQueue
    perm: PermQueues


class USCISFormTimes(BaseModel):
    model_config = ConfigDict(frozen=True)

    service_center: str  # "Premium" marks the premium-processing variant
    min_months: float
    max_months: float


class BulletinRow(BaseModel):
    """One category row: "Current" or "Month Year" per chargeability column."""
    model_config = ConfigDict(frozen=True)

    all_other: str
    china: str
    india: str


class BulletinChart(BaseModel):
    model_config = ConfigDict(frozen=True)

    eb1: BulletinRow
    eb2: BulletinRow
    eb3: BulletinRow


class PermQuarter(BaseModel):
    model_config = ConfigDict(frozen=True)

    fiscal_year: int
    quarter: int
    total: int
    professional: int  # master's-level requirements, roughly EB-2
    skilled: int  # bachelor's-level, EB-2 or EB-3
    other: int


class CountryDistribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    india: float
    china: float
    other: float


class PermStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    quarters: list[PermQuarter]
    annualized_certification_rate: int
    country_distribution: CountryDistribution
    last_updated: str
    data_source: str = ""


class ProcessingSnapshot(BaseModel):
    """
    Parsed government data consumed by the engine.

    Produced by the snapshot provider (scrapers, caches) and passed explicitly
    into every computation. Any section may be absent; the engine falls back
    to the defaults in pathways.data.defaults.
    """
    model_config = ConfigDict(frozen=True)

    as_of: str  # "Month Year" the data describes; new filers are measured from here
    dol: DOLTimes | None = None
    uscis: dict[str, list[USCISFormTimes]] = {}
    final_action_dates: BulletinChart | None = None
    dates_for_filing: BulletinChart | None = None
    fees: dict[str, int] = {}
    perm_statistics: PermStatistics | None = None
