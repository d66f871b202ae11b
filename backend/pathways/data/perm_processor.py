"""
DOL PERM Disclosure Data Processor

Reads a PERM disclosure CSV (one row per labor certification case, published
quarterly by the DOL Office of Foreign Labor Certification) and produces the
PermStatistics the wait engine uses for demand estimates.

Columns used:
- CASE_STATUS: Certified, Certified-Expired, Denied, Withdrawn
- DECISION_DATE: date the case was decided
- MINIMUM_EDUCATION: education the job requires (older files: JOB_INFO_EDUCATION)

Certified cases are counted per federal fiscal quarter (FY starts October 1)
and split by required education:
- professional: Master's or Doctorate, roughly EB-2
- skilled: Bachelor's, EB-2 with experience or EB-3
- other: everything else, EB-3

PERM records carry no country of birth, so the country distribution is
passed through from the caller (defaults to the built-in estimate).

Run directly to regenerate:
    python -m pathways.data.perm_processor path/to/PERM_Disclosure_Data.csv
"""

import os
import sys
from datetime import date
from pathlib import Path

import pandas as pd

from pathways.data.defaults import DEFAULT_PERM_STATISTICS
from pathways.models.snapshot import CountryDistribution, PermQuarter, PermStatistics

CERTIFIED_STATUSES = ("CERTIFIED", "CERTIFIED-EXPIRED")

EDUCATION_TO_GROUP = {
    "DOCTORATE": "professional",
    "MASTER'S": "professional",
    "BACHELOR'S": "skilled",
}

USE_COLS = ["CASE_STATUS", "DECISION_DATE", "MINIMUM_EDUCATION"]

# Renamed columns in pre-FY2020 disclosure files
LEGACY_COLUMNS = {"JOB_INFO_EDUCATION": "MINIMUM_EDUCATION"}


def _find_data_file() -> str:
    """Locate a PERM disclosure CSV in the usual data directories."""
    candidates = [
        Path(__file__).resolve().parents[3] / "data" / "perm" / "PERM_Disclosure_Data.csv",
        Path.cwd() / "data" / "perm" / "PERM_Disclosure_Data.csv",
    ]
    for p in candidates:
        if p.exists():
            return str(p)
    raise FileNotFoundError(
        f"PERM disclosure data not found. Searched: {[str(c) for c in candidates]}"
    )


def load_raw_perm(path: str | None = None) -> pd.DataFrame:
    """Load certified cases with their fiscal quarter and education group."""
    if path is None:
        path = _find_data_file()

    df = pd.read_csv(path, usecols=lambda c: c in USE_COLS or c in LEGACY_COLUMNS)
    df = df.rename(columns=LEGACY_COLUMNS)

    missing = [c for c in USE_COLS if c not in df.columns]
    if missing:
        raise ValueError(f"PERM disclosure file is missing columns: {missing}")

    df = df[df["CASE_STATUS"].str.strip().str.upper().isin(CERTIFIED_STATUSES)].copy()

    df["DECISION_DATE"] = pd.to_datetime(df["DECISION_DATE"], errors="coerce")
    df = df.dropna(subset=["DECISION_DATE"])

    # Federal fiscal year N runs October N-1 through September N
    month = df["DECISION_DATE"].dt.month
    df["fiscal_year"] = df["DECISION_DATE"].dt.year + (month >= 10).astype(int)
    df["quarter"] = ((month - 10) % 12) // 3 + 1

    education = df["MINIMUM_EDUCATION"].fillna("").str.strip().str.upper()
    df["group"] = education.map(EDUCATION_TO_GROUP).fillna("other")

    return df


def build_quarters(df: pd.DataFrame) -> list[PermQuarter]:
    """Certified case counts per fiscal quarter, oldest first."""
    counts = (
        df.groupby(["fiscal_year", "quarter", "group"])
        .size()
        .unstack("group", fill_value=0)
        .reindex(columns=["professional", "skilled", "other"], fill_value=0)
        .sort_index()
    )

    quarters = []
    for (fiscal_year, quarter), row in counts.iterrows():
        professional = int(row["professional"])
        skilled = int(row["skilled"])
        other = int(row["other"])
        quarters.append(PermQuarter(
            fiscal_year=int(fiscal_year),
            quarter=int(quarter),
            total=professional + skilled + other,
            professional=professional,
            skilled=skilled,
            other=other,
        ))
    return quarters


def annualized_rate(quarters: list[PermQuarter]) -> int:
    """Certifications per year from the most recent four quarters."""
    recent = quarters[-4:]
    if not recent:
        return 0
    # Scale up when fewer than four quarters are available
    return round(sum(q.total for q in recent) * 4 / len(recent))


def build_statistics(
    df: pd.DataFrame,
    country_distribution: CountryDistribution | None = None,
    data_source: str = "DOL PERM Disclosure Data",
) -> PermStatistics:
    quarters = build_quarters(df)
    return PermStatistics(
        quarters=quarters,
        annualized_certification_rate=annualized_rate(quarters),
        country_distribution=country_distribution or DEFAULT_PERM_STATISTICS.country_distribution,
        last_updated=date.today().isoformat(),
        data_source=data_source,
    )


def process_and_save(csv_path: str | None = None, output_dir: str | None = None) -> PermStatistics:
    """Run the full pipeline and save perm_statistics.json."""
    if output_dir is None:
        output_dir = str(Path(__file__).resolve().parent / "processed")

    os.makedirs(output_dir, exist_ok=True)

    print("Loading PERM disclosure data...")
    df = load_raw_perm(csv_path)
    print(f"  {len(df)} certified cases")

    print("\nBuilding quarterly certification counts...")
    statistics = build_statistics(df)
    for q in statistics.quarters:
        print(f"    FY{q.fiscal_year} Q{q.quarter}  total={q.total:>6,}  professional={q.professional:>6,}  "
              f"skilled={q.skilled:>6,}  other={q.other:>5,}")
    print(f"  Annualized certification rate: {statistics.annualized_certification_rate:,}")

    output_path = os.path.join(output_dir, "perm_statistics.json")
    with open(output_path, "w") as f:
        f.write(statistics.model_dump_json(indent=2))
    print(f"  → {output_path}")

    print("\nDone.")
    return statistics


if __name__ == "__main__":
    process_and_save(sys.argv[1] if len(sys.argv) > 1 else None)
