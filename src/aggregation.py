"""
aggregation.py
Group-by-count tables over the cleaned incident table.

Each function takes the cleaned table explicitly and returns a new frame,
sorted by its key columns with a fresh RangeIndex, so two runs over the same
input produce identical output.
"""

import logging
import re

import pandas as pd

log = logging.getLogger(__name__)


# ── Constants ─────────────────────────────────────────────────────────────────

# Categories that survive the null-drop but carry no age information
AGE_PLACEHOLDERS = {"UNKNOWN", "(NULL)", "NULL", ""}

# Real buckets look like "<18", "18-24", "65+"; anything else is a keying error
AGE_BUCKET_PATTERN = re.compile(r"^(<\d+|\d+-\d+|\d+\+)$")

AGE_GROUP_ORDER = ["<18", "18-24", "25-44", "45-64", "65+"]


def _year(incidents: pd.DataFrame) -> pd.Series:
    return incidents["incident_date"].dt.year.astype("int64").rename("year")


# ── By year ───────────────────────────────────────────────────────────────────

def count_by_year(incidents: pd.DataFrame) -> pd.DataFrame:
    counts = incidents.groupby(_year(incidents)).size()
    return counts.rename("count").reset_index().sort_values("year", ignore_index=True)


# ── By year × region ──────────────────────────────────────────────────────────

def count_by_year_and_region(incidents: pd.DataFrame) -> pd.DataFrame:
    """
    One row per (year, region) pair over every year and region present,
    with zero counts filled in for pairs that had no incidents.
    """
    years = _year(incidents)
    counts = incidents.groupby([years, incidents["region"]]).size()

    full = pd.MultiIndex.from_product(
        [sorted(years.unique()), sorted(incidents["region"].dropna().unique())],
        names=["year", "region"],
    )
    out = counts.reindex(full, fill_value=0).rename("count").reset_index()
    out["count"] = out["count"].astype("int64")
    return out.sort_values(["year", "region"], ignore_index=True)


def pivot_year_region(by_year_region: pd.DataFrame) -> pd.DataFrame:
    """Wide year × region table (years as rows) for heatmaps and line charts."""
    return by_year_region.pivot(index="year", columns="region", values="count").fillna(0).astype("int64")


def count_by_region(incidents: pd.DataFrame) -> pd.DataFrame:
    counts = incidents.groupby("region").size().rename("count").reset_index()
    return counts.sort_values(["count", "region"], ascending=[False, True], ignore_index=True)


# ── Shooter age × region ──────────────────────────────────────────────────────

def is_age_bucket(values: pd.Series) -> pd.Series:
    """True where the value is a real age bucket (not a placeholder or typo)."""
    text = values.astype(str).str.strip()
    placeholder = text.str.upper().isin(AGE_PLACEHOLDERS)
    shaped = text.str.fullmatch(AGE_BUCKET_PATTERN.pattern).astype(bool)
    return values.notna() & ~placeholder & shaped


def age_group_share_by_region(incidents: pd.DataFrame) -> pd.DataFrame:
    """
    Count incidents per (shooter_age_group, region) and express each count as
    a percentage of that region's total. Rows with a missing, placeholder or
    malformed age group are excluded before the totals are taken, so the
    percentages of every region add up to 100.
    """
    known = incidents["shooter_age_group"].notna()
    valid = known & is_age_bucket(incidents["shooter_age_group"])
    excluded = (known & ~valid).sum()
    if excluded:
        dropped = sorted(incidents.loc[known & ~valid, "shooter_age_group"].astype(str).unique())
        log.info(f"Age share: {excluded:,} rows with placeholder age groups excluded {dropped}")

    subset = incidents.loc[valid, ["shooter_age_group", "region"]]
    out = subset.groupby(["shooter_age_group", "region"]).size().rename("count").reset_index()
    totals = out.groupby("region")["count"].transform("sum")
    out["percent"] = 100 * out["count"] / totals
    return out.sort_values(["region", "shooter_age_group"], ignore_index=True)


# ── Supplementary breakdowns ──────────────────────────────────────────────────

def murder_share_by_year(incidents: pd.DataFrame) -> pd.DataFrame:
    """Incidents per year, how many were flagged as murders, and the share."""
    out = (
        incidents.assign(year=_year(incidents))
        .groupby("year")
        .agg(count=("is_murder", "size"), murders=("is_murder", "sum"))
        .reset_index()
    )
    out["murders"] = out["murders"].astype("int64")
    out["percent"] = 100 * out["murders"] / out["count"]
    return out.sort_values("year", ignore_index=True)


def demographic_breakdown(incidents: pd.DataFrame, column: str) -> pd.DataFrame:
    counts = incidents[column].dropna().value_counts().rename("count")
    out = counts.rename_axis(column).reset_index()
    out["percent"] = 100 * out["count"] / out["count"].sum()
    return out.sort_values(["count", column], ascending=[False, True], ignore_index=True)
