"""
data_cleaning.py
Cleaning steps for the NYPD Shooting Incident Data (Historic) export.

Design principles:
- Every transformation is logged with before/after counts
- No silent data loss: rows that cannot be used are counted in the audit trail
- Functions are pure (input → output), no global state
- A single `clean_incidents()` call reproduces the cleaned table
"""

import json
import logging

import numpy as np
import pandas as pd

log = logging.getLogger(__name__)


# ── Constants ─────────────────────────────────────────────────────────────────

INCIDENT_KEY = "INCIDENT_KEY"

# Source column → cleaned column. Order here is the column order of the output.
COLUMN_MAP = {
    "OCCUR_DATE":              "incident_date",
    "BORO":                    "region",
    "LOC_CLASSFCTN_DESC":      "location_class",
    "STATISTICAL_MURDER_FLAG": "is_murder",
    "PERP_AGE_GROUP":          "shooter_age_group",
    "PERP_SEX":                "shooter_sex",
    "PERP_RACE":               "shooter_race",
    "VIC_AGE_GROUP":           "victim_age_group",
    "VIC_SEX":                 "victim_sex",
    "VIC_RACE":                "victim_race",
}

CLEAN_COLUMNS = list(COLUMN_MAP.values())

REQUIRED_COLUMNS = {INCIDENT_KEY, *COLUMN_MAP}

DATE_FORMAT = "%m/%d/%Y"

DEMOGRAPHIC_COLUMNS = [
    "region", "location_class",
    "shooter_age_group", "shooter_sex", "shooter_race",
    "victim_age_group", "victim_sex", "victim_race",
]

# Spellings of "no value" in the export; "UNKNOWN" is a real category and stays
NULL_TOKENS = ["", "(NULL)", "NULL"]

MURDER_FLAG_MAP = {
    "TRUE": True, "FALSE": False,
    "Y": True, "N": False,
    "1": True, "0": False,
}


class SchemaError(ValueError):
    """The raw table is missing a column the pipeline depends on."""


# ── Audit Trail ───────────────────────────────────────────────────────────────

class AuditTrail:
    """Tracks every cleaning decision with before/after row counts and change stats."""

    def __init__(self, total_rows: int):
        self.total_rows = total_rows
        self.steps: list[dict] = []

    def record(self, step: str, description: str, changed: int, detail: str = ""):
        changed = int(changed)
        pct = changed / self.total_rows * 100 if self.total_rows else 0.0
        self.steps.append({
            "step": step,
            "description": description,
            "rows_affected": changed,
            "pct_affected": round(pct, 2),
            "detail": detail,
        })
        log.info(f"[{step}] {description} → {changed:,} rows affected ({pct:.1f}%) {detail}")

    def affected(self, step: str) -> int:
        for s in self.steps:
            if s["step"] == step:
                return s["rows_affected"]
        raise KeyError(step)

    def save(self, path):
        class _NumpyEncoder(json.JSONEncoder):
            """Convert numpy int/float types to native Python before serialising."""
            def default(self, obj):
                if isinstance(obj, np.integer):
                    return int(obj)
                if isinstance(obj, np.floating):
                    return float(obj)
                return super().default(obj)

        with open(path, "w") as f:
            json.dump({"total_rows": self.total_rows, "steps": self.steps}, f,
                      indent=2, cls=_NumpyEncoder)
        log.info(f"Audit trail saved → {path}")

    def summary(self):
        print("\n" + "=" * 65)
        print("CLEANING AUDIT SUMMARY")
        print("=" * 65)
        print(f"{'Step':<22} {'Affected':>10} {'%':>7}  Description")
        print("-" * 65)
        for s in self.steps:
            print(f"{s['step']:<22} {s['rows_affected']:>10,} {s['pct_affected']:>6.1f}%  {s['description']}")
        print("=" * 65)


# ── Step 1: Schema ────────────────────────────────────────────────────────────

def check_schema(df: pd.DataFrame):
    missing_cols = REQUIRED_COLUMNS - set(df.columns)
    if missing_cols:
        raise SchemaError(f"Dataset is missing expected columns: {sorted(missing_cols)}")


# ── Step 2: Deduplicate ───────────────────────────────────────────────────────

def drop_duplicates(df: pd.DataFrame, audit: AuditTrail) -> pd.DataFrame:
    before = len(df)
    # INCIDENT_KEY repeats when one incident has several victims
    df = df.drop_duplicates(subset=[INCIDENT_KEY], keep="first")
    audit.record("Deduplication", f"Repeated {INCIDENT_KEY} rows removed", before - len(df))
    return df


# ── Step 3: Select & Rename ───────────────────────────────────────────────────

def select_columns(df: pd.DataFrame, audit: AuditTrail) -> pd.DataFrame:
    dropped = [c for c in df.columns if c not in COLUMN_MAP]
    df = df[list(COLUMN_MAP)].rename(columns=COLUMN_MAP)
    audit.record("Columns dropped", "Geographic, precinct, time and key columns removed",
                 0, f"({dropped})")
    return df


# ── Step 4: Dates ─────────────────────────────────────────────────────────────

def parse_dates(df: pd.DataFrame, audit: AuditTrail) -> pd.DataFrame:
    parsed = pd.to_datetime(df["incident_date"], format=DATE_FORMAT, errors="coerce")
    bad = parsed.isna()
    if bad.any():
        sample = df.loc[bad, "incident_date"].head(5).tolist()
        log.warning(f"{bad.sum():,} rows have an unparseable incident date, e.g. {sample}")

    df = df.assign(incident_date=parsed)[~bad]
    audit.record("Date parse", f"Unparseable {DATE_FORMAT} dates excluded", bad.sum())
    return df


# ── Step 5: Murder Flag ───────────────────────────────────────────────────────

def normalise_murder_flag(df: pd.DataFrame, audit: AuditTrail) -> pd.DataFrame:
    raw = df["is_murder"]
    if pd.api.types.is_numeric_dtype(raw) and not pd.api.types.is_bool_dtype(raw):
        # 1/0 with blanks loads as float
        flag = raw.map({1: True, 0: False}).astype("boolean")
    else:
        flag = raw.astype(str).str.strip().str.upper().map(MURDER_FLAG_MAP).astype("boolean")
    unmapped = (flag.isna() & raw.notna()).sum()
    audit.record("Murder flag", "Flag normalised to True/False", unmapped,
                 f"({unmapped:,} unrecognised values → <NA>)" if unmapped else "")
    return df.assign(is_murder=flag)


# ── Step 6: Demographics ──────────────────────────────────────────────────────

def normalise_demographics(df: pd.DataFrame, audit: AuditTrail) -> pd.DataFrame:
    df = df.copy()
    nulled = 0
    for col in DEMOGRAPHIC_COLUMNS:
        values = df[col].astype(str).str.strip()
        missing = df[col].isna() | values.str.upper().isin(NULL_TOKENS)
        nulled += (missing & df[col].notna()).sum()
        df[col] = values.mask(missing)

    audit.record("Null tokens → NaN", "'(null)' and blank demographic values nulled", nulled)
    return df


# ── Orchestrator ──────────────────────────────────────────────────────────────

def clean_incidents(raw: pd.DataFrame, audit: AuditTrail | None = None) -> pd.DataFrame:
    """
    Produce the cleaned incident table from the raw export.

    The input frame is left untouched. Pass an AuditTrail to collect the
    diagnostic counts; one is created (and discarded) otherwise.
    """
    check_schema(raw)
    audit = audit if audit is not None else AuditTrail(total_rows=len(raw))

    df = drop_duplicates(raw, audit)
    df = select_columns(df, audit)
    df = parse_dates(df, audit)
    df = normalise_murder_flag(df, audit)
    df = normalise_demographics(df, audit)

    df = df.reset_index(drop=True)
    log.info(f"Cleaned table: {df.shape[0]:,} rows × {df.shape[1]} columns")
    return df
