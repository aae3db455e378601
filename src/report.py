"""
report.py
End-to-end NYPD shooting trend report: ingest → clean → aggregate → model → present.

Usage:
  python src/report.py                                   # fetch from NYC Open Data
  python src/report.py --source data/raw/shootings.csv   # use a local export
  python src/report.py --years 2025 2030 2035 --retries 3 --backoff 2
  python src/report.py --no-plots --output-dir out/
"""

import argparse
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from aggregation import (
    age_group_share_by_region,
    count_by_region,
    count_by_year,
    count_by_year_and_region,
    demographic_breakdown,
    murder_share_by_year,
)
from data_cleaning import AuditTrail, clean_incidents
from data_collection import (
    DATASET_URL,
    DEFAULT_TIMEOUT,
    RetryPolicy,
    fetch_incidents,
    load_incidents,
)
from eda import render_figures
from trend_model import DEFAULT_PREDICTION_YEARS, ModelInputError, TrendModel, fit_trend

# ── Logging Setup ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("data/processed")


@dataclass
class ReportResult:
    incidents: pd.DataFrame
    audit: AuditTrail
    by_year: pd.DataFrame
    by_year_region: pd.DataFrame
    by_region: pd.DataFrame
    age_share: pd.DataFrame
    murder_share: pd.DataFrame
    victim_sex: pd.DataFrame
    victim_race: pd.DataFrame
    model: TrendModel | None = None
    predictions: pd.DataFrame = field(
        default_factory=lambda: pd.DataFrame({"year": pd.Series(dtype="int64"),
                                              "predicted_count": pd.Series(dtype="float64")})
    )
    figures: list = field(default_factory=list)

    def tables(self) -> dict[str, pd.DataFrame]:
        return {
            "incidents_by_year": self.by_year,
            "incidents_by_year_region": self.by_year_region,
            "incidents_by_region": self.by_region,
            "shooter_age_share_by_region": self.age_share,
            "murder_share_by_year": self.murder_share,
            "victim_sex": self.victim_sex,
            "victim_race": self.victim_race,
            "predictions": self.predictions,
        }


# ── Stages ────────────────────────────────────────────────────────────────────

def load_source(source, retry: RetryPolicy | None = None, timeout: float = DEFAULT_TIMEOUT,
                cache_path=None) -> pd.DataFrame:
    """Accept a DataFrame, a local CSV path, or an http(s) URL."""
    if isinstance(source, pd.DataFrame):
        return source
    if str(source).startswith(("http://", "https://")):
        return fetch_incidents(str(source), retry=retry, timeout=timeout, cache_path=cache_path)
    return load_incidents(source)


def aggregate(incidents: pd.DataFrame, audit: AuditTrail) -> ReportResult:
    return ReportResult(
        incidents=incidents,
        audit=audit,
        by_year=count_by_year(incidents),
        by_year_region=count_by_year_and_region(incidents),
        by_region=count_by_region(incidents),
        age_share=age_group_share_by_region(incidents),
        murder_share=murder_share_by_year(incidents),
        victim_sex=demographic_breakdown(incidents, "victim_sex"),
        victim_race=demographic_breakdown(incidents, "victim_race"),
    )


def model_trend(result: ReportResult, prediction_years) -> ReportResult:
    try:
        result.model = fit_trend(result.by_year)
    except ModelInputError as e:
        # Historical tables are still valid; only the extrapolation is skipped
        log.error(f"Trend model skipped: {e}")
        return result

    result.predictions = result.model.predict(prediction_years)
    for year, value in zip(result.predictions["year"], result.predictions["predicted_count"]):
        log.info(f"Predicted incidents for {year}: {value:,.1f}")
    return result


def save_outputs(result: ReportResult, output_dir) -> None:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    for name, table in result.tables().items():
        table.to_csv(output_dir / f"{name}.csv", index=False)
    log.info(f"{len(result.tables())} tables saved → {output_dir}")

    if result.model is not None:
        with open(output_dir / "trend_model.json", "w") as f:
            json.dump(result.model.as_dict(), f, indent=2)

    result.audit.save(output_dir / "cleaning_audit.json")


# ── Pipeline Orchestrator ─────────────────────────────────────────────────────

def run_report(
    source=DATASET_URL,
    output_dir=DEFAULT_OUTPUT_DIR,
    prediction_years=DEFAULT_PREDICTION_YEARS,
    retry: RetryPolicy | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    cache_path=None,
    make_plots: bool = True,
) -> ReportResult:
    """
    Run the whole report once.

    Parameters
    ----------
    source           : NYC Open Data URL, local CSV path, or a raw DataFrame
    output_dir       : where tables, model, audit and plots go; None writes nothing
    prediction_years : years to extrapolate the trend line to
    retry            : retry policy for the network fetch (default: single attempt)
    make_plots       : render the charts under output_dir/plots

    Returns
    -------
    ReportResult with every table, the fitted model (or None) and the audit trail
    """
    log.info("=" * 60)
    log.info("NYPD SHOOTING TREND REPORT START")
    log.info("=" * 60)

    raw = load_source(source, retry=retry, timeout=timeout, cache_path=cache_path)
    audit = AuditTrail(total_rows=len(raw))
    incidents = clean_incidents(raw, audit)

    result = aggregate(incidents, audit)
    result = model_trend(result, prediction_years)

    if output_dir is not None:
        save_outputs(result, output_dir)
        if make_plots:
            result.figures = render_figures(result, Path(output_dir) / "plots")

    audit.summary()
    return result


# ── Entry Point ───────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="NYPD shooting incident trend report")
    parser.add_argument("--source", default=DATASET_URL,
                        help="Dataset URL or local CSV path (default: NYC Open Data export)")
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR)
    parser.add_argument("--years", type=int, nargs="+", default=list(DEFAULT_PREDICTION_YEARS),
                        help="Years to predict incident counts for")
    parser.add_argument("--retries", type=int, default=0, help="Extra fetch attempts on failure")
    parser.add_argument("--backoff", type=float, default=1.0,
                        help="Seconds before the first retry, doubled each time")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT)
    parser.add_argument("--cache", type=Path, default=None,
                        help="Read/write the raw CSV here instead of refetching")
    parser.add_argument("--no-plots", action="store_true")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    run_report(
        source=args.source,
        output_dir=args.output_dir,
        prediction_years=args.years,
        retry=RetryPolicy(retries=args.retries, backoff=args.backoff),
        timeout=args.timeout,
        cache_path=args.cache,
        make_plots=not args.no_plots,
    )


if __name__ == "__main__":
    main()
