"""
trend_model.py
Straight-line trend of yearly incident counts, used for simple extrapolation.

count = intercept + slope * year, fitted by ordinary least squares with one
unweighted observation per year. Predictions are returned as real numbers and
are not clamped: a falling trend will go negative far enough out.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

log = logging.getLogger(__name__)

DEFAULT_PREDICTION_YEARS = (2025, 2030, 2035)


class ModelInputError(ValueError):
    """The yearly table cannot support a line fit."""


@dataclass(frozen=True)
class TrendModel:
    intercept: float
    slope: float
    n_years: int

    def predict(self, years) -> pd.DataFrame:
        return predict_counts(self, years)

    def as_dict(self) -> dict:
        return {"intercept": self.intercept, "slope": self.slope, "n_years": self.n_years}


def fit_trend(by_year: pd.DataFrame) -> TrendModel:
    """
    Fit the trend line on a (year, count) table.

    Raises ModelInputError when fewer than two distinct years are present.
    """
    n_years = by_year["year"].nunique()
    if n_years < 2:
        raise ModelInputError(
            f"Need at least two distinct years to fit a trend, got {n_years}"
        )

    years = by_year["year"].to_numpy(dtype=float)
    counts = by_year["count"].to_numpy(dtype=float)

    # Centre the years so the design matrix is well conditioned
    centre = years.mean()
    slope, level = np.polyfit(years - centre, counts, 1)
    intercept = level - slope * centre

    model = TrendModel(intercept=float(intercept), slope=float(slope), n_years=int(n_years))
    log.info(f"Trend fitted on {n_years} years: count = {model.intercept:,.2f} + {model.slope:,.2f} × year")
    return model


def predict_counts(model: TrendModel, years) -> pd.DataFrame:
    years = np.asarray(list(years), dtype="int64")
    predicted = model.intercept + model.slope * years.astype(float)

    negative = years[predicted < 0]
    if len(negative):
        log.warning(f"Trend predicts negative counts for {negative.tolist()}; values left unclamped")

    return pd.DataFrame({"year": years, "predicted_count": predicted})
