"""
data_collection.py
Download the NYPD Shooting Incident Data (Historic) CSV into a DataFrame.

The fetch is a single blocking GET. Retries are opt-in through an explicit
RetryPolicy; nothing is retried unless the caller asks for it.
"""

import io
import logging
import time
from dataclasses import dataclass
from pathlib import Path

import pandas as pd
import requests

log = logging.getLogger(__name__)


# ── Constants ─────────────────────────────────────────────────────────────────

DATASET_URL = (
    "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD"
)
DEFAULT_TIMEOUT = 120  # seconds; the full export is ~10 MB


class FetchError(RuntimeError):
    """The dataset could not be downloaded or parsed."""


@dataclass(frozen=True)
class RetryPolicy:
    retries: int = 0        # extra attempts after the first one
    backoff: float = 1.0    # seconds, doubled after every failed attempt

    def delay(self, attempt: int) -> float:
        return self.backoff * (2 ** attempt)


# ── Local files ───────────────────────────────────────────────────────────────

def load_incidents(filepath) -> pd.DataFrame:
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {filepath}")

    log.info(f"Loading: {filepath}")
    df = pd.read_csv(path, low_memory=False)
    log.info(f"Loaded {len(df):,} rows × {len(df.columns)} columns")
    return df


# ── Remote fetch ──────────────────────────────────────────────────────────────

def _download(url: str, timeout: float, session) -> pd.DataFrame:
    getter = session if session is not None else requests
    resp = getter.get(url, timeout=timeout)
    resp.raise_for_status()
    return pd.read_csv(io.StringIO(resp.text), low_memory=False)


def fetch_incidents(
    url: str = DATASET_URL,
    retry: RetryPolicy | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    session=None,
    cache_path=None,
) -> pd.DataFrame:
    """
    Fetch the raw incident CSV.

    Parameters
    ----------
    url        : CSV export URL
    retry      : how many extra attempts to make, and the backoff between them
    timeout    : per-request timeout in seconds
    session    : optional object with a requests-style ``get`` (e.g. requests.Session)
    cache_path : if given and present, read from disk instead; otherwise the
                 downloaded CSV is written there

    Raises
    ------
    FetchError when every attempt fails.
    """
    if cache_path is not None and Path(cache_path).exists():
        log.info(f"Using cached raw data at {cache_path}")
        return load_incidents(cache_path)

    retry = retry or RetryPolicy()
    attempts = retry.retries + 1
    last_error = None

    for attempt in range(attempts):
        try:
            log.info(f"Fetching {url} (attempt {attempt + 1}/{attempts})")
            df = _download(url, timeout, session)
            break
        except (requests.RequestException, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            last_error = e
            log.warning(f"Fetch attempt {attempt + 1}/{attempts} failed: {e}")
            if attempt + 1 < attempts:
                time.sleep(retry.delay(attempt))
    else:
        raise FetchError(f"Could not fetch {url} after {attempts} attempt(s)") from last_error

    log.info(f"Fetched {len(df):,} rows × {len(df.columns)} columns")

    if cache_path is not None:
        Path(cache_path).parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(cache_path, index=False)
        log.info(f"Raw data cached → {cache_path}")

    return df
