import pandas as pd
import pytest

from aggregation import (
    age_group_share_by_region,
    count_by_region,
    count_by_year,
    count_by_year_and_region,
    demographic_breakdown,
    is_age_bucket,
    murder_share_by_year,
    pivot_year_region,
)
from conftest import make_raw
from data_cleaning import clean_incidents


def _rows(df):
    return list(df.itertuples(index=False, name=None))


def _frame(dates, regions, ages=None):
    n = len(dates)
    return pd.DataFrame({
        "incident_date": pd.to_datetime(dates),
        "region": regions,
        "is_murder": pd.array([False] * n, dtype="boolean"),
        "shooter_age_group": ages if ages is not None else [None] * n,
    })


def test_count_by_year_example():
    df = _frame(["2020-02-01", "2020-11-30", "2021-05-05"], ["BRONX"] * 3)
    assert _rows(count_by_year(df)) == [(2020, 2), (2021, 1)]


def test_year_counts_sum_to_total(incidents):
    by_year = count_by_year(incidents)
    assert by_year["count"].sum() == len(incidents)
    assert list(by_year.columns) == ["year", "count"]


def test_year_region_covers_full_product_with_zeros(incidents):
    out = count_by_year_and_region(incidents)

    assert len(out) == 3 * 3  # years 2020-2022 × BRONX/BROOKLYN/QUEENS
    assert out["count"].sum() == len(incidents)
    lookup = out.set_index(["year", "region"])["count"]
    assert lookup[(2021, "BRONX")] == 2
    assert lookup[(2020, "QUEENS")] == 0


def test_pivot_year_region(incidents):
    wide = pivot_year_region(count_by_year_and_region(incidents))
    assert list(wide.index) == [2020, 2021, 2022]
    assert list(wide.columns) == ["BRONX", "BROOKLYN", "QUEENS"]
    assert wide.loc[2022, "QUEENS"] == 1


def test_count_by_region_sorted_by_volume(incidents):
    assert _rows(count_by_region(incidents)) == [("BRONX", 3), ("BROOKLYN", 1), ("QUEENS", 1)]


def test_age_share_example():
    df = _frame(["2020-01-01"] * 4, ["BRONX"] * 4, ["18-24", "18-24", "18-24", "25-44"])
    out = age_group_share_by_region(df)

    assert list(out["shooter_age_group"]) == ["18-24", "25-44"]
    assert list(out["count"]) == [3, 1]
    assert list(out["percent"]) == [75.0, 25.0]
    assert out["percent"].sum() == pytest.approx(100.0, abs=1e-9)


def test_age_share_excludes_placeholders_by_value_not_position():
    ages = ["UNKNOWN", "18-24", None, "(null)", "25-44", "", "940", "65+"]
    df = _frame(["2020-01-01"] * len(ages), ["BRONX", "BRONX", "BRONX", "QUEENS",
                                             "QUEENS", "QUEENS", "QUEENS", "QUEENS"], ages)
    out = age_group_share_by_region(df)
    expected = {("BRONX", "18-24"), ("QUEENS", "25-44"), ("QUEENS", "65+")}

    assert set(zip(out["region"], out["shooter_age_group"])) == expected
    # the same answer whatever the row order
    shuffled = age_group_share_by_region(df.iloc[::-1].reset_index(drop=True))
    pd.testing.assert_frame_equal(out, shuffled)


def test_age_share_percent_sums_to_100_per_region(raw_frame):
    out = age_group_share_by_region(clean_incidents(raw_frame))
    for _, group in out.groupby("region"):
        assert group["percent"].sum() == pytest.approx(100.0, abs=1e-9)


@pytest.mark.parametrize("value, expected", [
    ("<18", True), ("18-24", True), ("65+", True),
    ("UNKNOWN", False), ("(null)", False), ("1020", False), ("", False), (None, False),
])
def test_is_age_bucket(value, expected):
    assert bool(is_age_bucket(pd.Series([value]))[0]) is expected


def test_murder_share_by_year(incidents):
    out = murder_share_by_year(incidents)
    assert _rows(out[["year", "count", "murders"]]) == [(2020, 2, 1), (2021, 2, 1), (2022, 1, 0)]
    assert list(out["percent"]) == [50.0, 50.0, 0.0]


def test_demographic_breakdown(incidents):
    out = demographic_breakdown(incidents, "victim_race")
    assert _rows(out[["victim_race", "count"]])[0] == ("BLACK", 3)
    assert out["percent"].sum() == pytest.approx(100.0)


def test_aggregations_are_repeatable(raw_frame):
    first = clean_incidents(raw_frame.copy())
    second = clean_incidents(raw_frame.copy())
    for fn in (count_by_year, count_by_year_and_region, age_group_share_by_region):
        a, b = fn(first), fn(second)
        pd.testing.assert_frame_equal(a, b)
        assert a.to_csv(index=False).encode() == b.to_csv(index=False).encode()


def test_age_share_on_empty_table():
    empty = _frame([], [], [])
    out = age_group_share_by_region(empty)
    assert out.empty
    assert list(out.columns) == ["shooter_age_group", "region", "count", "percent"]


def test_is_age_bucket_returns_bool_dtype():
    assert is_age_bucket(pd.Series([], dtype=object)).dtype == bool
    assert is_age_bucket(pd.Series(["18-24", "UNKNOWN"])).tolist() == [True, False]


def test_all_dates_unparseable_gives_empty_tables():
    raw = make_raw([{"INCIDENT_KEY": k, "OCCUR_DATE": "13/45/2020"} for k in range(3)])
    incidents = clean_incidents(raw)

    assert incidents.empty
    assert age_group_share_by_region(incidents).empty
    assert count_by_year(incidents).empty
    assert count_by_year_and_region(incidents).empty
