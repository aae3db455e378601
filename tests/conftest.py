import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

RAW_COLUMNS = [
    "INCIDENT_KEY", "OCCUR_DATE", "OCCUR_TIME", "BORO", "LOC_OF_OCCUR_DESC",
    "PRECINCT", "JURISDICTION_CODE", "LOC_CLASSFCTN_DESC", "LOCATION_DESC",
    "STATISTICAL_MURDER_FLAG", "PERP_AGE_GROUP", "PERP_SEX", "PERP_RACE",
    "VIC_AGE_GROUP", "VIC_SEX", "VIC_RACE", "X_COORD_CD", "Y_COORD_CD",
    "Latitude", "Longitude", "Lon_Lat",
]


def make_raw(rows):
    """Build a raw export frame; each row is a dict overriding the defaults."""
    records = []
    for i, overrides in enumerate(rows):
        record = {
            "INCIDENT_KEY": 100000 + i,
            "OCCUR_DATE": "01/15/2020",
            "OCCUR_TIME": "21:30:00",
            "BORO": "BRONX",
            "LOC_OF_OCCUR_DESC": "OUTSIDE",
            "PRECINCT": 40,
            "JURISDICTION_CODE": 0,
            "LOC_CLASSFCTN_DESC": "STREET",
            "LOCATION_DESC": "(null)",
            "STATISTICAL_MURDER_FLAG": False,
            "PERP_AGE_GROUP": "18-24",
            "PERP_SEX": "M",
            "PERP_RACE": "BLACK",
            "VIC_AGE_GROUP": "25-44",
            "VIC_SEX": "M",
            "VIC_RACE": "BLACK",
            "X_COORD_CD": 1006343.0,
            "Y_COORD_CD": 234270.0,
            "Latitude": 40.8096,
            "Longitude": -73.9209,
            "Lon_Lat": "POINT (-73.9209 40.8096)",
        }
        record.update(overrides)
        records.append(record)
    return pd.DataFrame(records, columns=RAW_COLUMNS)


@pytest.fixture
def raw_frame():
    return make_raw([
        {"INCIDENT_KEY": 1, "OCCUR_DATE": "03/04/2019", "BORO": "BROOKLYN",
         "STATISTICAL_MURDER_FLAG": True, "PERP_AGE_GROUP": "25-44"},
        # second victim of incident 1
        {"INCIDENT_KEY": 1, "OCCUR_DATE": "03/04/2019", "BORO": "BROOKLYN",
         "VIC_AGE_GROUP": "<18"},
        {"INCIDENT_KEY": 2, "OCCUR_DATE": "07/21/2019", "BORO": "BRONX",
         "PERP_AGE_GROUP": "UNKNOWN"},
        {"INCIDENT_KEY": 3, "OCCUR_DATE": "12/31/2020", "BORO": "BRONX",
         "PERP_AGE_GROUP": "(null)", "PERP_SEX": "(null)"},
        {"INCIDENT_KEY": 4, "OCCUR_DATE": "01/01/2021", "BORO": "QUEENS",
         "PERP_AGE_GROUP": None, "STATISTICAL_MURDER_FLAG": True},
        {"INCIDENT_KEY": 5, "OCCUR_DATE": "06/15/2021", "BORO": "BROOKLYN",
         "PERP_AGE_GROUP": "1020"},
        {"INCIDENT_KEY": 6, "OCCUR_DATE": "02/30/2021", "BORO": "BRONX"},
        {"INCIDENT_KEY": 7, "OCCUR_DATE": "08/08/2021", "BORO": "BRONX",
         "PERP_AGE_GROUP": "18-24"},
    ])


@pytest.fixture
def incidents():
    """A cleaned table built directly, independent of the cleaning code."""
    return pd.DataFrame({
        "incident_date": pd.to_datetime(["2020-01-05", "2020-06-01", "2021-03-03", "2021-09-09", "2022-02-02"]),
        "region": ["BRONX", "BROOKLYN", "BRONX", "BRONX", "QUEENS"],
        "location_class": ["STREET", None, "STREET", "HOUSING", None],
        "is_murder": pd.array([True, False, False, True, False], dtype="boolean"),
        "shooter_age_group": ["18-24", "25-44", "UNKNOWN", "18-24", None],
        "shooter_sex": ["M", "M", None, "M", None],
        "shooter_race": ["BLACK", "WHITE HISPANIC", None, "BLACK", None],
        "victim_age_group": ["18-24", "25-44", "<18", "25-44", "45-64"],
        "victim_sex": ["M", "F", "M", "M", "M"],
        "victim_race": ["BLACK", "BLACK", "WHITE HISPANIC", "BLACK", "ASIAN / PACIFIC ISLANDER"],
    })
