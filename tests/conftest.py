"""Shared fixtures: a small raw admissions export and an offline geocoder."""
import numpy as np
import pandas as pd
import pytest

from src.utils.geo import CentroidTableGeocoder


@pytest.fixture
def zip_centroids():
    """Postal centroids for the institution and a few applicant codes."""
    return pd.DataFrame({
        "postal_code": ["60045", "60614", "10001", "02134"],
        "latitude": [42.2386, 41.9227, 40.7506, 42.3548],
        "longitude": [-87.8417, -87.6533, -73.9971, -71.1329],
    })


@pytest.fixture
def geocoder(zip_centroids):
    return CentroidTableGeocoder(zip_centroids)


@pytest.fixture
def sample_raw_data():
    """
    Raw export rows with the export's original headers.

    Row 0: in-state enrolled recruit, met at a college fair
    Row 1: out-of-state applicant, denied, no events, FAFSA missing
    Row 2: international UWC scholar, empty decision log, bad postal code
    Row 3: applicant with all tag markers, missing round period
    """
    return pd.DataFrame([
        {
            "Ref": 1001,
            "Round": "2025 Early Decision",
            "Created Timestamp": "2024-10-01 09:00",
            "Updated Timestamp": "2025-04-01 10:00",
            "Interactions": "Email, Call",
            "Decision History (All Decisions)": "Applied, Admitted, Deposit Paid (Enroll)",
            "Tags": "Recruit, Forester Scholars Weekend",
            "Events (comma separated)": "College Fair: Chicago, Info Session",
            "Postal": "60614",
            "City": "Chicago",
            "Region": "IL",
            "Country": "United States",
            "School": "Lincoln Park HS",
            "First Source": "Search",
            "Campus Visits": 2,
            "Virtual Visits": np.nan,
            "Interviews": 1,
            "Events Attended": 3,
            "Email Opens": 12,
            "Email Clicks": 4,
            "Ping Sessions": "7",
            "Ping Page Views": "31",
            "Ping Minutes": "12.5",
            "Email Open Rate": "0.44",
            "Email Click Rate": "0.10",
            "GPA": "3.7",
            "FAFSA Received": "2024-12-15",
        },
        {
            "Ref": 1002,
            "Round": "2025 Regular Decision",
            "Created Timestamp": "2024-11-01 09:00",
            "Updated Timestamp": "2025-04-02 10:00",
            "Interactions": None,
            "Decision History (All Decisions)": "Applied, Admitted, Denied",
            "Tags": None,
            "Events (comma separated)": "Info Session",
            "Postal": "10001-2233",
            "City": "New York",
            "Region": "NY",
            "Country": "United States",
            "School": "Stuyvesant",
            "First Source": "Fair",
            "Campus Visits": np.nan,
            "Virtual Visits": np.nan,
            "Interviews": np.nan,
            "Events Attended": np.nan,
            "Email Opens": np.nan,
            "Email Clicks": np.nan,
            "Ping Sessions": np.nan,
            "Ping Page Views": "n/a",
            "Ping Minutes": " ",
            "Email Open Rate": "0.20",
            "Email Click Rate": "0.01",
            "GPA": "3.1",
            "FAFSA Received": None,
        },
        {
            "Ref": 1003,
            "Round": "2026 Early Action",
            "Created Timestamp": "2025-01-05 09:00",
            "Updated Timestamp": "2025-04-03 10:00",
            "Interactions": None,
            "Decision History (All Decisions)": None,
            "Tags": "UWC",
            "Events (comma separated)": None,
            "Postal": "IL 60",
            "City": "Mostar",
            "Region": "IL",
            "Country": "Bosnia and Herzegovina",
            "School": "UWC Mostar",
            "First Source": "Partner",
            "Campus Visits": 0,
            "Virtual Visits": 1,
            "Interviews": np.nan,
            "Events Attended": 0,
            "Email Opens": 3,
            "Email Clicks": np.nan,
            "Ping Sessions": "2",
            "Ping Page Views": "5",
            "Ping Minutes": "1",
            "Email Open Rate": "0.50",
            "Email Click Rate": "0.00",
            "GPA": "4.0",
            "FAFSA Received": None,
        },
        {
            "Ref": 1004,
            "Round": "2026",
            "Created Timestamp": "2025-02-05 09:00",
            "Updated Timestamp": "2025-04-04 10:00",
            "Interactions": "Call",
            "Decision History (All Decisions)": "",
            "Tags": "UWC, Recruit, Forester Scholars Weekend",
            "Events (comma separated)": "HSV: Lake Forest HS",
            "Postal": 60045,
            "City": "Lake Forest",
            "Region": "IL",
            "Country": "United States",
            "School": "Lake Forest HS",
            "First Source": "Visit",
            "Campus Visits": 5,
            "Virtual Visits": 0,
            "Interviews": 1,
            "Events Attended": 2,
            "Email Opens": 20,
            "Email Clicks": 9,
            "Ping Sessions": "40",
            "Ping Page Views": "1,200",
            "Ping Minutes": "88",
            "Email Open Rate": "0.90",
            "Email Click Rate": "0.45",
            "GPA": "3.9",
            "FAFSA Received": "2025-01-20",
        },
    ])
