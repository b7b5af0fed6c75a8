"""
Configuration module for the admissions feature pipeline.

Contains all constants, file paths, column names, and mappings used throughout
the pipeline. Column names are given in canonical (normalized) form; every
stage function accepts keyword overrides for the values defined here.
"""
import os
from pathlib import Path
from typing import List, Tuple

# ============================================================================
# FILE PATHS
# ============================================================================
PROJECT_ROOT = Path(__file__).parent.parent
RAW_DATA_PATH = Path(os.getenv("RAW_DATA_PATH", PROJECT_ROOT / "data" / "raw" / "slate_export.xlsx"))
PROCESSED_DATA_PATH = PROJECT_ROOT / "data" / "feature" / "processed_data.parquet"
PROCESSED_CSV_PATH = PROJECT_ROOT / "data" / "feature" / "processed_data.csv"
AUDIT_REPORT_PATH = PROJECT_ROOT / "data" / "feature" / "data_quality_audit.csv"

# Optional offline postal centroid table (postal_code, latitude, longitude).
# When unset, coordinates come from pgeocode's GeoNames download.
ZIP_CENTROIDS_PATH = os.getenv("ZIP_CENTROIDS_PATH")

# ============================================================================
# COLUMN PRUNING
# ============================================================================
# Any column whose canonical name contains this substring is dropped
TIMESTAMP_MARKER = "timestamp"

# Interaction log duplicated by events_comma_separated
REDUNDANT_COLUMNS: List[str] = ["interactions"]

# ============================================================================
# MISSING VALUES
# ============================================================================
# Engagement/event counters: missing means no recorded interaction
ZERO_FILL_COLUMNS: List[str] = [
    "campus_visits",
    "virtual_visits",
    "interviews",
    "events_attended",
    "email_opens",
    "email_clicks",
    "ping_sessions",
]

# Date column replaced by a 0/1 presence flag
FAFSA_COLUMN = "fafsa_received"

# ============================================================================
# FIELD SPLITTING
# ============================================================================
ROUND_COLUMN = "round"
YEAR_COLUMN = "year"
PERIOD_COLUMN = "period"

# ============================================================================
# FEATURE ENGINEERING
# ============================================================================
# Event participation
EVENTS_COLUMN = "events_comma_separated"
VISIT_FLAG_COLUMN = "our_visits"
EVENT_MARKERS: List[str] = [
    "High School Visit:",
    "College Fair:",
    "Virtual High School Visit",
    "Virtual College Fair",
    "Transfer Fair:",
    "HSV:",
]

# Geography
POSTAL_COLUMN = "postal"
COUNTRY_COLUMN = "country"
REGION_COLUMN = "region"
DISTANCE_COLUMN = "distance"
LOCATION_COLUMN = "location"
INSTITUTION_POSTAL_CODE = os.getenv("INSTITUTION_POSTAL_CODE", "60045")
GEOCODER_COUNTRY = "us"
DOMESTIC_COUNTRY = "United States"
IN_STATE_REGION = "IL"
EARTH_RADIUS_MILES = 3958.8

LOCATION_INTERNATIONAL = 0
LOCATION_DOMESTIC = 1
LOCATION_IN_STATE = 2

# Student group: evaluated top-down, first rule whose patterns all occur wins
TAGS_COLUMN = "tags"
STUDENT_GROUP_COLUMN = "student_group"
STUDENT_GROUP_RULES: List[Tuple[Tuple[str, ...], int]] = [
    (("Recruit", "Forester Scholars Weekend"), 6),
    (("UWC", "Forester Scholars Weekend"), 5),
    (("UWC", "Recruit"), 4),
    (("Forester Scholars Weekend",), 3),
    (("UWC",), 1),
    (("Recruit",), 2),
]
STUDENT_GROUP_DEFAULT = 0

# Text-stored metrics parsed to numbers; ping_sessions is also zero-filled
NUMERIC_COLUMNS: List[str] = [
    "ping_sessions",
    "ping_page_views",
    "ping_minutes",
    "email_open_rate",
    "email_click_rate",
    "gpa",
]

# Enrollment outcome
DECISION_HISTORY_COLUMN = "decision_history_all_decisions"
DECISION_LOG_SEPARATOR = ","
ENROLL_DECISION_LABEL = "Deposit Paid (Enroll)"
ENROLLING_STAGE_COLUMN = "enrolling_stage"

# ============================================================================
# FEATURE SELECTION
# ============================================================================
# Columns superseded by derived features or irrelevant to modeling
FINAL_DROP_COLUMNS: List[str] = [
    # Geography (-> distance, location)
    "postal", "city", "region", "country",
    # Tags (-> student_group)
    "tags",
    # Events log (-> our_visits)
    "events_comma_separated",
    # Decision log (-> enrolling_stage)
    "decision_history_all_decisions",
    # Free-text / administrative
    "school", "first_source",
]

DERIVED_COLUMNS: List[str] = [
    VISIT_FLAG_COLUMN,
    DISTANCE_COLUMN,
    LOCATION_COLUMN,
    STUDENT_GROUP_COLUMN,
    ENROLLING_STAGE_COLUMN,
    YEAR_COLUMN,
    PERIOD_COLUMN,
]
