"""
End-to-end tests for the preprocessing pipeline.

Uses an offline centroid geocoder, so no network access is needed.

Run with: pytest tests/test_pipeline.py -v
"""
import numpy as np
import pandas as pd
import pytest

from src import config
from src.feature_pipeline.validation import (
    CANONICAL_NAME_PATTERN,
    ConfigurationError,
    SchemaError,
    validate_config,
)
from src.feature_pipeline.load import normalize_column_names, prune_columns
from src.main import run_preprocessing_pipeline


class TestEndToEnd:
    """Full pipeline on the sample export."""

    def test_row_count_invariant(self, sample_raw_data, geocoder):
        df_final, _ = run_preprocessing_pipeline(df=sample_raw_data, geocoder=geocoder)

        assert len(df_final) == len(sample_raw_data)

    def test_expected_features(self, sample_raw_data, geocoder):
        df_final, _ = run_preprocessing_pipeline(df=sample_raw_data, geocoder=geocoder)

        assert df_final["ref"].tolist() == [1001, 1002, 1003, 1004]
        assert df_final["year"].tolist() == ["2025", "2025", "2026", "2026"]
        assert df_final["period"].iloc[0] == "Early Decision"
        assert pd.isna(df_final["period"].iloc[3])
        assert df_final["our_visits"].tolist() == [1, 0, 0, 1]
        assert df_final["location"].tolist() == [2, 1, 0, 2]
        assert df_final["student_group"].tolist() == [6, 0, 1, 6]
        assert df_final["enrolling_stage"].tolist() == [1, 0, 0, 0]
        assert df_final["fafsa_received"].tolist() == [1, 0, 0, 1]

        distance = df_final["distance"]
        assert 15 < distance.iloc[0] < 30
        assert 680 < distance.iloc[1] < 760
        assert np.isnan(distance.iloc[2])
        assert distance.iloc[3] == pytest.approx(0.0)

    def test_columns_projected_and_canonical(self, sample_raw_data, geocoder):
        df_final, _ = run_preprocessing_pipeline(df=sample_raw_data, geocoder=geocoder)

        assert not set(config.FINAL_DROP_COLUMNS) & set(df_final.columns)
        assert not any(config.TIMESTAMP_MARKER in c for c in df_final.columns)
        assert "interactions" not in df_final.columns
        assert "round" not in df_final.columns
        assert all(CANONICAL_NAME_PATTERN.match(c) for c in df_final.columns)

    def test_engagement_columns_complete(self, sample_raw_data, geocoder):
        df_final, _ = run_preprocessing_pipeline(df=sample_raw_data, geocoder=geocoder)

        zero_fill_only = [c for c in config.ZERO_FILL_COLUMNS if c not in config.NUMERIC_COLUMNS]
        assert df_final[zero_fill_only].isnull().sum().sum() == 0

    def test_numeric_coercion(self, sample_raw_data, geocoder):
        df_final, audit = run_preprocessing_pipeline(df=sample_raw_data, geocoder=geocoder)

        for column in config.NUMERIC_COLUMNS:
            assert pd.api.types.is_numeric_dtype(df_final[column]), column
        # "n/a" and "1,200" do not parse
        assert df_final["ping_page_views"].isna().sum() == 2
        assert df_final["ping_sessions"].tolist() == [7, 0, 2, 40]

        counts = audit.to_frame().set_index(["column", "action"])["count"]
        assert counts[("ping_page_views", "coerced_to_missing")] == 2
        assert counts[("postal", "invalid_postal_code")] == 1
        assert counts[("decision_history_all_decisions", "defaulted")] == 2

    def test_input_not_mutated(self, sample_raw_data, geocoder):
        before = sample_raw_data.copy()

        run_preprocessing_pipeline(df=sample_raw_data, geocoder=geocoder)

        pd.testing.assert_frame_equal(sample_raw_data, before)

    def test_save_outputs(self, sample_raw_data, geocoder, tmp_path):
        output_path = tmp_path / "features.parquet"

        df_final, _ = run_preprocessing_pipeline(
            df=sample_raw_data,
            geocoder=geocoder,
            save_outputs=True,
            output_path=output_path,
        )

        assert pd.read_parquet(output_path).shape == df_final.shape
        audit_report = pd.read_csv(tmp_path / config.AUDIT_REPORT_PATH.name)
        assert list(audit_report.columns) == ["stage", "column", "action", "count"]

    def test_load_from_file(self, sample_raw_data, geocoder, tmp_path):
        path = tmp_path / "export.csv"
        sample_raw_data.to_csv(path, index=False)

        df_final, _ = run_preprocessing_pipeline(file_path=str(path), geocoder=geocoder)

        assert len(df_final) == len(sample_raw_data)
        assert df_final["enrolling_stage"].tolist() == [1, 0, 0, 0]


class TestFatalErrors:
    """Schema and configuration errors abort before any output is written."""

    def test_missing_zero_fill_column(self, sample_raw_data, geocoder, tmp_path):
        df = sample_raw_data.drop(columns=["Interviews"])
        output_path = tmp_path / "features.parquet"

        with pytest.raises(ConfigurationError) as excinfo:
            run_preprocessing_pipeline(
                df=df, geocoder=geocoder, save_outputs=True, output_path=output_path
            )

        assert excinfo.value.column == "interviews"
        assert not output_path.exists()

    def test_name_collision(self, sample_raw_data, geocoder):
        df = sample_raw_data.assign(**{"GPA ": sample_raw_data["GPA"]})

        with pytest.raises(SchemaError) as excinfo:
            run_preprocessing_pipeline(df=df, geocoder=geocoder)

        assert excinfo.value.stage == "normalize"

    def test_unknown_exclusion_column(self, sample_raw_data):
        df = prune_columns(normalize_column_names(sample_raw_data))

        with pytest.raises(ConfigurationError) as excinfo:
            validate_config(df, drop_columns=config.FINAL_DROP_COLUMNS + ["zip_code"])

        assert excinfo.value.column == "zip_code"
        assert "drop_columns" in str(excinfo.value)

    def test_config_valid_for_sample(self, sample_raw_data):
        df = prune_columns(normalize_column_names(sample_raw_data))

        validate_config(df)
