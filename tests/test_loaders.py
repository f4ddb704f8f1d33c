"""
Tests for reading and normalising the CRM and representative tables.
"""

import pandas as pd
import pytest

from attrition.io.loaders import load_all, load_table, parse_flag, prepare_crm, prepare_reps
from attrition.models.errors import SchemaError

from conftest import CRM_HEADERS, CRM_ROWS, REP_ROWS


class TestPrepareCrm:
    def test_headers_are_mapped_case_insensitively(self, raw_crm):
        raw = raw_crm.rename(columns={"Engagement": "engagement", "Churn": "CHURNED"})
        crm = prepare_crm(raw)
        assert list(crm.columns) == [
            "id",
            "name",
            "loss_reason",
            "industry",
            "age_days",
            "engagement_pct",
            "adoption_pct",
            "type",
            "plan",
            "churned",
        ]

    def test_churn_flag_is_boolean(self, crm):
        assert crm["churned"].dtype == bool
        assert int(crm["churned"].sum()) == 5

    def test_non_numeric_values_become_null(self, raw_crm, caplog):
        raw = raw_crm.copy()
        raw["Engagement"] = raw["Engagement"].astype(object)
        raw.loc[0, "Engagement"] = "abc"
        with caplog.at_level("WARNING"):
            crm = prepare_crm(raw)
        assert pd.isna(crm.loc[0, "engagement_pct"])
        assert crm["engagement_pct"].dtype == "float64"
        assert "non-numeric" in caplog.text

    def test_unrecognised_churn_flag_drops_row(self, raw_crm):
        raw = raw_crm.copy()
        raw.loc[0, "Churn"] = "maybe"
        crm = prepare_crm(raw)
        assert len(crm) == len(raw) - 1
        assert 1 not in crm["id"].tolist()

    def test_missing_column_raises_schema_error(self, raw_crm):
        with pytest.raises(SchemaError) as excinfo:
            prepare_crm(raw_crm.drop(columns=["Industry"]))
        assert excinfo.value.missing == ["industry"]
        assert excinfo.value.table == "CRM_DATA"

    def test_string_columns_are_stripped(self, raw_crm):
        raw = raw_crm.copy()
        raw.loc[0, "Industry"] = "  Retail "
        crm = prepare_crm(raw)
        assert crm.loc[0, "industry"] == "Retail"


class TestParseFlag:
    @pytest.mark.parametrize("value", ["Yes", "yes", " Y ", "true", "1", True])
    def test_yes_values(self, value):
        assert parse_flag(value) is True

    @pytest.mark.parametrize("value", ["No", "n", "false", "0", False])
    def test_no_values(self, value):
        assert parse_flag(value) is False

    @pytest.mark.parametrize("value", [None, float("nan"), "unknown"])
    def test_unknown_values(self, value):
        assert parse_flag(value) is None


class TestPrepareReps:
    def test_id_maps_to_customer_id(self, raw_reps):
        reps = prepare_reps(raw_reps)
        assert list(reps.columns) == ["customer_id", "owner"]
        assert len(reps) == len(REP_ROWS)

    def test_missing_owner_raises(self, raw_reps):
        with pytest.raises(SchemaError):
            prepare_reps(raw_reps.drop(columns=["Owner"]))


class TestLoadAll:
    def test_reads_csv_tables(self, tmp_path, caplog):
        pd.DataFrame(CRM_ROWS, columns=CRM_HEADERS).to_csv(tmp_path / "crm_data.csv", index=False)
        pd.DataFrame(REP_ROWS, columns=["ID", "Owner"]).to_csv(tmp_path / "rep_data.csv", index=False)

        with caplog.at_level("INFO"):
            data = load_all(tmp_path)

        assert len(data["crm"]) == len(CRM_ROWS)
        assert len(data["reps"]) == len(REP_ROWS)
        assert "reference unknown customers" in caplog.text

    def test_pickle_is_preferred_over_csv(self, tmp_path):
        pd.DataFrame({"a": [1]}).to_csv(tmp_path / "table.csv", index=False)
        pd.DataFrame({"b": [2, 3]}).to_pickle(tmp_path / "table.pkl")
        assert list(load_table(tmp_path, "table").columns) == ["b"]

    def test_missing_table_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_table(tmp_path, "crm_data")
