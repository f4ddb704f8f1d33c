"""Shared pytest fixtures for the report test suite."""

from pathlib import Path

import pandas as pd
import pytest

from attrition.config.settings import Settings
from attrition.io.loaders import prepare_crm, prepare_reps

CRM_HEADERS = ["ID", "Name", "Loss_Reason", "Industry", "Age", "Engagement", "Adoption", "Type", "Plan", "Churn"]

CRM_ROWS = [
    (1, "Acme", "Pricing", "Retail", 100, 20, 10, "Account", "Basic", "Yes"),
    (2, "Bolt", "Pricing", "Retail", 200, 40, 90, "Opportunity", "Pro", "Yes"),
    (3, "Core", "Support", "Retail", 300, 60, 50, "Account", "Pro", "Yes"),
    (4, "Dyna", "N/A", "Retail", 400, 80, 85, "Account", "Enterprise", "No"),
    (5, "Echo", "N/A", "Retail", 500, 75, 72, "Opportunity", "Pro", "No"),
    (6, "Flux", "Features", "Finance", 150, 10, 20, "Account", "Basic", "Yes"),
    (7, "Gale", "Budget", "Finance", 250, 30, 40, "Opportunity", "Basic", "Yes"),
    (8, "Halo", "N/A", "Finance", 350, 90, 95, "Account", "Enterprise", "No"),
    (9, "Iris", "N/A", "Finance", 450, 70, 70, "Account", "Pro", "No"),
    (10, "Jade", "N/A", "Finance", 550, 25, 30, "Opportunity", "Basic", "No"),
]

REP_ROWS = [
    (1, "Ann"),
    (2, "Ann"),
    (3, "Bob"),
    (4, "Ann"),
    (6, "Bob"),
    (7, "Cy"),
    (8, "Cy"),
    (9, "Bob"),
    (10, "Bob"),
    # Link to a customer that does not exist
    (99, "Ann"),
]


@pytest.fixture
def make_crm():
    """Build a prepared CRM frame from rows in source column order."""

    def _make(rows) -> pd.DataFrame:
        return prepare_crm(pd.DataFrame(rows, columns=CRM_HEADERS))

    return _make


@pytest.fixture
def raw_crm() -> pd.DataFrame:
    return pd.DataFrame(CRM_ROWS, columns=CRM_HEADERS)


@pytest.fixture
def raw_reps() -> pd.DataFrame:
    return pd.DataFrame(REP_ROWS, columns=["ID", "Owner"])


@pytest.fixture
def crm(raw_crm) -> pd.DataFrame:
    return prepare_crm(raw_crm)


@pytest.fixture
def reps(raw_reps) -> pd.DataFrame:
    return prepare_reps(raw_reps)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    output_dir = tmp_path / "output"
    return Settings(
        base_dir=tmp_path,
        data_dir=tmp_path / "db",
        output_dir=output_dir,
        table_dir=output_dir / "tables",
        fig_dir=output_dir / "figures",
        crm_table="crm_data",
        rep_table="rep_data",
        missing_values="exclude",
        upsell_threshold=70.0,
        top_retained_per_industry=5,
        top_reasons_per_owner=3,
        log_level="INFO",
        skip_pdf=True,
    )
