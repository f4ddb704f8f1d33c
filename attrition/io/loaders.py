from __future__ import annotations

import logging
from pathlib import Path
import pandas as pd

from attrition.config.constants import CRM_COLUMNS, REP_COLUMNS, NUMERIC_COLUMNS, YES_WORDS, NO_WORDS
from attrition.models.errors import SchemaError

logger = logging.getLogger(__name__)

CRM_REQUIRED = ["id", "name", "loss_reason", "industry", "age_days", "engagement_pct", "adoption_pct", "type", "plan", "churned"]
REP_REQUIRED = ["customer_id", "owner"]


def load_table(data_dir: Path, name: str) -> pd.DataFrame:
    pkl_path = data_dir / f"{name}.pkl"
    if pkl_path.exists():
        return pd.read_pickle(pkl_path)
    csv_path = data_dir / f"{name}.csv"
    if csv_path.exists():
        return pd.read_csv(csv_path)
    raise FileNotFoundError(f"No {name}.pkl or {name}.csv under {data_dir}")


def normalize_columns(df: pd.DataFrame, aliases: dict[str, str], required: list[str], table: str) -> pd.DataFrame:
    renamed = {}
    for col in df.columns:
        key = str(col).strip().lower().replace(" ", "_")
        if key in aliases and aliases[key] not in renamed.values():
            renamed[col] = aliases[key]
    df = df.rename(columns=renamed)

    missing = [col for col in required if col not in df.columns]
    if missing:
        raise SchemaError(table, missing)
    return df[required].copy()


def parse_flag(value: object) -> bool | None:
    if isinstance(value, bool):
        return value
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    val = str(value).strip().lower()
    if val in YES_WORDS:
        return True
    if val in NO_WORDS:
        return False
    return None


def to_numeric(df: pd.DataFrame, cols: list[str], table: str) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            coerced = pd.to_numeric(df[col], errors="coerce")
            bad = int((coerced.isna() & df[col].notna()).sum())
            if bad:
                logger.warning("%s.%s: %d non-numeric value(s) coerced to null", table, col, bad)
            df[col] = coerced.astype("float64")
    return df


def prepare_crm(raw: pd.DataFrame) -> pd.DataFrame:
    crm = normalize_columns(raw, CRM_COLUMNS, CRM_REQUIRED, "CRM_DATA")
    crm = to_numeric(crm, NUMERIC_COLUMNS, "CRM_DATA")

    churned = crm["churned"].map(parse_flag)
    unknown = int(churned.isna().sum())
    if unknown:
        logger.warning("CRM_DATA.churned: dropping %d row(s) with unrecognised churn flag", unknown)
    crm = crm[churned.notna()].copy()
    crm["churned"] = churned[churned.notna()].astype(bool)

    for col in ["name", "loss_reason", "industry", "type", "plan"]:
        crm[col] = crm[col].astype("string").str.strip()

    return crm.reset_index(drop=True)


def prepare_reps(raw: pd.DataFrame) -> pd.DataFrame:
    reps = normalize_columns(raw, REP_COLUMNS, REP_REQUIRED, "REP_DATA")
    reps["owner"] = reps["owner"].astype("string").str.strip()
    return reps.reset_index(drop=True)


def load_all(data_dir: Path, crm_table: str = "crm_data", rep_table: str = "rep_data") -> dict[str, pd.DataFrame]:
    crm = prepare_crm(load_table(data_dir, crm_table))
    reps = prepare_reps(load_table(data_dir, rep_table))

    unmatched = int((~reps["customer_id"].isin(crm["id"])).sum())
    if unmatched:
        logger.info("REP_DATA: %d link(s) reference unknown customers and will not join", unmatched)

    logger.info("Loaded %d customer rows and %d representative links from %s", len(crm), len(reps), data_dir)
    return {"crm": crm, "reps": reps}
