from __future__ import annotations

import pandas as pd

from attrition.features.stats import quartile_bucket, rank_within_partition, require_numeric


TOP_RETAINED_COLUMNS = [
    "ID",
    "Name",
    "Industry",
    "Account_Age_In_Days",
    "Engagement_Percentage",
    "Product_Adoption_Percentage",
    "Type",
    "Plan",
    "Engagement_Quartile",
    "Adoption_Quartile",
    "Rank_Within_Industry",
]

UPSELL_COLUMNS = ["ID", "Name", "Engagement_Percentage", "Product_Adoption_Percentage", "Type", "Plan"]

OUTPUT_NAMES = {
    "id": "ID",
    "name": "Name",
    "industry": "Industry",
    "age_days": "Account_Age_In_Days",
    "engagement_pct": "Engagement_Percentage",
    "adoption_pct": "Product_Adoption_Percentage",
    "type": "Type",
    "plan": "Plan",
}


def retained_only(crm: pd.DataFrame) -> pd.DataFrame:
    return crm[~crm["churned"]]


def top_retained_by_industry(crm: pd.DataFrame, top_n: int = 5, missing_values: str = "exclude") -> pd.DataFrame:
    retained = retained_only(crm)
    retained = require_numeric(retained, ["engagement_pct", "adoption_pct"], missing_values, "top_retained_by_industry").copy()
    if retained.empty:
        return pd.DataFrame(columns=TOP_RETAINED_COLUMNS)

    retained["Engagement_Quartile"] = quartile_bucket(retained, "engagement_pct", ascending=False)
    retained["Adoption_Quartile"] = quartile_bucket(retained, "adoption_pct", ascending=False)
    retained["Rank_Within_Industry"] = rank_within_partition(
        retained,
        partition_by="industry",
        order_by=["engagement_pct", "adoption_pct"],
        ascending=False,
    )

    top = retained[retained["Rank_Within_Industry"] <= top_n].rename(columns=OUTPUT_NAMES)
    top = top.sort_values(
        ["Industry", "Rank_Within_Industry", "Engagement_Quartile", "Adoption_Quartile"],
        kind="mergesort",
    )
    return top[TOP_RETAINED_COLUMNS].reset_index(drop=True)


def upsell_candidates(crm: pd.DataFrame, threshold: float = 70, missing_values: str = "exclude") -> pd.DataFrame:
    retained = retained_only(crm)
    retained = require_numeric(retained, ["engagement_pct", "adoption_pct"], missing_values, "upsell_candidates")
    mask = (retained["engagement_pct"] >= threshold) & (retained["adoption_pct"] >= threshold)
    candidates = retained[mask].rename(columns=OUTPUT_NAMES)

    candidates = candidates.sort_values(
        ["Engagement_Percentage", "Product_Adoption_Percentage"],
        ascending=[False, False],
        kind="mergesort",
    )
    return candidates[UPSELL_COLUMNS].reset_index(drop=True)
