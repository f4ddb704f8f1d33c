from __future__ import annotations

import numpy as np
import pandas as pd

from attrition.config.constants import (
    LOSS_REASON_CATEGORIES,
    OTHER_CATEGORY,
    ENGAGEMENT_LOW_CUTOFF,
    ENGAGEMENT_HIGH_CUTOFF,
)
from attrition.features.stats import percentage_of_partition_total, require_numeric, sql_round


SEGMENT_PROFILE_COLUMNS = [
    "Industry",
    "Loss_Reason",
    "Total_Churned_Records",
    "Avg_Account_Age",
    "Max_Account_Age",
    "Avg_Engagement_Percentage",
    "Max_Engagement_Percentage",
    "Avg_Adoption_Percentage",
    "Max_Adoption_Percentage",
]

REASON_COLUMNS = [
    "Industry",
    "Categorized_Reason",
    "Loss_Reason",
    "Occurrences",
    "Total_Churned_In_Industry",
    "Percentage_Of_Churn",
]

ENGAGEMENT_COLUMNS = [
    "Churned",
    "Engagement_Level",
    "Average_Engagement_Percentage",
    "Min_Engagement",
    "Max_Engagement",
    "Entity_Count",
    "Percentage_In_Group",
]

TYPE_COLUMNS = ["Type", "Total_Churned", "Churn_Percentage"]


def churned_only(crm: pd.DataFrame) -> pd.DataFrame:
    return crm[crm["churned"]]


def churned_segment_profile(crm: pd.DataFrame, missing_values: str = "exclude") -> pd.DataFrame:
    churned = churned_only(crm)
    churned = require_numeric(churned, ["age_days", "engagement_pct", "adoption_pct"], missing_values, "churned_segment_profile")
    if churned.empty:
        return pd.DataFrame(columns=SEGMENT_PROFILE_COLUMNS)

    summary = churned.groupby(["industry", "loss_reason"], dropna=False).agg(
        Total_Churned_Records=("id", "size"),
        Avg_Account_Age=("age_days", "mean"),
        Max_Account_Age=("age_days", "max"),
        Avg_Engagement_Percentage=("engagement_pct", "mean"),
        Max_Engagement_Percentage=("engagement_pct", "max"),
        Avg_Adoption_Percentage=("adoption_pct", "mean"),
        Max_Adoption_Percentage=("adoption_pct", "max"),
    ).reset_index()
    summary = summary.rename(columns={"industry": "Industry", "loss_reason": "Loss_Reason"})

    summary["Avg_Account_Age"] = sql_round(summary["Avg_Account_Age"], 0)
    summary["Avg_Engagement_Percentage"] = sql_round(summary["Avg_Engagement_Percentage"], 1)
    summary["Avg_Adoption_Percentage"] = sql_round(summary["Avg_Adoption_Percentage"], 1)

    summary = summary.sort_values(
        ["Industry", "Total_Churned_Records", "Loss_Reason"],
        ascending=[True, False, True],
        kind="mergesort",
    )
    return summary[SEGMENT_PROFILE_COLUMNS].reset_index(drop=True)


def categorize_reason(loss_reason: pd.Series) -> pd.Series:
    return loss_reason.map(LOSS_REASON_CATEGORIES).fillna(OTHER_CATEGORY)


def churn_reasons_by_industry(crm: pd.DataFrame) -> pd.DataFrame:
    churned = churned_only(crm).copy()
    if churned.empty:
        return pd.DataFrame(columns=REASON_COLUMNS)

    churned["Categorized_Reason"] = categorize_reason(churned["loss_reason"])
    churned["Total_Churned_In_Industry"] = churned.groupby("industry", dropna=False)["id"].transform("size")

    counts = churned.groupby(["industry", "Categorized_Reason", "loss_reason"], dropna=False).agg(
        Occurrences=("id", "size"),
        Total_Churned_In_Industry=("Total_Churned_In_Industry", "max"),
    ).reset_index()
    counts = counts.rename(columns={"industry": "Industry", "loss_reason": "Loss_Reason"})

    counts["Percentage_Of_Churn"] = sql_round(counts["Occurrences"] * 100.0 / counts["Total_Churned_In_Industry"], 2)

    counts = counts.sort_values(
        ["Industry", "Percentage_Of_Churn", "Occurrences"],
        ascending=[True, False, False],
        kind="mergesort",
    )
    return counts[REASON_COLUMNS].reset_index(drop=True)


def engagement_level(engagement: pd.Series) -> pd.Series:
    return pd.Series(
        np.select(
            [engagement < ENGAGEMENT_LOW_CUTOFF, engagement.between(ENGAGEMENT_LOW_CUTOFF, ENGAGEMENT_HIGH_CUTOFF)],
            ["Low", "Medium"],
            default="High",
        ),
        index=engagement.index,
    )


def engagement_vs_churn(crm: pd.DataFrame, missing_values: str = "exclude") -> pd.DataFrame:
    rows = require_numeric(crm, ["engagement_pct"], missing_values, "engagement_vs_churn").copy()
    if rows.empty:
        return pd.DataFrame(columns=ENGAGEMENT_COLUMNS)

    rows["Engagement_Level"] = engagement_level(rows["engagement_pct"])

    metrics = rows.groupby(["churned", "Engagement_Level"]).agg(
        Average_Engagement_Percentage=("engagement_pct", "mean"),
        Min_Engagement=("engagement_pct", "min"),
        Max_Engagement=("engagement_pct", "max"),
        Entity_Count=("id", "size"),
    ).reset_index()
    metrics = metrics.rename(columns={"churned": "Churned"})
    metrics["Percentage_In_Group"] = percentage_of_partition_total(metrics, "Entity_Count", "Churned", decimals=2)

    # Level labels sort as plain strings: Medium, Low, High.
    metrics = metrics.sort_values(
        ["Churned", "Engagement_Level", "Percentage_In_Group"],
        ascending=[True, False, False],
        kind="mergesort",
    )
    return metrics[ENGAGEMENT_COLUMNS].reset_index(drop=True)


def churn_by_type(crm: pd.DataFrame) -> pd.DataFrame:
    churned = churned_only(crm)
    if churned.empty:
        return pd.DataFrame(columns=TYPE_COLUMNS)

    by_type = churned.groupby("type", dropna=False)["id"].size().reset_index(name="Total_Churned")
    by_type = by_type.rename(columns={"type": "Type"})
    by_type["Churn_Percentage"] = percentage_of_partition_total(by_type, "Total_Churned", decimals=1)

    by_type = by_type.sort_values("Churn_Percentage", ascending=False, kind="mergesort")
    return by_type[TYPE_COLUMNS].reset_index(drop=True)
