from __future__ import annotations

import pandas as pd

from attrition.features.churn import churned_only
from attrition.features.stats import quartile_bucket, require_numeric


QUARTILE_COLUMNS = [
    "Churned",
    "Average_Product_Adoption",
    "Median_Product_Adoption",
    "Highest_Product_Adoption",
    "Lowest_Product_Adoption",
    "Quartile",
    "Entities_Per_Quartile",
]

VERTICAL_COLUMNS = ["Industry", "Average_Engagement", "Average_Adoption"]


def adoption_quartiles(crm: pd.DataFrame, missing_values: str = "exclude") -> pd.DataFrame:
    rows = require_numeric(crm, ["adoption_pct"], missing_values, "adoption_quartiles").copy()
    if rows.empty:
        return pd.DataFrame(columns=QUARTILE_COLUMNS)

    rows["Quartile"] = quartile_bucket(rows, "adoption_pct", partition_by="churned", ascending=True)

    # Median/min/max are taken over the whole churn partition, not the quartile.
    partition = rows.groupby("churned")["adoption_pct"]
    rows["Median_Product_Adoption"] = partition.transform("median")
    rows["Highest_Product_Adoption"] = partition.transform("max")
    rows["Lowest_Product_Adoption"] = partition.transform("min")

    summary = rows.groupby(["churned", "Quartile"]).agg(
        Average_Product_Adoption=("adoption_pct", "mean"),
        Median_Product_Adoption=("Median_Product_Adoption", "max"),
        Highest_Product_Adoption=("Highest_Product_Adoption", "max"),
        Lowest_Product_Adoption=("Lowest_Product_Adoption", "min"),
        Entities_Per_Quartile=("id", "size"),
    ).reset_index()
    summary = summary.rename(columns={"churned": "Churned"})

    summary = summary.sort_values(["Churned", "Quartile"], kind="mergesort")
    return summary[QUARTILE_COLUMNS].reset_index(drop=True)


def underperforming_verticals(crm: pd.DataFrame, missing_values: str = "exclude") -> pd.DataFrame:
    """
    Industries whose churned accounts engage below the average industry.

    The benchmark is the mean of the per-industry engagement means, so a large
    industry does not pull the bar towards itself.
    """
    churned = churned_only(crm)
    churned = require_numeric(churned, ["engagement_pct", "adoption_pct"], missing_values, "underperforming_verticals")
    if churned.empty:
        return pd.DataFrame(columns=VERTICAL_COLUMNS)

    by_industry = churned.groupby("industry", dropna=False).agg(
        Average_Engagement=("engagement_pct", "mean"),
        Average_Adoption=("adoption_pct", "mean"),
    ).reset_index()
    by_industry = by_industry.rename(columns={"industry": "Industry"})

    benchmark = by_industry["Average_Engagement"].mean()
    below = by_industry[by_industry["Average_Engagement"] < benchmark]

    below = below.sort_values("Industry", kind="mergesort")
    return below[VERTICAL_COLUMNS].reset_index(drop=True)
