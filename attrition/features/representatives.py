from __future__ import annotations

import pandas as pd

from attrition.config.constants import NOT_APPLICABLE
from attrition.features.churn import churned_only
from attrition.features.stats import percentage_of_partition_total, rank_within_partition


OWNER_COLUMNS = ["Owner", "Churned_Entities", "Churn_Rate_Percentage"]
OWNER_REASON_COLUMNS = ["Owner", "Loss_Reason", "Reason_Count", "Rank"]


def join_owners(customers: pd.DataFrame, reps: pd.DataFrame) -> pd.DataFrame:
    """Inner join customers to their owner; links to unknown customers drop out."""
    return customers.merge(reps, left_on="id", right_on="customer_id", how="inner")


def churn_by_representative(crm: pd.DataFrame, reps: pd.DataFrame) -> pd.DataFrame:
    """
    Churned accounts per owner and the owner's share of all owned churn.

    ``Churn_Rate_Percentage`` is a share of total churn, not churn relative to
    the owner's book; the column name is kept for continuity with past reports.
    """
    owned = join_owners(churned_only(crm), reps)
    if owned.empty:
        return pd.DataFrame(columns=OWNER_COLUMNS)

    by_owner = owned.groupby("owner", dropna=False)["id"].count().reset_index(name="Churned_Entities")
    by_owner = by_owner.rename(columns={"owner": "Owner"})
    by_owner["Churn_Rate_Percentage"] = percentage_of_partition_total(by_owner, "Churned_Entities", decimals=2)

    by_owner = by_owner.sort_values("Churn_Rate_Percentage", ascending=False, kind="mergesort")
    return by_owner[OWNER_COLUMNS].reset_index(drop=True)


def top_reasons_by_representative(crm: pd.DataFrame, reps: pd.DataFrame, top_n: int = 3) -> pd.DataFrame:
    churned = churned_only(crm)
    churned = churned[churned["loss_reason"].fillna(NOT_APPLICABLE) != NOT_APPLICABLE]
    owned = join_owners(churned, reps)
    if owned.empty:
        return pd.DataFrame(columns=OWNER_REASON_COLUMNS)

    # Groups keep first-appearance order so count ties rank by input order.
    counts = owned.groupby(["owner", "loss_reason"], sort=False, dropna=False).size().reset_index(name="Reason_Count")
    counts = counts.rename(columns={"owner": "Owner", "loss_reason": "Loss_Reason"})
    counts["Rank"] = rank_within_partition(counts, partition_by="Owner", order_by="Reason_Count", ascending=False)

    top = counts[counts["Rank"] <= top_n]
    top = top.sort_values(["Owner", "Rank"], kind="mergesort")
    return top[OWNER_REASON_COLUMNS].reset_index(drop=True)
