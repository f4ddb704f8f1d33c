"""
Window-function style helpers shared by the report functions.

These mirror the SQL primitives the reports were first written with
(NTILE, ROW_NUMBER, ROUND and share-of-partition ratios) so that results
line up with the warehouse queries row for row.
"""
from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from attrition.models.errors import MalformedValueError

logger = logging.getLogger(__name__)


def _as_list(value: str | Sequence[str] | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _partition_keys(df: pd.DataFrame, partition_by: list[str]) -> list:
    if partition_by:
        return [df[col] for col in partition_by]
    return [pd.Series(0, index=df.index)]


def _stable_order(
    df: pd.DataFrame,
    order_by: list[str],
    partition_by: list[str],
    ascending: bool | Sequence[bool],
) -> pd.DataFrame:
    if isinstance(ascending, bool):
        ascending = [ascending] * len(order_by)
    by = partition_by + order_by
    flags = [True] * len(partition_by) + list(ascending)
    # Stable sort keeps input order for ties.
    return df.sort_values(by=by, ascending=flags, kind="mergesort", na_position="last")


def sql_round(values, decimals: int = 0):
    """Round half away from zero (SQL ROUND), unlike numpy's half-to-even."""
    factor = 10.0 ** decimals
    scaled = np.round(np.asarray(values, dtype=float) * factor, 9)
    rounded = np.sign(scaled) * np.floor(np.abs(scaled) + 0.5) / factor
    if isinstance(values, pd.Series):
        return pd.Series(rounded, index=values.index, name=values.name)
    if np.ndim(rounded) == 0:
        return float(rounded)
    return rounded


def quartile_bucket(
    df: pd.DataFrame,
    order_by: str | Sequence[str],
    partition_by: str | Sequence[str] | None = None,
    ascending: bool | Sequence[bool] = True,
    buckets: int = 4,
) -> pd.Series:
    """
    NTILE(buckets) over each partition.

    With n rows and b buckets, the first n % b buckets hold n // b + 1 rows
    and the rest hold n // b. Bucket 1 is the head of the ordering.
    """
    if df.empty:
        return pd.Series(dtype="int64", index=df.index)

    order_cols = _as_list(order_by)
    part_cols = _as_list(partition_by)
    ordered = _stable_order(df, order_cols, part_cols, ascending)

    keys = _partition_keys(ordered, part_cols)
    grouped = ordered.groupby(keys, sort=False, dropna=False)
    position = grouped.cumcount().to_numpy()
    size = grouped[order_cols[0]].transform("size").to_numpy()

    base, extra = np.divmod(size, buckets)
    large = base + 1
    cutoff = extra * large
    safe_base = np.where(base == 0, 1, base)
    bucket = np.where(
        position < cutoff,
        position // large + 1,
        extra + (position - cutoff) // safe_base + 1,
    )
    return pd.Series(bucket.astype("int64"), index=ordered.index).reindex(df.index)


def rank_within_partition(
    df: pd.DataFrame,
    partition_by: str | Sequence[str] | None,
    order_by: str | Sequence[str],
    ascending: bool | Sequence[bool] = False,
) -> pd.Series:
    """ROW_NUMBER() OVER (PARTITION BY ... ORDER BY ...), 1-based and gap free."""
    if df.empty:
        return pd.Series(dtype="int64", index=df.index)

    order_cols = _as_list(order_by)
    part_cols = _as_list(partition_by)
    ordered = _stable_order(df, order_cols, part_cols, ascending)

    keys = _partition_keys(ordered, part_cols)
    rank = ordered.groupby(keys, sort=False, dropna=False).cumcount() + 1
    return rank.astype("int64").reindex(df.index)


def percentage_of_partition_total(
    df: pd.DataFrame,
    count_col: str,
    partition_by: str | Sequence[str] | None = None,
    decimals: int = 2,
) -> pd.Series:
    if df.empty:
        return pd.Series(dtype="float64", index=df.index)

    part_cols = _as_list(partition_by)
    if part_cols:
        total = df.groupby(part_cols, dropna=False)[count_col].transform("sum")
    else:
        total = pd.Series(df[count_col].sum(), index=df.index)
    share = df[count_col] * 100.0 / total.replace(0, np.nan)
    return sql_round(share, decimals)


def require_numeric(df: pd.DataFrame, columns: Sequence[str], policy: str, report: str) -> pd.DataFrame:
    """
    Apply the missing-value policy for the numeric columns a report aggregates.

    ``exclude`` drops offending rows from this report only; ``fail`` raises
    MalformedValueError on the first column with gaps.
    """
    mask = pd.Series(True, index=df.index)
    for col in columns:
        missing = df[col].isna()
        count = int(missing.sum())
        if not count:
            continue
        if policy == "fail":
            raise MalformedValueError(report, col, count)
        logger.warning("%s: excluding %d row(s) with missing %s", report, count, col)
        mask &= ~missing
    return df[mask]
