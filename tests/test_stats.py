"""
Unit tests for the window-function helpers.
"""

import numpy as np
import pandas as pd
import pytest

from attrition.features.stats import (
    percentage_of_partition_total,
    quartile_bucket,
    rank_within_partition,
    require_numeric,
    sql_round,
)
from attrition.models.errors import MalformedValueError


class TestSqlRound:
    """ROUND semantics: half away from zero."""

    def test_half_rounds_away_from_zero(self):
        assert sql_round(2.5) == 3.0
        assert sql_round(-2.5) == -3.0
        assert sql_round(0.5) == 1.0

    def test_decimal_places(self):
        assert sql_round(66.666666, 2) == 66.67
        assert sql_round(0.125, 2) == 0.13
        assert sql_round(0.285, 2) == 0.29

    def test_series_keeps_index(self):
        values = pd.Series([1.25, 2.35], index=["a", "b"])
        result = sql_round(values, 1)
        assert list(result.index) == ["a", "b"]
        assert result.tolist() == [1.3, 2.4]


class TestQuartileBucket:
    """NTILE(4) bucketing."""

    @pytest.mark.parametrize("n", range(1, 14))
    def test_bucket_sizes_differ_by_at_most_one(self, n):
        df = pd.DataFrame({"v": np.arange(n)})
        buckets = quartile_bucket(df, "v")
        sizes = buckets.value_counts()
        assert sizes.max() - sizes.min() <= 1
        assert buckets.min() == 1
        assert buckets.max() == min(n, 4)
        # Larger buckets come first
        assert sizes.sort_index().is_monotonic_decreasing

    def test_five_rows_split_two_one_one_one(self):
        df = pd.DataFrame({"v": [50, 10, 40, 20, 30]})
        buckets = quartile_bucket(df, "v")
        assert buckets.tolist() == [4, 1, 3, 1, 2]

    def test_descending_puts_highest_in_first_bucket(self):
        df = pd.DataFrame({"v": [1, 2, 3, 4, 5, 6, 7, 8]})
        buckets = quartile_bucket(df, "v", ascending=False)
        assert buckets.tolist() == [4, 4, 3, 3, 2, 2, 1, 1]

    def test_partitions_are_bucketed_independently(self):
        df = pd.DataFrame({"g": ["a", "b", "a", "b", "a", "b"], "v": [3, 1, 2, 9, 1, 5]})
        buckets = quartile_bucket(df, "v", partition_by="g")
        assert buckets.tolist() == [3, 1, 2, 3, 1, 2]

    def test_ties_follow_input_order(self):
        df = pd.DataFrame({"v": [5, 5, 5, 5]}, index=[10, 11, 12, 13])
        buckets = quartile_bucket(df, "v")
        assert buckets.tolist() == [1, 2, 3, 4]
        assert list(buckets.index) == [10, 11, 12, 13]

    def test_empty_frame(self):
        df = pd.DataFrame({"v": pd.Series([], dtype=float)})
        assert quartile_bucket(df, "v").empty


class TestRankWithinPartition:
    """ROW_NUMBER ranking."""

    def test_ranks_descending_within_partition(self):
        df = pd.DataFrame({"g": ["x", "x", "y", "x", "y"], "v": [1, 3, 2, 2, 7]})
        ranks = rank_within_partition(df, "g", "v")
        assert ranks.tolist() == [3, 1, 2, 2, 1]

    def test_ties_are_stable_and_gap_free(self):
        df = pd.DataFrame({"g": ["x"] * 4, "v": [2, 2, 1, 2]})
        ranks = rank_within_partition(df, "g", "v")
        assert ranks.tolist() == [1, 2, 4, 3]

    def test_secondary_key_breaks_ties(self):
        df = pd.DataFrame({"g": ["x"] * 3, "a": [5, 5, 4], "b": [1, 9, 9]})
        ranks = rank_within_partition(df, "g", ["a", "b"])
        assert ranks.tolist() == [2, 1, 3]

    def test_without_partition(self):
        df = pd.DataFrame({"v": [1, 3, 2]})
        assert rank_within_partition(df, None, "v").tolist() == [3, 1, 2]


class TestPercentageOfPartitionTotal:
    def test_share_per_partition(self):
        df = pd.DataFrame({"g": ["a", "a", "b"], "n": [1, 2, 4]})
        result = percentage_of_partition_total(df, "n", "g")
        assert result.tolist() == [33.33, 66.67, 100.0]

    def test_share_of_grand_total_with_precision(self):
        df = pd.DataFrame({"n": [1, 1, 1]})
        assert percentage_of_partition_total(df, "n", decimals=1).tolist() == [33.3, 33.3, 33.3]


class TestRequireNumeric:
    def setup_method(self):
        self.df = pd.DataFrame({"a": [1.0, np.nan, 3.0], "b": [1.0, 2.0, np.nan]})

    def test_exclude_drops_rows_with_gaps(self):
        result = require_numeric(self.df, ["a", "b"], "exclude", "demo")
        assert result.index.tolist() == [0]

    def test_fail_raises(self):
        with pytest.raises(MalformedValueError) as excinfo:
            require_numeric(self.df, ["a"], "fail", "demo")
        assert excinfo.value.column == "a"
        assert excinfo.value.count == 1

    def test_clean_frame_passes_through(self):
        result = require_numeric(self.df, [], "fail", "demo")
        assert len(result) == 3
