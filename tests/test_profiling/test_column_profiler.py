"""Tests for the CSV column profiler."""

from __future__ import annotations

import random
from pathlib import Path

import numpy as np
import pytest

from faivor.errors import EmptyDatasetError, NoValidRowsError
from faivor.models.profiling import (
    CategoricalColumnStatistic,
    DatasetProfile,
    NumericalColumnStatistic,
)
from faivor.profiling.profiler import (
    build_histogram,
    histogram_bin_count,
    parse_numeric,
    profile_column,
    profile_dataset,
    profile_file,
    quantile,
)

ONE_TO_TEN = "x\n" + "\n".join(str(i) for i in range(1, 11)) + "\n"


def _column_csv(cells: list[str]) -> str:
    return "col,id\n" + "\n".join(f"{c},{i}" for i, c in enumerate(cells)) + "\n"


class TestNumericClassification:
    """A column is numerical only when more than 80% of values are numbers."""

    @pytest.mark.parametrize(
        ("n_numeric", "n_total", "expected"),
        [
            (4, 5, "categorical"),
            (8, 10, "categorical"),
            (9, 10, "numerical"),
            (81, 100, "numerical"),
            (0, 3, "categorical"),
        ],
    )
    def test_threshold(self, n_numeric: int, n_total: int, expected: str) -> None:
        cells = [str(i) for i in range(n_numeric)] + ["text"] * (n_total - n_numeric)
        stat = profile_column("col", cells)
        assert stat.type == expected

    def test_missing_values_excluded_from_share(self) -> None:
        stat = profile_column("col", ["1", "2", "3", "4", "x", "", "", ""])
        assert stat.type == "categorical"
        stat = profile_column("col", ["1", "2", "3", "4", "5", "", "", ""])
        assert stat.type == "numerical"
        assert stat.count == 5
        assert stat.null_values == 3

    def test_parse_numeric_keeps_only_finite(self) -> None:
        values = parse_numeric(["1", "2.5", "-3e2", "abc", "inf", "nan", ""])
        assert values.tolist() == [1.0, 2.5, -300.0]


class TestQuantile:
    def test_linear_interpolation(self) -> None:
        assert quantile([1, 2, 3, 4], 0.25) == pytest.approx(1.75)
        assert quantile([1, 2, 3, 4], 0.5) == pytest.approx(2.5)
        assert quantile([1, 2, 3, 4], 0.75) == pytest.approx(3.25)

    def test_bounds(self) -> None:
        assert quantile([1, 5, 9], 0.0) == 1
        assert quantile([1, 5, 9], 1.0) == 9

    def test_single_value(self) -> None:
        assert quantile([7.0], 0.25) == quantile([7.0], 0.5) == quantile([7.0], 0.75) == 7.0

    def test_empty_raises(self) -> None:
        with pytest.raises(ValueError):
            quantile([], 0.5)

    def test_monotonic_on_random_columns(self) -> None:
        rng = random.Random(7)
        for _ in range(50):
            values = sorted(rng.uniform(-100, 100) for _ in range(rng.randint(1, 40)))
            q1, q2, q3 = (quantile(values, q) for q in (0.25, 0.5, 0.75))
            assert q1 <= q2 <= q3


class TestHistogram:
    """Tests for the equal-width histogram."""

    @pytest.mark.parametrize(
        ("n", "expected"),
        [(1, 5), (25, 5), (30, 5), (31, 6), (49, 7), (100, 10), (10_000, 10)],
    )
    def test_bin_count_clamp(self, n: int, expected: int) -> None:
        assert histogram_bin_count(n) == expected

    def test_one_to_ten(self) -> None:
        stat = profile_dataset(ONE_TO_TEN).columns[0]
        assert isinstance(stat, NumericalColumnStatistic)
        assert stat.histogram_dict() == {
            "1.0-2.8": 2,
            "2.8-4.6": 2,
            "4.6-6.4": 2,
            "6.4-8.2": 2,
            "8.2-10.0": 2,
        }

    def test_last_bin_includes_max(self) -> None:
        bins = build_histogram(np.array([0.0, 10.0]))
        assert bins[-1].count == 1
        assert bins[0].count == 1

    def test_constant_column(self) -> None:
        bins = build_histogram(np.array([5.0, 5.0, 5.0]))
        assert len(bins) == 5
        assert sum(b.count for b in bins) == 3

    def test_counts_sum_to_numeric_count(self) -> None:
        rng = random.Random(3)
        for _ in range(30):
            cells = [f"{rng.gauss(50, 20):.3f}" for _ in range(rng.randint(1, 200))]
            cells.append("n/a")
            stat = profile_column("v", cells)
            if isinstance(stat, NumericalColumnStatistic):
                assert sum(b.count for b in stat.histogram) == len(cells) - 1

    def test_narrow_range_labels_keep_all_counts(self) -> None:
        cells = [f"{i / 100:.2f}" for i in range(10)]
        stat = profile_column("v", cells)
        assert isinstance(stat, NumericalColumnStatistic)
        assert len(stat.histogram) == 5
        labels = stat.histogram_dict()
        assert len(labels) < len(stat.histogram)
        assert sum(labels.values()) == len(cells)


class TestNumericalSummary:
    def test_summary_values(self) -> None:
        stat = profile_dataset(ONE_TO_TEN).columns[0]
        assert isinstance(stat, NumericalColumnStatistic)
        assert stat.count == 10
        assert stat.unique_values == 10
        assert stat.min == 1.0
        assert stat.max == 10.0
        assert stat.mean == 5.5
        assert stat.median == 5.5
        assert stat.std == 2.87
        assert (stat.quartiles.q1, stat.quartiles.q2, stat.quartiles.q3) == (3.25, 5.5, 7.75)

    def test_rounded_to_two_decimals(self) -> None:
        stat = profile_column("v", ["1", "2", "2"])
        assert stat.mean == 1.67


class TestCategoricalSummary:
    """Tests for categorical frequency summaries."""

    def test_distribution_and_most_common(self) -> None:
        stat = profile_column("c", ["a", "b", "a", "c", "b", "a"])
        assert isinstance(stat, CategoricalColumnStatistic)
        assert stat.most_common is not None
        assert (stat.most_common.value, stat.most_common.count) == ("a", 3)
        assert stat.distribution_dict() == {"a": 3, "b": 2, "c": 1}
        assert stat.values == ["a", "b", "c"]
        assert stat.unique_values == 3

    def test_ties_keep_first_seen(self) -> None:
        stat = profile_column("c", ["y", "x", "x", "y", "z"])
        assert stat.most_common is not None
        assert stat.most_common.value == "y"
        assert list(stat.distribution_dict()) == ["y", "x", "z"]

    def test_limits(self) -> None:
        cells = [f"v{i}" for i in range(30)]
        stat = profile_column("c", cells)
        assert len(stat.values) == 20
        assert len(stat.distribution) == 15

    def test_all_missing_column(self) -> None:
        stat = profile_column("c", ["", "", ""])
        assert isinstance(stat, CategoricalColumnStatistic)
        assert stat.count == 0
        assert stat.null_values == 3
        assert stat.most_common is None
        assert stat.distribution == []


class TestProfileDataset:
    """Tests for profile_dataset and profile_file."""

    def test_basic_profile(self) -> None:
        profile = profile_dataset("age,sex\n30,M\n40,F\n50,F\n", file_name="cohort.csv")
        assert isinstance(profile, DatasetProfile)
        assert profile.row_count == 3
        assert profile.column_count == 2
        assert profile.file_name == "cohort.csv"
        assert profile.get_column("age").type == "numerical"
        assert profile.get_column("sex").type == "categorical"
        assert profile.get_column("missing") is None

    def test_completeness(self) -> None:
        profile = profile_dataset("a,b\n1,\n,2\n3,4\n")
        assert profile.completeness == 66.67

    def test_completeness_invariant_under_row_order(self) -> None:
        rows = ["1,,x", ",2,y", "3,4,", "5,6,z", ",,w"]
        rng = random.Random(11)
        expected = profile_dataset("a,b,c\n" + "\n".join(rows)).completeness
        for _ in range(10):
            shuffled = rows[:]
            rng.shuffle(shuffled)
            assert profile_dataset("a,b,c\n" + "\n".join(shuffled)).completeness == expected

    def test_rows_with_wrong_width_dropped(self) -> None:
        profile = profile_dataset("a,b\n1,2\n3\n4,5\n")
        assert profile.row_count == 2

    def test_semicolon_detected(self) -> None:
        profile = profile_dataset("a;b\n1;2\n3;4\n")
        assert profile.delimiter == ";"
        assert profile.column_count == 2

    def test_explicit_delimiter(self) -> None:
        profile = profile_dataset("a|b,c\n1|2,3\n", delimiter="|")
        assert [c.name for c in profile.columns] == ["a", "b,c"]

    def test_quoted_fields(self) -> None:
        profile = profile_dataset('name,score\n"Smith, J",1\n"Doe, A",2\n')
        assert profile.get_column("name").values == ["Smith, J", "Doe, A"]

    def test_empty_text_raises(self) -> None:
        with pytest.raises(EmptyDatasetError, match="CSV file is empty"):
            profile_dataset("\n\n")

    def test_header_only_raises(self) -> None:
        with pytest.raises(NoValidRowsError):
            profile_dataset("a,b\n")

    def test_profile_file(self, tmp_path: Path) -> None:
        path = tmp_path / "data.csv"
        path.write_bytes("\ufeffage,sex\n30,M\n".encode())
        profile = profile_file(path)
        assert profile.file_name == "data.csv"
        assert profile.file_size == path.stat().st_size
        assert profile.columns[0].name == "age"

    def test_profile_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            profile_file(tmp_path / "nope.csv")
