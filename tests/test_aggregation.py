# test_aggregation.py
import copy
import dataclasses
from datetime import date, datetime

import pytest

from expenditure_tracker_app.aggregation import (GroupBy, GroupedBucket,
                                                 MonthBucket, add_months,
                                                 build_monthly_series,
                                                 chart_months,
                                                 format_day_title,
                                                 group_by_category,
                                                 group_by_day,
                                                 group_by_day_sorted,
                                                 group_expenditures,
                                                 month_start, paginate,
                                                 to_date, total_amount,
                                                 total_pages,
                                                 y_axis_upper_bound)
from expenditure_tracker_app.vocabulary import category_vocabulary

TODAY = date(2024, 3, 25)


def _record(amount, category, day, record_id=None):
    return {"id": record_id, "amount": amount, "category": category, "date": day}


def _daily_records(count, start_day=1):
    """One record per day in March 2024, most recent first."""
    records = [
        _record(100.0 * day, "Groceries", f"2024-03-{day:02d}", record_id=day)
        for day in range(start_day, start_day + count)
    ]
    return list(reversed(records))


class TestDateHelpers:
    @pytest.mark.unit
    def test_to_date_variants(self):
        assert to_date("2024-03-05") == date(2024, 3, 5)
        assert to_date("2024-03-05T18:30:00") == date(2024, 3, 5)
        assert to_date(datetime(2024, 3, 5, 23, 59)) == date(2024, 3, 5)
        assert to_date(date(2024, 3, 5)) == date(2024, 3, 5)

    @pytest.mark.unit
    def test_to_date_missing_or_invalid_uses_default(self):
        assert to_date(None, TODAY) == TODAY
        assert to_date("", TODAY) == TODAY
        assert to_date("not a date", TODAY) == TODAY

    @pytest.mark.unit
    def test_add_months_crosses_year_boundaries(self):
        assert add_months(date(2024, 1, 1), -1) == date(2023, 12, 1)
        assert add_months(date(2024, 12, 1), 1) == date(2025, 1, 1)
        assert add_months(date(2024, 4, 1), -11) == date(2023, 5, 1)

    @pytest.mark.unit
    def test_month_start_and_day_title(self):
        assert month_start(date(2024, 2, 29)) == date(2024, 2, 1)
        assert format_day_title(date(2024, 3, 5)) == "Mar 5, 2024"
        assert format_day_title(date(2023, 12, 31)) == "Dec 31, 2023"


class TestMonthlySeries:
    @pytest.mark.unit
    def test_chart_months_window(self):
        """Window ends at the month containing today + 15 days"""
        months = chart_months(TODAY)
        assert len(months) == 12
        assert months[0] == date(2023, 5, 1)
        assert months[-1] == date(2024, 4, 1)

    @pytest.mark.unit
    def test_chart_months_current_month_when_anchor_stays(self):
        months = chart_months(date(2024, 3, 10))
        assert months[-1] == date(2024, 3, 1)
        assert months[0] == date(2023, 4, 1)

    @pytest.mark.unit
    def test_chart_months_across_year_end(self):
        months = chart_months(date(2024, 12, 20))
        assert months[0] == date(2024, 2, 1)
        assert months[-1] == date(2025, 1, 1)

    @pytest.mark.unit
    def test_series_has_twelve_ascending_buckets(self, sample_records):
        series = build_monthly_series(sample_records, TODAY)

        assert len(series) == 12
        assert all(isinstance(b, MonthBucket) for b in series)
        assert [b.month for b in series] == sorted(b.month for b in series)

    @pytest.mark.unit
    def test_every_vocabulary_category_in_every_month(self, sample_records):
        vocabulary = category_vocabulary()
        series = build_monthly_series(sample_records, TODAY)

        for bucket in series:
            for category in vocabulary:
                assert category in bucket.per_category_total
                assert bucket.per_category_total[category] >= 0
            assert len(bucket.sorted_categories) == len(bucket.per_category_total)

    @pytest.mark.unit
    def test_empty_records(self):
        series = build_monthly_series([], TODAY)

        assert len(series) == 12
        assert all(b.total == 0 for b in series)
        assert y_axis_upper_bound(series) == 0

    @pytest.mark.unit
    def test_month_totals_and_ranking(self, sample_records):
        series = build_monthly_series(sample_records, TODAY)
        march = next(b for b in series if b.month == date(2024, 3, 1))

        assert march.per_category_total["Travel"] == 1500.0
        assert march.per_category_total["Groceries"] == 700.0
        assert march.per_category_total["Restaurant"] == 300.0
        assert march.sorted_categories[:3] == [
            ("Travel", 1500.0),
            ("Groceries", 700.0),
            ("Restaurant", 300.0),
        ]
        assert sum(amount for _, amount in march.sorted_categories) == 2500.0

    @pytest.mark.unit
    def test_ties_keep_vocabulary_order(self):
        series = build_monthly_series([], TODAY)
        assert [c for c, _ in series[0].sorted_categories] == category_vocabulary()

    @pytest.mark.unit
    def test_records_outside_window_are_excluded(self):
        records = [
            _record(100.0, "Toll", "2023-04-30"),
            _record(250.0, "Toll", "2023-05-01"),
            _record(75.0, "Toll", "2024-05-01"),
        ]
        series = build_monthly_series(records, TODAY)

        assert series[0].per_category_total["Toll"] == 250.0
        assert sum(b.total for b in series) == 250.0

    @pytest.mark.unit
    def test_unrecognized_category_goes_to_unknown(self):
        records = [
            _record(50.0, "Gadgets", "2024-02-10"),
            _record(20.0, None, "2024-02-11"),
            _record(30.0, "Petrol", "2024-02-12"),
        ]
        series = build_monthly_series(records, TODAY)
        february = next(b for b in series if b.month == date(2024, 2, 1))
        january = next(b for b in series if b.month == date(2024, 1, 1))

        assert february.per_category_total["Unknown"] == 70.0
        assert february.total == 100.0
        assert "Unknown" not in january.per_category_total

    @pytest.mark.unit
    def test_icon_prefixed_labels_are_recognized(self):
        series = build_monthly_series([_record(40.0, "🛒 Groceries", "2024-03-01")], TODAY)
        march = next(b for b in series if b.month == date(2024, 3, 1))
        assert march.per_category_total["Groceries"] == 40.0

    @pytest.mark.unit
    def test_missing_date_counts_as_today(self):
        series = build_monthly_series([_record(80.0, "Toll", None)], TODAY)
        march = next(b for b in series if b.month == date(2024, 3, 1))
        assert march.per_category_total["Toll"] == 80.0

    @pytest.mark.unit
    def test_input_records_are_not_mutated(self, sample_records):
        before = copy.deepcopy(sample_records)
        build_monthly_series(sample_records, TODAY)
        group_expenditures(sample_records, GroupBy.CATEGORY)
        assert sample_records == before

    @pytest.mark.unit
    def test_custom_vocabulary(self):
        series = build_monthly_series(
            [_record(10.0, "Books", "2024-03-02")], TODAY, vocabulary=["Books", "Rent"]
        )
        assert set(series[-2].per_category_total) == {"Books", "Rent"}
        assert series[-2].per_category_total["Books"] == 10.0


class TestYAxisUpperBound:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "amount, expected",
        [
            (500.0, 1000),
            (1000.0, 2000),
            (2500.0, 3000),
            (9000.0, 10000),
            (6363.64, 8000),
            (0.5, 1000),
        ],
    )
    def test_rounds_padded_maximum_up_to_thousand(self, amount, expected):
        series = build_monthly_series([_record(amount, "Toll", "2024-03-01")], TODAY)
        bound = y_axis_upper_bound(series)

        assert bound == expected
        assert bound % 1000 == 0
        assert bound >= amount * 1.1

    @pytest.mark.unit
    def test_uses_largest_month(self, sample_records):
        records = sample_records + [_record(4000.0, "Hospital", "2023-11-11")]
        series = build_monthly_series(records, TODAY)
        assert y_axis_upper_bound(series) == 5000


class TestGrouping:
    @pytest.mark.unit
    def test_group_by_category_example(self):
        records = [
            _record(500, "Groceries", "2024-03-05"),
            _record(1500, "Travel", "2024-03-20"),
        ]
        buckets = group_by_category(records)

        assert [(b.title, b.total_amount) for b in buckets] == [
            ("Travel", 1500),
            ("Groceries", 500),
        ]

    @pytest.mark.unit
    def test_group_by_category_keeps_item_order(self, sample_records):
        buckets = group_by_category(sample_records)

        assert [b.title for b in buckets] == ["Travel", "Groceries", "Restaurant"]
        assert [r["id"] for r in buckets[1].items] == [3, 1]
        assert buckets[1].total_amount == 700.0

    @pytest.mark.unit
    def test_group_by_category_unknown_fallback(self):
        records = [_record(10, "", "2024-03-01"), _record(5, None, "2024-03-02")]
        buckets = group_by_category(records)

        assert len(buckets) == 1
        assert buckets[0].title == "Unknown"
        assert buckets[0].total_amount == 15

    @pytest.mark.unit
    def test_group_by_day_most_recent_first(self, sample_records):
        buckets = group_by_day(sample_records)

        assert [b.title for b in buckets] == ["Mar 20, 2024", "Mar 12, 2024", "Mar 5, 2024"]
        assert [r["id"] for r in buckets[0].items] == [4, 2]
        assert buckets[0].total_amount == 1800.0
        assert buckets[0].key == date(2024, 3, 20)

    @pytest.mark.unit
    def test_group_by_day_sorted_by_total(self, sample_records):
        buckets = group_by_day_sorted(sample_records)

        assert [b.title for b in buckets] == ["Mar 20, 2024", "Mar 5, 2024", "Mar 12, 2024"]
        assert [b.total_amount for b in buckets] == [1800.0, 500.0, 200.0]

    @pytest.mark.unit
    def test_group_by_day_sorted_ties_prefer_later_day(self):
        records = [
            _record(100, "Toll", "2024-03-01"),
            _record(100, "Toll", "2024-03-09"),
            _record(300, "Toll", "2024-03-04"),
        ]
        buckets = group_by_day_sorted(records)
        assert [b.title for b in buckets] == ["Mar 4, 2024", "Mar 9, 2024", "Mar 1, 2024"]

    @pytest.mark.unit
    @pytest.mark.parametrize("mode", list(GroupBy))
    def test_bucket_totals_sum_to_input_total(self, sample_records, mode):
        buckets = group_expenditures(sample_records, mode, page=1, page_size=100)
        assert sum(b.total_amount for b in buckets) == total_amount(sample_records)

    @pytest.mark.unit
    def test_day_mode_groups_only_requested_page(self):
        records = _daily_records(12)

        first = group_expenditures(records, GroupBy.DAY, page=1, page_size=10)
        second = group_expenditures(records, GroupBy.DAY, page=2, page_size=10)

        assert len(first) == 10
        assert first[0].title == "Mar 12, 2024"
        assert [b.title for b in second] == ["Mar 2, 2024", "Mar 1, 2024"]

    @pytest.mark.unit
    @pytest.mark.parametrize("mode", [GroupBy.CATEGORY, GroupBy.DAY_SORTED, "Category"])
    def test_other_modes_ignore_pagination(self, mode):
        records = _daily_records(12)
        buckets = group_expenditures(records, mode, page=2, page_size=10)
        assert sum(len(b.items) for b in buckets) == 12

    @pytest.mark.unit
    def test_invalid_mode_raises(self):
        with pytest.raises(ValueError):
            group_expenditures([], "Weekly")

    @pytest.mark.unit
    def test_grouped_bucket_total_is_fixed(self):
        items = [{"amount": 10.0}, {"amount": 2.5}, {"amount": None}]
        bucket = GroupedBucket("Mar 1, 2024", items)

        assert bucket.total_amount == 12.5
        assert isinstance(bucket.items, tuple)
        with pytest.raises(dataclasses.FrozenInstanceError):
            bucket.total_amount = 0


class TestPagination:
    @pytest.mark.unit
    def test_pages_reconstruct_original_order(self):
        records = [{"id": i} for i in range(23)]
        pages = [paginate(records, page, 5) for page in range(1, total_pages(23, 5) + 1)]

        assert [len(p) for p in pages] == [5, 5, 5, 5, 3]
        assert [r for page in pages for r in page] == records

    @pytest.mark.unit
    def test_page_beyond_last_is_empty(self):
        records = [{"id": i} for i in range(3)]
        assert paginate(records, 2) == []
        assert paginate(records, 99, 10) == []
        assert paginate([], 1) == []

    @pytest.mark.unit
    def test_page_before_first_is_empty(self):
        assert paginate([{"id": 1}], 0) == []

    @pytest.mark.unit
    def test_default_page_size_is_ten(self):
        records = [{"id": i} for i in range(15)]
        assert len(paginate(records, 1)) == 10
        assert len(paginate(records, 2)) == 5

    @pytest.mark.unit
    def test_total_pages(self):
        assert total_pages(0) == 0
        assert total_pages(10) == 1
        assert total_pages(11) == 2
        assert total_pages(21, 10) == 3

    @pytest.mark.unit
    def test_invalid_page_size(self):
        with pytest.raises(ValueError):
            paginate([], 1, 0)
        with pytest.raises(ValueError):
            total_pages(5, 0)
