"""
Aggregation of expenditure records into chart series and list groups.

Every function here is pure: records are read, never mutated, and nothing
is cached between calls. Callers recompute after each store mutation.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging
import math

from expenditure_tracker_app.config import (CHART_ANCHOR_DAYS, CHART_MONTHS,
                                            DATE_FORMAT, PAGE_SIZE)
from expenditure_tracker_app.vocabulary import (category_vocabulary,
                                                normalize_category)

logger = logging.getLogger(__name__)


class GroupBy(Enum):
    DAY = "Day"
    CATEGORY = "Category"
    DAY_SORTED = "Day - Sorted"


@dataclass(frozen=True)
class MonthBucket:
    month: date
    per_category_total: Dict[str, float]
    sorted_categories: List[Tuple[str, float]]

    @property
    def total(self) -> float:
        return sum(self.per_category_total.values())


@dataclass(frozen=True)
class GroupedBucket:
    """A titled group of records. ``total_amount`` is fixed at construction."""

    title: str
    items: Tuple[dict, ...]
    key: object = None
    total_amount: float = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "total_amount", total_amount(self.items))


# ---------- Date helpers ----------

def to_date(value, default: Optional[date] = None) -> date:
    """Coerce a stored date to ``date``; missing or malformed values fall back to ``default`` (today)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.strptime(value.strip()[:10], DATE_FORMAT).date()
        except ValueError:
            logger.warning("Unparseable date %r, using fallback", value)
    return default if default is not None else date.today()


def month_start(d: date) -> date:
    return date(d.year, d.month, 1)


def add_months(d: date, months: int) -> date:
    """Shift a month-start date by ``months`` calendar months."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def format_day_title(d: date) -> str:
    """Medium date style, e.g. 'Mar 5, 2024'."""
    return f"{d:%b} {d.day}, {d.year}"


def _amount(record) -> float:
    try:
        return float(record.get("amount") or 0.0)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric amount in record %s", record.get("id"))
        return 0.0


def total_amount(records: Iterable[dict]) -> float:
    return sum(_amount(rec) for rec in records)


# ---------- Monthly category series ----------

def chart_months(today: Optional[date] = None) -> List[date]:
    """The month-starts of the chart window, oldest first."""
    today = to_date(today) if today is not None else date.today()
    anchor_end = today + timedelta(days=CHART_ANCHOR_DAYS)
    window_start = add_months(month_start(anchor_end), -(CHART_MONTHS - 1))
    return [add_months(window_start, i) for i in range(CHART_MONTHS)]


def build_monthly_series(
    records: Iterable[dict],
    today: Optional[date] = None,
    vocabulary: Optional[Sequence[str]] = None,
) -> List[MonthBucket]:
    """
    Build the 12-month per-category series for the chart.

    Every vocabulary category is present in every month, zero when absent.
    Records whose category is not in the vocabulary are summed under
    "Unknown", which only appears in months that have such records.
    Records outside the window are ignored.
    """
    today = to_date(today) if today is not None else date.today()
    vocabulary = list(vocabulary) if vocabulary is not None else category_vocabulary()
    months = chart_months(today)
    totals: Dict[date, Dict[str, float]] = {m: {} for m in months}

    skipped = 0
    for record in records:
        month = month_start(to_date(record.get("date"), today))
        if month not in totals:
            skipped += 1
            continue
        category = normalize_category(record.get("category"), vocabulary)
        month_totals = totals[month]
        month_totals[category] = month_totals.get(category, 0.0) + _amount(record)

    series = []
    for month in months:
        per_category = {category: 0.0 for category in vocabulary}
        for category, amount in totals[month].items():
            per_category[category] = per_category.get(category, 0.0) + amount
        # sorted() is stable, so equal amounts keep vocabulary order
        ranked = sorted(per_category.items(), key=lambda kv: kv[1], reverse=True)
        series.append(MonthBucket(month, per_category, ranked))

    logger.debug(
        "Built monthly series %s..%s (%d records outside window)",
        months[0], months[-1], skipped,
    )
    return series


def y_axis_upper_bound(series: Sequence[MonthBucket]) -> int:
    """Largest month total padded by 10% and rounded up to the next thousand."""
    max_total = max((bucket.total for bucket in series), default=0.0)
    if max_total <= 0:
        return 0
    return int(math.ceil(max_total * 1.1 / 1000) * 1000)


# ---------- Day / category grouping ----------

def _group(records, key_func):
    groups: Dict[object, List[dict]] = {}
    for record in records:
        groups.setdefault(key_func(record), []).append(record)
    return groups


def group_by_day(records: Iterable[dict], today: Optional[date] = None) -> List[GroupedBucket]:
    """Group by calendar day, most recent day first."""
    groups = _group(records, lambda rec: to_date(rec.get("date"), today))
    buckets = [
        GroupedBucket(format_day_title(day), items, key=day)
        for day, items in groups.items()
    ]
    return sorted(buckets, key=lambda b: b.key, reverse=True)


def group_by_category(
    records: Iterable[dict], vocabulary: Optional[Sequence[str]] = None
) -> List[GroupedBucket]:
    """Group by category label, largest total first."""
    groups = _group(records, lambda rec: normalize_category(rec.get("category"), vocabulary))
    buckets = [
        GroupedBucket(category, items, key=category)
        for category, items in groups.items()
    ]
    return sorted(buckets, key=lambda b: b.total_amount, reverse=True)


def group_by_day_sorted(records: Iterable[dict], today: Optional[date] = None) -> List[GroupedBucket]:
    """Group by calendar day, largest total first; ties go to the later day."""
    buckets = group_by_day(records, today)
    return sorted(buckets, key=lambda b: (b.total_amount, b.key), reverse=True)


def group_expenditures(
    records: Sequence[dict],
    mode=GroupBy.DAY,
    page: int = 1,
    page_size: int = PAGE_SIZE,
    vocabulary: Optional[Sequence[str]] = None,
    today: Optional[date] = None,
) -> List[GroupedBucket]:
    """
    Group a month's records for the list view.

    Only ``GroupBy.DAY`` works on a single page of ``records``; the other
    modes always cover the whole month.
    """
    mode = GroupBy(mode)
    if mode is GroupBy.DAY:
        return group_by_day(paginate(records, page, page_size), today)
    if mode is GroupBy.CATEGORY:
        return group_by_category(records, vocabulary)
    return group_by_day_sorted(records, today)


# ---------- Pagination ----------

def paginate(records: Sequence[dict], page: int, page_size: int = PAGE_SIZE) -> List[dict]:
    """Return the 1-based ``page`` of ``records``; out-of-range pages are empty."""
    if page_size < 1:
        raise ValueError("page_size must be positive")
    records = list(records)
    if page < 1:
        return []
    start = (page - 1) * page_size
    return records[start:min(start + page_size, len(records))]


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    if page_size < 1:
        raise ValueError("page_size must be positive")
    return math.ceil(count / page_size) if count > 0 else 0
