"""
Hotel P&L - Profit & Loss Metrics

Combine order totals with COGS into gross/net profit and margin, derive
comparison windows, and diff two periods metric by metric.
"""

import calendar
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from app.core.types import ZERO, HUNDRED, Money
from app.models.hotel import ComparativeMode, ComparisonType, Order, Period
from app.models.pl import ComparativePeriods, MetricDelta, PLComparison, PLMetrics


COMPARED_METRICS = (
    "revenue",
    "cogs",
    "gross_profit",
    "tax",
    "discount",
    "net_profit",
    "profit_margin",
    "order_count",
)


def filter_orders_by_period(
    orders: Iterable[Order],
    period: Period,
    statuses: Optional[Iterable[str]] = None,
    payment_statuses: Optional[Iterable[str]] = None,
) -> list[Order]:
    """Orders created within the period, optionally restricted by status."""
    status_set = set(statuses) if statuses is not None else None
    payment_set = set(payment_statuses) if payment_statuses is not None else None

    return [
        o for o in orders
        if period.contains(o.created_at)
        and (status_set is None or o.status in status_set)
        and (payment_set is None or o.payment_status in payment_set)
    ]


def calculate_pl_metrics(orders: list[Order], cogs: Decimal) -> PLMetrics:
    """
    P&L for a set of orders.

    net_profit subtracts tax only: discounts already reduced total_amount,
    so subtracting them again would count them twice.
    """
    cogs = Money.to_decimal(cogs)
    revenue = sum((o.total_amount for o in orders), ZERO)
    tax = sum((o.tax_amount for o in orders), ZERO)
    discount = sum((o.discount_amount for o in orders), ZERO)

    gross_profit = revenue - cogs
    net_profit = gross_profit - tax
    profit_margin = Money.ratio(net_profit, revenue)

    return PLMetrics(
        revenue=revenue,
        cogs=cogs,
        gross_profit=gross_profit,
        tax=tax,
        discount=discount,
        net_profit=net_profit,
        profit_margin=profit_margin,
        order_count=len(orders),
    )


def combine_pl_metrics(metrics: Iterable[PLMetrics]) -> PLMetrics:
    """Sum department P&Ls into one, recomputing profit and margin."""
    metrics = list(metrics)
    revenue = sum((m.revenue for m in metrics), ZERO)
    cogs = sum((m.cogs for m in metrics), ZERO)
    tax = sum((m.tax for m in metrics), ZERO)
    gross_profit = revenue - cogs
    net_profit = gross_profit - tax

    return PLMetrics(
        revenue=revenue,
        cogs=cogs,
        gross_profit=gross_profit,
        tax=tax,
        discount=sum((m.discount for m in metrics), ZERO),
        net_profit=net_profit,
        profit_margin=Money.ratio(net_profit, revenue),
        order_count=sum(m.order_count for m in metrics),
    )


def _shift_months(day: date, months: int) -> date:
    """Move a date by whole months, clamping to the target month's last day."""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def get_comparison_period_dates(
    start: date,
    end: date,
    comparison_type: ComparisonType | str,
) -> Period:
    """
    Comparison window for the period [start, end].

    previous:   the same number of days, ending the day before start
    last_week:  both ends moved back 7 days
    last_month: both ends moved back one calendar month
    last_year:  both ends moved back one calendar year
    """
    period = Period(start=start, end=end)
    comparison_type = ComparisonType(comparison_type)

    if comparison_type == ComparisonType.PREVIOUS:
        new_end = period.start - timedelta(days=1)
        new_start = new_end - timedelta(days=period.days - 1)
    elif comparison_type == ComparisonType.LAST_WEEK:
        new_start = period.start - timedelta(days=7)
        new_end = period.end - timedelta(days=7)
    elif comparison_type == ComparisonType.LAST_MONTH:
        new_start = _shift_months(period.start, -1)
        new_end = _shift_months(period.end, -1)
    else:
        new_start = _shift_months(period.start, -12)
        new_end = _shift_months(period.end, -12)

    return Period(start=new_start, end=new_end)


def calculate_change(current: Decimal, previous: Decimal) -> MetricDelta:
    """Absolute and relative change. No percentage against a zero baseline."""
    current = Money.to_decimal(current)
    previous = Money.to_decimal(previous)
    value = current - previous
    if previous == 0:
        return MetricDelta(value=value, percentage=None)
    return MetricDelta(value=value, percentage=value / abs(previous) * HUNDRED)


def compare_pl_metrics(current: PLMetrics, previous: PLMetrics) -> PLComparison:
    """Per-metric deltas of current against previous."""
    changes = {
        metric: calculate_change(getattr(current, metric), getattr(previous, metric))
        for metric in COMPARED_METRICS
    }
    return PLComparison(current=current, previous=previous, changes=changes)


# =============================================================================
# COMPARATIVE PRESETS
# =============================================================================

def _calendar_window(day: date, mode: ComparativeMode) -> tuple[Period, str]:
    """The calendar month, quarter or year containing day, with its label."""
    if mode == ComparativeMode.YEAR_OVER_YEAR:
        return Period(start=date(day.year, 1, 1), end=date(day.year, 12, 31)), str(day.year)

    if mode == ComparativeMode.QUARTER_OVER_QUARTER:
        first_month = (day.month - 1) // 3 * 3 + 1
        start = date(day.year, first_month, 1)
        end = _shift_months(start, 2)
        end = end.replace(day=calendar.monthrange(end.year, end.month)[1])
        return Period(start=start, end=end), f"Q{(first_month - 1) // 3 + 1} {day.year}"

    start = day.replace(day=1)
    end = day.replace(day=calendar.monthrange(day.year, day.month)[1])
    return Period(start=start, end=end), f"{calendar.month_abbr[day.month]} {day.year}"


def get_comparative_periods(
    mode: ComparativeMode | str,
    base_date: date,
    current: Optional[Period] = None,
    previous: Optional[Period] = None,
) -> ComparativePeriods:
    """
    Current and previous windows for a comparative report.

    mom: calendar month of base_date vs the month before
    qoq: calendar quarter vs the quarter before
    yoy: calendar year vs the year before
    custom: the caller's current and previous periods, both required
    """
    mode = ComparativeMode(mode)

    if mode == ComparativeMode.CUSTOM:
        if current is None or previous is None:
            raise ValueError("custom comparison needs both current and previous periods")
        return ComparativePeriods(
            mode=mode,
            current=current,
            previous=previous,
            current_label=f"{current.start.isoformat()} to {current.end.isoformat()}",
            previous_label=f"{previous.start.isoformat()} to {previous.end.isoformat()}",
        )

    step = {
        ComparativeMode.MONTH_OVER_MONTH: -1,
        ComparativeMode.QUARTER_OVER_QUARTER: -3,
        ComparativeMode.YEAR_OVER_YEAR: -12,
    }[mode]
    current_window, current_label = _calendar_window(base_date, mode)
    previous_window, previous_label = _calendar_window(_shift_months(base_date, step), mode)

    return ComparativePeriods(
        mode=mode,
        current=current_window,
        previous=previous_window,
        current_label=current_label,
        previous_label=previous_label,
    )
