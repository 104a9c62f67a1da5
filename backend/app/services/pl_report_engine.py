"""
Hotel P&L - Report Engine
Assemble department and hotel P&L reports from fetched snapshots.

LOGIC:
1. Filter orders to the period (and configured statuses)
2. Recipe-based COGS, P&L metrics, menu item profitability
3. Optional comparison window with per-metric deltas
4. Hotel roll-up with a COGS sync check against an independent
   order-item level computation, inventory valuation and low stock
5. Month, quarter or year comparative reports across departments

GUARDRAILS:
- The cache is keyed by a hash of the inputs, bounded (least recently
  used entries are evicted) and an optimisation only; results are
  identical with it on or off
"""

import hashlib
import json
import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Any, Optional

from app.core.config import settings
from app.core.types import ZERO, Money
from app.models.hotel import ComparisonType, DepartmentSnapshot, Order, Period
from app.models.pl import (
    COGSResult,
    ComparativePeriods,
    ComparativePLReport,
    DepartmentCOGS,
    DepartmentComparison,
    DepartmentPLReport,
    HotelPLReport,
    HotelPLSummary,
    PLMetrics,
    ReportConfig,
    SyncReport,
)
from app.services.cogs_engine import compute_cogs, compute_menu_item_profitability
from app.services.cogs_sync import compute_order_item_cogs, verify_cogs_sync
from app.services.inventory_valuation import (
    calculate_inventory_valuation,
    collect_low_stock_items,
    rank_low_stock_items,
)
from app.services.pl_metrics import (
    calculate_pl_metrics,
    combine_pl_metrics,
    compare_pl_metrics,
    filter_orders_by_period,
    get_comparison_period_dates,
)

logger = logging.getLogger(__name__)


def format_currency(amount: Decimal, symbol: Optional[str] = None) -> str:
    """Render an amount with the currency symbol and two decimals."""
    return Money.format(Money.to_decimal(amount), settings.CURRENCY_SYMBOL if symbol is None else symbol)


class PLReportEngine:
    """
    Hotel P&L Report Engine

    Stateless apart from configuration and the input-hash cache.
    """

    def __init__(self, config: Optional[ReportConfig] = None) -> None:
        self._config = config or self.default_config()
        self._cogs_cache: OrderedDict[str, COGSResult] = OrderedDict()

    @staticmethod
    def default_config() -> ReportConfig:
        """Configuration seeded from application settings."""
        return ReportConfig(
            estimate_rate=settings.COGS_ESTIMATE_RATE,
            line_total_tolerance=settings.LINE_TOTAL_TOLERANCE,
            sync_absolute_tolerance=settings.SYNC_ABSOLUTE_TOLERANCE,
            sync_percent_tolerance=settings.SYNC_PERCENT_TOLERANCE,
            currency_symbol=settings.CURRENCY_SYMBOL,
            cache_enabled=settings.REPORT_CACHE_ENABLED,
            cache_max_entries=settings.REPORT_CACHE_MAX_ENTRIES,
        )

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def configure(self, config: ReportConfig) -> None:
        """Update engine configuration. Cached results are dropped."""
        self._config = config
        self.clear_cache()

    def get_config(self) -> ReportConfig:
        """Get current configuration."""
        return self._config

    # =========================================================================
    # CACHE
    # =========================================================================

    @staticmethod
    def _cache_key(*parts: Any) -> str:
        payload = json.dumps(parts, sort_keys=True, default=str)
        return hashlib.sha256(payload.encode()).hexdigest()

    def clear_cache(self) -> None:
        """Drop all cached results."""
        self._cogs_cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._cogs_cache)

    # =========================================================================
    # BUILDING BLOCKS
    # =========================================================================

    def _estimate_rate(self, snapshot: DepartmentSnapshot) -> Decimal:
        if snapshot.estimate_rate is not None:
            return snapshot.estimate_rate
        return self._config.estimate_rate

    def _orders_in(self, snapshot: DepartmentSnapshot, period: Period) -> list[Order]:
        return filter_orders_by_period(
            snapshot.orders,
            period,
            statuses=self._config.order_statuses,
            payment_statuses=self._config.payment_statuses,
        )

    def compute_cogs(self, snapshot: DepartmentSnapshot, order_ids: set[str]) -> COGSResult:
        """Recipe-based COGS for a snapshot's orders, through the cache when enabled."""
        rate = self._estimate_rate(snapshot)

        if not self._config.cache_enabled:
            return self._compute_cogs(snapshot, order_ids, rate)

        key = self._cache_key(
            sorted(order_ids),
            [i.model_dump(mode="json") for i in snapshot.order_items],
            [m.model_dump(mode="json") for m in snapshot.menu_items],
            [i.model_dump(mode="json") for i in snapshot.inventory],
            str(rate),
            str(self._config.line_total_tolerance),
        )
        cached = self._cogs_cache.get(key)
        if cached is None:
            cached = self._compute_cogs(snapshot, order_ids, rate)
            self._cogs_cache[key] = cached
            while len(self._cogs_cache) > self._config.cache_max_entries:
                self._cogs_cache.popitem(last=False)
        else:
            self._cogs_cache.move_to_end(key)
            logger.debug("COGS cache hit for %s", snapshot.department)
        return cached.model_copy(deep=True)

    def _compute_cogs(self, snapshot: DepartmentSnapshot, order_ids: set[str], rate: Decimal) -> COGSResult:
        return compute_cogs(
            order_ids,
            snapshot.order_items,
            snapshot.menu_items,
            snapshot.inventory,
            estimate_rate=rate,
            line_total_tolerance=self._config.line_total_tolerance,
        )

    def _period_metrics(self, snapshot: DepartmentSnapshot, period: Period) -> tuple[list[Order], COGSResult, PLMetrics]:
        orders = self._orders_in(snapshot, period)
        cogs = self.compute_cogs(snapshot, {o.id for o in orders})
        return orders, cogs, calculate_pl_metrics(orders, cogs.total_cogs)

    # =========================================================================
    # DEPARTMENT REPORT
    # =========================================================================

    def build_department_report(
        self,
        snapshot: DepartmentSnapshot,
        period: Period,
        comparison_type: Optional[ComparisonType] = None,
    ) -> DepartmentPLReport:
        """
        Department P&L for a period, optionally compared with a prior window.

        The snapshot's orders must cover the comparison window too when one
        is requested.
        """
        orders, cogs, metrics = self._period_metrics(snapshot, period)
        menu_items = compute_menu_item_profitability(
            {o.id for o in orders},
            snapshot.order_items,
            snapshot.menu_items,
            snapshot.inventory,
            estimate_rate=self._estimate_rate(snapshot),
        )

        if cogs.has_estimated_costs:
            logger.info(
                "%s: %d of %d order line(s) costed by estimation",
                snapshot.label,
                cogs.estimated_item_count,
                cogs.estimated_item_count + cogs.recipe_based_item_count,
            )

        report = DepartmentPLReport(
            department=snapshot.department,
            display_name=snapshot.label,
            period=period,
            metrics=metrics,
            cogs=cogs,
            menu_items=menu_items,
            has_estimated_costs=cogs.has_estimated_costs,
        )

        if comparison_type is not None:
            comparison_period = get_comparison_period_dates(period.start, period.end, comparison_type)
            _, _, previous = self._period_metrics(snapshot, comparison_period)
            report.comparison_type = ComparisonType(comparison_type)
            report.comparison_period = comparison_period
            report.comparison = compare_pl_metrics(metrics, previous)

        return report

    # =========================================================================
    # HOTEL REPORT
    # =========================================================================

    def build_hotel_report(
        self,
        snapshots: list[DepartmentSnapshot],
        period: Period,
        comparison_type: Optional[ComparisonType] = None,
    ) -> HotelPLReport:
        """
        Hotel-wide P&L across departments, with COGS sync verification,
        inventory valuation and the low-stock list.

        When a comparison type is given, the hotel totals are also compared
        with the same departments over the comparison window.
        """
        departments = [self.build_department_report(s, period) for s in snapshots]
        totals = combine_pl_metrics(d.metrics for d in departments)

        summary = HotelPLSummary(
            total_revenue=totals.revenue,
            total_cogs=totals.cogs,
            gross_profit=totals.gross_profit,
            gross_margin=Money.ratio(totals.gross_profit, totals.revenue),
            total_tax=totals.tax,
            net_profit=totals.net_profit,
            net_margin=totals.profit_margin,
            total_orders=totals.order_count,
            avg_order_value=totals.revenue / totals.order_count if totals.order_count else ZERO,
        )

        valuation = [
            calculate_inventory_valuation(s.department, s.inventory, display_name=s.label)
            for s in snapshots
        ]
        low_stock = rank_low_stock_items(
            item for s in snapshots for item in collect_low_stock_items(s.inventory, s.label)
        )
        if low_stock:
            logger.info("%d inventory item(s) below minimum stock", len(low_stock))

        report = HotelPLReport(
            period=period,
            summary=summary,
            departments=departments,
            sync=self.verify_sync(snapshots, departments, period),
            inventory_valuation=valuation,
            total_inventory_value=sum((v.total_value for v in valuation), ZERO),
            low_stock_items=low_stock,
        )

        if comparison_type is not None:
            comparison_period = get_comparison_period_dates(period.start, period.end, comparison_type)
            report.comparison_type = ComparisonType(comparison_type)
            report.comparison_period = comparison_period
            report.comparison = compare_pl_metrics(
                totals,
                self._hotel_metrics(snapshots, comparison_period),
            )

        return report

    def _hotel_metrics(self, snapshots: list[DepartmentSnapshot], period: Period) -> PLMetrics:
        return combine_pl_metrics(self._period_metrics(s, period)[2] for s in snapshots)

    def verify_sync(
        self,
        snapshots: list[DepartmentSnapshot],
        departments: list[DepartmentPLReport],
        period: Period,
    ) -> SyncReport:
        """Compare each department report's COGS with the order-item level figure."""
        debug = [
            compute_order_item_cogs(
                snapshot.department,
                [o.id for o in self._orders_in(snapshot, period)],
                snapshot.order_items,
                snapshot.menu_items,
                snapshot.inventory,
                estimate_rate=self._estimate_rate(snapshot),
                display_name=snapshot.label,
            )
            for snapshot in snapshots
        ]
        department_side = [
            DepartmentCOGS(
                department=d.department,
                display_name=d.display_name,
                total_cogs=d.cogs.total_cogs,
            )
            for d in departments
        ]
        return verify_cogs_sync(
            debug,
            department_side,
            absolute_tolerance=self._config.sync_absolute_tolerance,
            percent_tolerance=self._config.sync_percent_tolerance,
        )

    # =========================================================================
    # COMPARATIVE REPORT
    # =========================================================================

    def build_comparative_report(
        self,
        snapshots: list[DepartmentSnapshot],
        periods: ComparativePeriods,
    ) -> ComparativePLReport:
        """Hotel totals and each department side by side over two windows."""
        departments = []
        current_metrics = []
        previous_metrics = []

        for snapshot in snapshots:
            current = self._period_metrics(snapshot, periods.current)[2]
            previous = self._period_metrics(snapshot, periods.previous)[2]
            current_metrics.append(current)
            previous_metrics.append(previous)
            departments.append(DepartmentComparison(
                department=snapshot.department,
                display_name=snapshot.label,
                comparison=compare_pl_metrics(current, previous),
            ))

        return ComparativePLReport(
            periods=periods,
            total=compare_pl_metrics(
                combine_pl_metrics(current_metrics),
                combine_pl_metrics(previous_metrics),
            ),
            departments=departments,
        )


# Singleton instance
pl_report_engine = PLReportEngine()
