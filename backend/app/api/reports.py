"""
Hotel P&L - Report API Routes
Recipe-based COGS, department/hotel P&L and COGS sync endpoints

The caller posts the snapshot it already fetched from the backend;
nothing here reads or writes the database.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from app.models.hotel import ComparativeMode, ComparisonType, Period
from app.models.pl import (
    COGSResult,
    ComparativePeriods,
    ComparativePLReport,
    DepartmentPLReport,
    HotelPLReport,
    MenuItemProfitability,
    ReportConfig,
    SyncReport,
)
from app.schemas.reports import (
    COGSRequest,
    ComparativeReportRequest,
    ComparisonPeriodResponse,
    DepartmentReportRequest,
    HotelReportRequest,
    MenuProfitabilityRequest,
    SyncRequest,
)
from app.services.cogs_engine import compute_cogs, compute_menu_item_profitability
from app.services.cogs_sync import verify_cogs_sync
from app.services.pl_metrics import get_comparative_periods, get_comparison_period_dates
from app.services.pl_report_engine import pl_report_engine

router = APIRouter(prefix="/reports", tags=["P&L Reports"])


# =============================================================================
# COGS
# =============================================================================

@router.post("/cogs", response_model=COGSResult)
async def calculate_cogs(request: COGSRequest) -> COGSResult:
    """
    Recipe-based COGS for an explicit set of order ids.

    Recipe-less lines are estimated at the configured rate and filed
    under "Estimated".
    """
    config = pl_report_engine.get_config()
    return compute_cogs(
        request.order_ids,
        request.order_items,
        request.menu_items,
        request.inventory,
        estimate_rate=request.estimate_rate if request.estimate_rate is not None else config.estimate_rate,
        line_total_tolerance=config.line_total_tolerance,
    )


@router.post("/menu-items", response_model=list[MenuItemProfitability])
async def menu_item_profitability(request: MenuProfitabilityRequest) -> list[MenuItemProfitability]:
    """Per menu item cost and margin, sorted by margin, revenue or quantity."""
    config = pl_report_engine.get_config()
    try:
        return compute_menu_item_profitability(
            request.order_ids,
            request.order_items,
            request.menu_items,
            request.inventory,
            estimate_rate=request.estimate_rate if request.estimate_rate is not None else config.estimate_rate,
            sort_by=request.sort_by,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# =============================================================================
# P&L
# =============================================================================

@router.post("/pl", response_model=DepartmentPLReport)
async def department_pl(request: DepartmentReportRequest) -> DepartmentPLReport:
    """Department P&L for a period, optionally compared with a prior window."""
    return pl_report_engine.build_department_report(
        request.snapshot,
        request.period,
        comparison_type=request.comparison_type,
    )


@router.post("/hotel", response_model=HotelPLReport)
async def hotel_pl(request: HotelReportRequest) -> HotelPLReport:
    """
    Hotel-wide P&L across departments, with COGS sync verification,
    inventory valuation and low-stock items.
    """
    return pl_report_engine.build_hotel_report(
        request.snapshots,
        request.period,
        comparison_type=request.comparison_type,
    )


@router.post("/comparative", response_model=ComparativePLReport)
async def comparative_pl(request: ComparativeReportRequest) -> ComparativePLReport:
    """Month over month, quarter over quarter, year over year or custom comparison."""
    try:
        periods = get_comparative_periods(
            request.mode,
            request.base_date or date.today(),
            current=request.current,
            previous=request.previous,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return pl_report_engine.build_comparative_report(request.snapshots, periods)


@router.get("/comparison-period", response_model=ComparisonPeriodResponse)
async def comparison_period(
    start: date,
    end: date,
    comparison_type: ComparisonType = Query(ComparisonType.PREVIOUS),
) -> ComparisonPeriodResponse:
    """Derive the comparison window for [start, end]."""
    if start > end:
        raise HTTPException(status_code=400, detail=f"start {start} is after end {end}")
    return ComparisonPeriodResponse(
        comparison_type=comparison_type,
        current=Period(start=start, end=end),
        comparison=get_comparison_period_dates(start, end, comparison_type),
    )


@router.get("/comparative-periods", response_model=ComparativePeriods)
async def comparative_periods(
    mode: ComparativeMode = Query(ComparativeMode.MONTH_OVER_MONTH),
    base_date: Optional[date] = None,
) -> ComparativePeriods:
    """Calendar windows for a month, quarter or year preset."""
    if mode == ComparativeMode.CUSTOM:
        raise HTTPException(status_code=400, detail="custom periods are posted to /reports/comparative")
    return get_comparative_periods(mode, base_date or date.today())


# =============================================================================
# SYNC
# =============================================================================

@router.post("/cogs-sync", response_model=SyncReport)
async def cogs_sync(request: SyncRequest) -> SyncReport:
    """
    Reconcile two independently computed per-department COGS figures.

    Departments within the absolute or percentage tolerance are synced;
    mismatches carry a likely cause.
    """
    config = pl_report_engine.get_config()
    return verify_cogs_sync(
        request.hotel_cogs,
        request.department_cogs,
        absolute_tolerance=(
            request.absolute_tolerance if request.absolute_tolerance is not None
            else config.sync_absolute_tolerance
        ),
        percent_tolerance=(
            request.percent_tolerance if request.percent_tolerance is not None
            else config.sync_percent_tolerance
        ),
    )


# =============================================================================
# CONFIGURATION
# =============================================================================

@router.get("/config", response_model=ReportConfig)
async def get_config() -> ReportConfig:
    """Get current report engine configuration."""
    return pl_report_engine.get_config()


@router.put("/config", response_model=ReportConfig)
async def update_config(config: ReportConfig) -> ReportConfig:
    """Update report engine configuration. Clears cached results."""
    pl_report_engine.configure(config)
    return pl_report_engine.get_config()
