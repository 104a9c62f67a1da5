from app.schemas.reports import (
    COGSRequest,
    MenuProfitabilityRequest,
    DepartmentReportRequest,
    HotelReportRequest,
    ComparativeReportRequest,
    SyncRequest,
    ComparisonPeriodResponse,
)

__all__ = [
    "COGSRequest",
    "MenuProfitabilityRequest",
    "DepartmentReportRequest",
    "HotelReportRequest",
    "ComparativeReportRequest",
    "SyncRequest",
    "ComparisonPeriodResponse",
]
