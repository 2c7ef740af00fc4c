"""
Reports router — dashboard statistics, report preview, CSV export.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from institute.core.context import AppContext, get_context
from institute.core.security import require_role
from institute.schemas.reports import ReportFilters, ReportType
from institute.services.reporting import (
    build_report, dashboard_stats, export_csv, export_filename, load_collections,
)
from institute.utils.response import success_response

router = APIRouter(prefix="/api/reports", tags=["Reports"])


def report_filters(
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    department: str = Query(default="all"),
) -> ReportFilters:
    return ReportFilters(date_from=date_from, date_to=date_to, department=department)


@router.get("/dashboard-stats")
async def get_dashboard_stats(
    user: dict = Depends(require_role(["admin"])),
    ctx: AppContext = Depends(get_context),
):
    collections = load_collections(ctx.store, include_dashboard=True)
    return success_response(data=dashboard_stats(collections).model_dump())


@router.get("/{report_type}")
async def preview_report(
    report_type: ReportType,
    filters: ReportFilters = Depends(report_filters),
    user: dict = Depends(require_role(["admin", "faculty"])),
    ctx: AppContext = Depends(get_context),
):
    collections = load_collections(ctx.store)
    report = build_report(report_type, collections, filters, ctx.settings.REPORT_DATE_POLICY)
    return success_response(
        data=report.model_dump(),
        message=f"{len(report.rows)} rows",
    )


@router.get("/{report_type}/export")
async def export_report(
    report_type: ReportType,
    filters: ReportFilters = Depends(report_filters),
    user: dict = Depends(require_role(["admin", "faculty"])),
    ctx: AppContext = Depends(get_context),
):
    collections = load_collections(ctx.store)
    report = build_report(report_type, collections, filters, ctx.settings.REPORT_DATE_POLICY)
    content = export_csv(report, ctx.settings.CSV_DELIMITER)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={export_filename(report_type)}"},
    )
