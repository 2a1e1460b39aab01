from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from .. import dashboard_service
from ..api_deps import get_current_user
from ..auth_models import User
from ..schemas import (
    ComplexityShareOut,
    DentistPerformanceOut,
    DentistReportOut,
    DentistTotalsOut,
    MonthComparisonOut,
    MonthRevenueOut,
    ProcedureDetailOut,
    ProcedureStatsOut,
    TypeShareOut,
)

router = APIRouter(tags=["dashboard"])


@router.get("/api/dashboard/stats", response_model=ProcedureStatsOut)
def api_stats(user: User = Depends(get_current_user)):
    return dashboard_service.procedure_stats()


@router.get("/api/dashboard/stats/procedures-by-type", response_model=list[TypeShareOut])
def api_stats_by_type(user: User = Depends(get_current_user)):
    return dashboard_service.procedure_stats()["procedures_by_type"]


@router.get("/api/dashboard/stats/procedures-by-complexity", response_model=list[ComplexityShareOut])
def api_stats_by_complexity(user: User = Depends(get_current_user)):
    return dashboard_service.procedure_stats()["procedures_by_complexity"]


@router.get("/api/dashboard/stats/dentist-performance", response_model=list[DentistPerformanceOut])
def api_stats_dentist_performance(user: User = Depends(get_current_user)):
    return dashboard_service.procedure_stats()["dentist_performance"]


@router.get("/api/dashboard/stats/revenue-by-month", response_model=list[MonthRevenueOut])
def api_stats_revenue_by_month(user: User = Depends(get_current_user)):
    return dashboard_service.procedure_stats()["revenue_by_month"]


@router.get("/api/dashboard/stats/monthly-comparison", response_model=list[MonthComparisonOut])
def api_stats_monthly_comparison(user: User = Depends(get_current_user)):
    return dashboard_service.procedure_stats()["monthly_comparison"]


@router.get("/api/dashboard/recent-procedures", response_model=list[ProcedureDetailOut])
def api_recent_procedures(limit: int = Query(5, ge=1, le=100), user: User = Depends(get_current_user)):
    return dashboard_service.recent_procedures(limit)


@router.get("/api/dashboard/pending-payments", response_model=list[DentistTotalsOut])
def api_pending_payments(user: User = Depends(get_current_user)):
    return dashboard_service.pending_payments_by_dentist()


@router.get("/api/dashboard/pending-invoices", response_model=list[DentistTotalsOut])
def api_pending_invoices(user: User = Depends(get_current_user)):
    return dashboard_service.pending_invoices_by_dentist()


@router.get("/api/reports/dentist-procedures", response_model=list[DentistReportOut])
def api_dentist_procedure_report(
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    dentist_id: int | None = Query(None, alias="dentistId"),
    period: str | None = Query(None, pattern="^(month|quarter|year)$"),
    user: User = Depends(get_current_user),
):
    return dashboard_service.dentist_procedure_report(
        period=period, start_date=start_date, end_date=end_date, dentist_id=dentist_id
    )
