# =========================================================
# DASHBOARD ROUTER
#
# Stats and trends for the dashboard, inventory reports and
# reorder suggestions (Gemini when configured, rule-based
# otherwise or whenever the remote call fails).
# =========================================================

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from stockroom.core.rate_limiter import limiter
from stockroom.database import get_db
from stockroom.schemas.report import (
    DashboardResponse,
    ReorderSuggestion,
    StockLevelRow,
    SupplierPerformanceRow,
    ValueAnalysisRow,
)
from stockroom.services.reorder import compute_reorder_suggestions, get_reorder_scorer
from stockroom.services.reporting import dashboard_stats, inventory_report

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardResponse)
def get_dashboard_stats(db: Session = Depends(get_db)):
    return dashboard_stats(db)


@router.get("/reorder-suggestions", response_model=List[ReorderSuggestion])
@limiter.limit("10/minute")
def get_reorder_suggestions(
    request: Request,
    db: Session = Depends(get_db),
):
    return compute_reorder_suggestions(db, scorer=get_reorder_scorer())


@router.get(
    "/reports",
    response_model=Union[List[StockLevelRow], List[ValueAnalysisRow], List[SupplierPerformanceRow]],
)
def get_inventory_report(
    report_type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return inventory_report(db, report_type)
