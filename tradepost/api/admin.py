# tradepost/api/admin.py
"""
Admin Moderation Module
Reviewer-only endpoints for the report queue and report resolution.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from tradepost.database import get_db
from tradepost.exceptions import MarketplaceError
from tradepost.models.user import User
from tradepost.schemas.report import (
    ReportListResponse,
    ReportResolveRequest,
    ReportView,
    ResolutionResponse,
    build_report_view,
)
from tradepost.services import moderation_service
from tradepost.utils.security import require_reviewer

router = APIRouter(prefix="/admin", tags=["Admin"])


# ─────────────────────────────────────────
# GET /admin/reports - Report queue
# ─────────────────────────────────────────
@router.get("/reports", response_model=ReportListResponse)
def get_reports(
    status: Optional[str] = Query("pending", description="pending | reviewed | resolved | dismissed | all"),
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=200),
    admin: User = Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    try:
        reports, total = moderation_service.list_reports(
            db, reviewer=admin, status=status, skip=skip, limit=limit
        )
    except MarketplaceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return {
        "reports": [build_report_view(r) for r in reports],
        "pagination": {"skip": skip, "limit": limit, "total": total},
    }


# ─────────────────────────────────────────
# GET /admin/reports/{report_id} - Report detail
# ─────────────────────────────────────────
@router.get("/reports/{report_id}", response_model=ReportView)
def get_report_detail(
    report_id: int,
    admin: User = Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    try:
        report = moderation_service.get_report(db, report_id=report_id, reviewer=admin)
    except MarketplaceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return build_report_view(report)


# ─────────────────────────────────────────
# PATCH /admin/reports/{report_id} - Resolve with an action
# ─────────────────────────────────────────
@router.patch("/reports/{report_id}", response_model=ResolutionResponse)
def resolve_report(
    report_id: int,
    payload: ReportResolveRequest,
    admin: User = Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    try:
        result = moderation_service.resolve_report(
            db,
            report_id=report_id,
            reviewer=admin,
            action=payload.action,
            admin_notes=payload.admin_notes,
            custom_message=payload.custom_message,
        )
    except MarketplaceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return ResolutionResponse(
        report_id=result.report_id,
        action=result.action,
        status=result.status.value,
        warning_count=result.warning_count,
    )
