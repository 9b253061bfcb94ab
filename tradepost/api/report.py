from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tradepost import models
from tradepost.database import get_db
from tradepost.exceptions import MarketplaceError
from tradepost.schemas.report import ReportCreate, ReportSubmitResponse
from tradepost.services import moderation_service
from tradepost.utils.security import get_active_user

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("/", response_model=ReportSubmitResponse, status_code=status.HTTP_201_CREATED)
def create_listing_report(
    payload: ReportCreate,
    current_user: models.User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    try:
        report = moderation_service.file_report(
            db,
            reporter_id=current_user.id,
            product_id=payload.product_id,
            reason=payload.reason,
            description=payload.description,
        )
    except MarketplaceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return ReportSubmitResponse(report_id=report.id, status=report.status.value)
