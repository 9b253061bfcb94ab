# tradepost/schemas/report.py
"""
Report Pydantic Schemas

A report is either pending (no resolution fields) or processed, in which
case the action and the review timestamp are mandatory. The two shapes
are separate models joined by a discriminated union on ``status``.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tradepost.models.report import ModerationAction, ReportReason


def _blank_to_none(v):
    if v is None:
        return None
    v = v.strip()
    return v or None


# ======================
# REQUESTS
# ======================

class ReportCreate(BaseModel):
    product_id: int
    reason: str = Field(..., description="One of the ReportReason categories")
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("description")
    @classmethod
    def strip_description(cls, v):
        return _blank_to_none(v)


class ReportResolveRequest(BaseModel):
    action: str = Field(..., description="One of the ModerationAction values")
    admin_notes: Optional[str] = Field(None, max_length=1000)
    custom_message: Optional[str] = Field(None, max_length=500)

    @field_validator("admin_notes", "custom_message")
    @classmethod
    def strip_optional_text(cls, v):
        return _blank_to_none(v)


# ======================
# REPORT VIEWS
# ======================

class _ReportBase(BaseModel):
    id: int
    reporter_id: int
    reported_user_id: int
    reported_product_id: int
    reason: ReportReason
    description: Optional[str] = None
    created_at: datetime

    reporter_name: Optional[str] = None
    reported_user_name: Optional[str] = None
    reported_user_warning_count: Optional[int] = None
    reported_product_title: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PendingReport(_ReportBase):
    status: Literal["pending"] = "pending"


class ResolvedReport(_ReportBase):
    status: Literal["reviewed", "resolved", "dismissed"]
    admin_action: ModerationAction
    reviewed_at: datetime
    reviewed_by: Optional[int] = None
    admin_notes: Optional[str] = None
    custom_message: Optional[str] = None


ReportView = Annotated[Union[PendingReport, ResolvedReport], Field(discriminator="status")]


def build_report_view(report) -> Union[PendingReport, ResolvedReport]:
    common = dict(
        id=report.id,
        reporter_id=report.reporter_id,
        reported_user_id=report.reported_user_id,
        reported_product_id=report.reported_product_id,
        reason=report.reason,
        description=report.description,
        created_at=report.created_at,
        reporter_name=report.reporter.name if report.reporter else None,
        reported_user_name=report.reported_user.name if report.reported_user else None,
        reported_user_warning_count=(
            report.reported_user.warning_count if report.reported_user else None
        ),
        reported_product_title=report.reported_product.title if report.reported_product else None,
    )
    status = getattr(report.status, "value", report.status)
    if status == "pending":
        return PendingReport(**common)
    return ResolvedReport(
        status=status,
        admin_action=report.admin_action,
        reviewed_at=report.reviewed_at,
        reviewed_by=report.reviewed_by,
        admin_notes=report.admin_notes,
        custom_message=report.custom_message,
        **common,
    )


# ======================
# RESPONSES
# ======================

class ReportSubmitResponse(BaseModel):
    success: bool = True
    message: str = "Report submitted successfully"
    report_id: int
    status: str


class Pagination(BaseModel):
    skip: int
    limit: int
    total: int


class ReportListResponse(BaseModel):
    reports: List[ReportView]
    pagination: Pagination


class ResolutionResponse(BaseModel):
    success: bool = True
    message: str = "Report processed successfully"
    report_id: int
    action: ModerationAction
    status: str
    warning_count: int
