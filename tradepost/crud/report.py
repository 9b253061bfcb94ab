# tradepost/crud/report.py
"""
Report CRUD Operations

Database access for the moderation engine: report rows plus the atomic
field updates applied to the reported user and product.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import TIMESTAMP, case, literal
from sqlalchemy.orm import Session

from tradepost.models.product import Product
from tradepost.models.report import Report, ReportStatus, ModerationAction
from tradepost.models.user import User


# ======================
# REPORTS
# ======================

def get_report(db: Session, report_id: int) -> Optional[Report]:
    return db.query(Report).filter(Report.id == report_id).first()


def find_report_by_reporter(db: Session, reporter_id: int, product_id: int) -> Optional[Report]:
    return db.query(Report).filter(
        Report.reporter_id == reporter_id,
        Report.reported_product_id == product_id,
    ).first()


def create_report(
    db: Session,
    *,
    reporter_id: int,
    reported_user_id: int,
    reported_product_id: int,
    reason,
    description: Optional[str] = None,
) -> Report:
    report = Report(
        reporter_id=reporter_id,
        reported_user_id=reported_user_id,
        reported_product_id=reported_product_id,
        reason=reason,
        description=description,
        status=ReportStatus.PENDING,
    )
    db.add(report)
    db.flush()
    return report


def _status_query(db: Session, status: Optional[ReportStatus]):
    query = db.query(Report)
    if status is not None:
        query = query.filter(Report.status == status)
    return query


def list_reports(db: Session, status: Optional[ReportStatus], skip: int, limit: int) -> List[Report]:
    return _status_query(db, status).order_by(
        Report.created_at.desc(), Report.id.desc()
    ).offset(skip).limit(limit).all()


def count_reports(db: Session, status: Optional[ReportStatus]) -> int:
    return _status_query(db, status).count()


def close_pending_report(
    db: Session,
    report_id: int,
    *,
    status: ReportStatus,
    action: ModerationAction,
    reviewer_id: int,
    reviewed_at: datetime,
    admin_notes: Optional[str],
    custom_message: Optional[str],
) -> int:
    """
    Conditional transition out of ``pending``.

    Returns the number of rows updated: 1 when this call won the
    transition, 0 when the report was no longer pending.
    """
    return db.query(Report).filter(
        Report.id == report_id,
        Report.status == ReportStatus.PENDING,
    ).update(
        {
            Report.status: status,
            Report.admin_action: action,
            Report.admin_notes: admin_notes,
            Report.custom_message: custom_message,
            Report.reviewed_at: reviewed_at,
            Report.reviewed_by: reviewer_id,
        },
        synchronize_session=False,
    )


# ======================
# ENFORCEMENT
# ======================

def add_warning(
    db: Session,
    user_id: int,
    *,
    limit: int,
    warned_at: datetime,
    suspension_end: datetime,
    suspension_reason: str,
) -> int:
    """
    Increment, clamp and escalate in one UPDATE.

    Every right-hand side reads the pre-update row, so the count reaching
    ``limit`` and the suspension fields are persisted together.
    """
    reaches_limit = User.warning_count + 1 >= limit
    return db.query(User).filter(User.id == user_id).update(
        {
            User.warning_count: case((reaches_limit, limit), else_=User.warning_count + 1),
            User.last_warning_date: warned_at,
            User.is_suspended: case((reaches_limit, literal(True)), else_=User.is_suspended),
            User.suspension_reason: case(
                (reaches_limit, literal(suspension_reason)), else_=User.suspension_reason
            ),
            User.suspension_end_date: case(
                (reaches_limit, literal(suspension_end, TIMESTAMP())),
                else_=User.suspension_end_date,
            ),
        },
        synchronize_session=False,
    )


def get_warning_count(db: Session, user_id: int) -> int:
    count = db.query(User.warning_count).filter(User.id == user_id).scalar()
    return int(count or 0)


def suspend_user(db: Session, user_id: int, *, reason: str, until: datetime) -> int:
    return db.query(User).filter(User.id == user_id).update(
        {
            User.is_suspended: True,
            User.suspension_reason: reason,
            User.suspension_end_date: until,
        },
        synchronize_session=False,
    )


def remove_listing(db: Session, product_id: int) -> int:
    return db.query(Product).filter(Product.id == product_id).update(
        {Product.status: "removed", Product.is_active: False},
        synchronize_session=False,
    )
