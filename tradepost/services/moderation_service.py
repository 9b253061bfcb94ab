# tradepost/services/moderation_service.py
"""
Moderation Engine

Report intake and the enforcement state machine.

A report starts ``pending`` and leaves it exactly once, through a single
conditional UPDATE. Enforcement then runs from a handler table keyed by
``ModerationAction``, and the reported user is notified last. The three
steps commit in that order; a notification outage never undoes or
repeats a decision.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tradepost.config import settings
from tradepost.crud import report as report_crud
from tradepost.crud import user as user_crud
from tradepost.database import utcnow
from tradepost.exceptions import (
    AlreadyProcessed,
    DuplicateReport,
    Forbidden,
    InvalidAction,
    InvalidParticipants,
    InvalidReason,
    InvalidStatus,
    NotFound,
)
from tradepost.models.report import ModerationAction, Report, ReportReason, ReportStatus
from tradepost.models.user import User
from tradepost.services import notification_service
from tradepost.utils.security import is_reviewer

logger = logging.getLogger(__name__)


# =====================================
# CONFIGURATION CONSTANTS
# =====================================

class ModerationPolicy:
    """Escalation policy configuration."""
    WARNING_LIMIT = 3                 # Warnings before automatic suspension
    WARNING_SUSPENSION_DAYS = 30      # Window applied when the limit is reached
    DIRECT_SUSPENSION_DAYS = 7        # Window for the suspend_user action
    ESCALATION_REASON = "Multiple policy violations"


@dataclass(frozen=True)
class ResolutionResult:
    report_id: int
    action: ModerationAction
    status: ReportStatus
    warning_count: int


@dataclass(frozen=True)
class Enforcement:
    """What a handler did: the notice for the reported user, if any.

    ``warning_count`` is the updated count after a warning and 0 for every
    other action.
    """
    notice: Optional[str] = None
    warning_count: int = 0


# =====================================
# PARSING
# =====================================

def parse_reason(value) -> ReportReason:
    try:
        return ReportReason((value or "").strip().lower())
    except (ValueError, AttributeError):
        allowed = ", ".join(r.value for r in ReportReason)
        raise InvalidReason(f"reason must be one of: {allowed}")


def parse_action(value) -> ModerationAction:
    try:
        return ModerationAction((value or "").strip().lower())
    except (ValueError, AttributeError):
        allowed = ", ".join(a.value for a in ModerationAction)
        raise InvalidAction(f"action must be one of: {allowed}")


def parse_status_filter(value: Optional[str]) -> Optional[ReportStatus]:
    normalized = (value or "pending").strip().lower()
    if normalized == "all":
        return None
    try:
        return ReportStatus(normalized)
    except ValueError:
        allowed = ", ".join([s.value for s in ReportStatus] + ["all"])
        raise InvalidStatus(f"status must be one of: {allowed}")


def _ensure_reviewer(reviewer: User) -> None:
    if not is_reviewer(reviewer):
        raise Forbidden("Admin access required")


def _with_custom_message(text: str, custom_message: Optional[str]) -> str:
    return f"{text} {custom_message}" if custom_message else text


# =====================================
# REPORT INTAKE
# =====================================

def file_report(
    db: Session,
    *,
    reporter_id: int,
    product_id: int,
    reason,
    description: Optional[str] = None,
) -> Report:
    """
    File a report against a listing and its seller.

    Raises:
        InvalidReason: reason outside ReportReason
        NotFound: unknown product
        InvalidParticipants: reporter owns the listing
        DuplicateReport: reporter already reported this listing
    """
    parsed_reason = parse_reason(reason)

    product = user_crud.get_product(db, product_id)
    if not product:
        raise NotFound("Product not found")
    if product.seller_id == reporter_id:
        raise InvalidParticipants("You cannot report your own listing")
    if report_crud.find_report_by_reporter(db, reporter_id, product_id):
        raise DuplicateReport()

    try:
        report = report_crud.create_report(
            db,
            reporter_id=reporter_id,
            reported_user_id=product.seller_id,
            reported_product_id=product.id,
            reason=parsed_reason,
            description=description,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateReport()
    db.refresh(report)

    logger.info(
        "Report %s filed by user %s against product %s (%s)",
        report.id,
        reporter_id,
        product_id,
        parsed_reason.value,
    )
    return report


# =====================================
# REVIEWER QUEUE
# =====================================

def list_reports(
    db: Session,
    *,
    reviewer: User,
    status: Optional[str] = "pending",
    skip: int = 0,
    limit: Optional[int] = None,
) -> Tuple[List[Report], int]:
    """Reports filtered by status, newest first, with the unpaged total."""
    _ensure_reviewer(reviewer)
    status_filter = parse_status_filter(status)
    page_size = limit or settings.REPORT_PAGE_SIZE
    reports = report_crud.list_reports(db, status_filter, skip, page_size)
    total = report_crud.count_reports(db, status_filter)
    return reports, total


def get_report(db: Session, *, report_id: int, reviewer: User) -> Report:
    _ensure_reviewer(reviewer)
    report = report_crud.get_report(db, report_id)
    if not report:
        raise NotFound("Report not found")
    return report


# =====================================
# ENFORCEMENT HANDLERS
# =====================================

def _apply_warning(db: Session, report: Report, now: datetime, custom_message: Optional[str]) -> Enforcement:
    report_crud.add_warning(
        db,
        report.reported_user_id,
        limit=ModerationPolicy.WARNING_LIMIT,
        warned_at=now,
        suspension_end=now + timedelta(days=ModerationPolicy.WARNING_SUSPENSION_DAYS),
        suspension_reason=ModerationPolicy.ESCALATION_REASON,
    )
    db.commit()

    count = report_crud.get_warning_count(db, report.reported_user_id)
    reason = report.reason.value
    if count >= ModerationPolicy.WARNING_LIMIT:
        text = (
            f"Your account has been suspended for {ModerationPolicy.WARNING_SUSPENSION_DAYS} days "
            f"due to multiple policy violations. Reason: {reason}."
        )
    else:
        text = (
            "You have received a warning for violating our community guidelines. "
            f"Reason: {reason}."
        )
    return Enforcement(notice=_with_custom_message(text, custom_message), warning_count=count)


def _apply_remove_listing(db: Session, report: Report, now: datetime, custom_message: Optional[str]) -> Enforcement:
    report_crud.remove_listing(db, report.reported_product_id)
    db.commit()

    title = report.reported_product.title if report.reported_product else "your listing"
    text = (
        f'Your listing "{title}" has been removed for violating our community guidelines. '
        f"Reason: {report.reason.value}."
    )
    return Enforcement(notice=_with_custom_message(text, custom_message))


def _apply_suspend_user(db: Session, report: Report, now: datetime, custom_message: Optional[str]) -> Enforcement:
    report_crud.suspend_user(
        db,
        report.reported_user_id,
        reason=report.reason.value,
        until=now + timedelta(days=ModerationPolicy.DIRECT_SUSPENSION_DAYS),
    )
    db.commit()

    text = (
        f"Your account has been suspended for {ModerationPolicy.DIRECT_SUSPENSION_DAYS} days "
        f"due to policy violations. Reason: {report.reason.value}."
    )
    return Enforcement(notice=_with_custom_message(text, custom_message))


def _apply_no_action(db: Session, report: Report, now: datetime, custom_message: Optional[str]) -> Enforcement:
    title = report.reported_product.title if report.reported_product else "your listing"
    return Enforcement(
        notice=(
            f'A report about your listing "{title}" has been reviewed and no action was taken. '
            "Thank you for following our community guidelines."
        )
    )


def _apply_dismiss(db: Session, report: Report, now: datetime, custom_message: Optional[str]) -> Enforcement:
    return Enforcement()


Handler = Callable[[Session, Report, datetime, Optional[str]], Enforcement]

ACTION_HANDLERS: Dict[ModerationAction, Handler] = {
    ModerationAction.WARNING: _apply_warning,
    ModerationAction.REMOVE_LISTING: _apply_remove_listing,
    ModerationAction.SUSPEND_USER: _apply_suspend_user,
    ModerationAction.NO_ACTION: _apply_no_action,
    ModerationAction.DISMISS: _apply_dismiss,
}

# Report status each action leaves behind
TERMINAL_STATUS: Dict[ModerationAction, ReportStatus] = {
    ModerationAction.WARNING: ReportStatus.RESOLVED,
    ModerationAction.REMOVE_LISTING: ReportStatus.RESOLVED,
    ModerationAction.SUSPEND_USER: ReportStatus.RESOLVED,
    ModerationAction.NO_ACTION: ReportStatus.RESOLVED,
    ModerationAction.DISMISS: ReportStatus.DISMISSED,
}

_missing = set(ModerationAction) - (set(ACTION_HANDLERS) & set(TERMINAL_STATUS))
if _missing:
    raise RuntimeError(f"Moderation actions without a handler: {sorted(a.value for a in _missing)}")


# =====================================
# RESOLUTION
# =====================================

def resolve_report(
    db: Session,
    *,
    report_id: int,
    reviewer: User,
    action,
    admin_notes: Optional[str] = None,
    custom_message: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ResolutionResult:
    """
    Resolve a pending report and apply its enforcement action.

    Steps, each committed before the next:
    1. report leaves ``pending`` through a conditional UPDATE
    2. the action's handler mutates the reported user or product
    3. the reported user is notified (failures logged and discarded)

    Raises:
        Forbidden: reviewer lacks an elevated role
        NotFound: unknown report
        AlreadyProcessed: report is not pending, or a concurrent call won
        InvalidAction: action outside ModerationAction
    """
    _ensure_reviewer(reviewer)

    report = report_crud.get_report(db, report_id)
    if not report:
        raise NotFound("Report not found")
    if report.status != ReportStatus.PENDING:
        raise AlreadyProcessed(f"Report has already been processed ({report.status.value})")

    parsed_action = parse_action(action)
    status = TERMINAL_STATUS[parsed_action]
    now = now or utcnow()

    try:
        won = report_crud.close_pending_report(
            db,
            report.id,
            status=status,
            action=parsed_action,
            reviewer_id=reviewer.id,
            reviewed_at=now,
            admin_notes=admin_notes,
            custom_message=custom_message,
        )
        if not won:
            db.rollback()
            logger.warning("Report %s was resolved concurrently; skipping %s", report.id, parsed_action.value)
            raise AlreadyProcessed()
        db.commit()
        db.refresh(report)

        enforcement = ACTION_HANDLERS[parsed_action](db, report, now, custom_message)
    except SQLAlchemyError:
        db.rollback()
        raise

    warning_count = enforcement.warning_count
    logger.info(
        "Report %s %s by reviewer %s with action %s (warning_count=%s)",
        report.id,
        status.value,
        reviewer.id,
        parsed_action.value,
        warning_count,
    )

    if enforcement.notice:
        _notify_reported_user(db, report, parsed_action, enforcement.notice, warning_count, reviewer.id)

    return ResolutionResult(
        report_id=report.id,
        action=parsed_action,
        status=status,
        warning_count=warning_count,
    )


def _notify_reported_user(
    db: Session,
    report: Report,
    action: ModerationAction,
    notice: str,
    warning_count: int,
    reviewer_id: int,
) -> None:
    try:
        notification_service.notify_user(
            db,
            recipient_id=report.reported_user_id,
            actor_id=reviewer_id,
            event_type="report_action",
            title="Report Action Taken",
            message=notice,
            data={
                "report_id": report.id,
                "action": action.value,
                "warning_count": warning_count,
            },
            related_product_id=report.reported_product_id,
        )
    except Exception as exc:
        db.rollback()
        logger.error(
            "Report action notification failed (report_id=%s, user_id=%s): %s",
            report.id,
            report.reported_user_id,
            exc,
        )
