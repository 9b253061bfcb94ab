# tradepost/models/report.py
import enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    TIMESTAMP,
    Enum,
    CheckConstraint,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from tradepost.database import Base, utcnow


class ReportReason(str, enum.Enum):
    SPAM = "spam"
    INAPPROPRIATE_CONTENT = "inappropriate_content"
    FAKE_PRODUCT = "fake_product"
    SCAM = "scam"
    DUPLICATE_LISTING = "duplicate_listing"
    WRONG_CATEGORY = "wrong_category"
    PROHIBITED_ITEM = "prohibited_item"
    HARASSMENT = "harassment"
    OTHER = "other"


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ModerationAction(str, enum.Enum):
    WARNING = "warning"
    REMOVE_LISTING = "remove_listing"
    SUSPEND_USER = "suspend_user"
    NO_ACTION = "no_action"
    DISMISS = "dismiss"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def _enum_column(enum_cls, length):
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=_enum_values,
        validate_strings=True,
    )


class Report(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    reporter_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reported_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reported_product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    reason = Column(_enum_column(ReportReason, 30), nullable=False)
    description = Column(String(500), nullable=True)
    status = Column(_enum_column(ReportStatus, 20), nullable=False, default=ReportStatus.PENDING)

    # Write-once, populated together with the status transition
    admin_action = Column(_enum_column(ModerationAction, 20), nullable=True)
    admin_notes = Column(String(1000), nullable=True)
    custom_message = Column(String(500), nullable=True)
    reviewed_at = Column(TIMESTAMP, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("reporter_id", "reported_product_id", name="uq_reports_reporter_product"),
        Index("ix_reports_status_created", "status", "created_at"),
        # A pending report has no resolution; a processed one always has an action and a timestamp.
        CheckConstraint(
            "(status = 'pending' AND admin_action IS NULL AND reviewed_at IS NULL) OR "
            "(status <> 'pending' AND admin_action IS NOT NULL AND reviewed_at IS NOT NULL)",
            name="check_resolution_fields",
        ),
    )

    reporter = relationship("User", foreign_keys=[reporter_id])
    reported_user = relationship("User", foreign_keys=[reported_user_id])
    reported_product = relationship("Product", foreign_keys=[reported_product_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])
