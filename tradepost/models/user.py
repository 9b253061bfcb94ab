from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, CheckConstraint, func
from sqlalchemy.orm import relationship
from tradepost.database import Base


# ---------------- USER (IDENTITY REFERENCE) ----------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    image = Column(String(255), nullable=True)
    # "user", "admin" or "super_admin"
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    # Standing, mutated only by the moderation engine
    warning_count = Column(Integer, default=0, nullable=False)
    last_warning_date = Column(TIMESTAMP, nullable=True)
    is_suspended = Column(Boolean, default=False, nullable=False)
    suspension_reason = Column(String(255), nullable=True)
    suspension_end_date = Column(TIMESTAMP, nullable=True)

    __table_args__ = (
        CheckConstraint("warning_count >= 0 AND warning_count <= 3", name="check_warning_count_range"),
    )

    products = relationship("Product", back_populates="seller")
