# tradepost/models/product.py
from sqlalchemy import Column, Integer, String, Boolean, Float, ForeignKey, TIMESTAMP, func
from sqlalchemy.orm import relationship
from tradepost.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    image = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="active", index=True)  # active | sold | removed
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    seller = relationship("User", back_populates="products")
