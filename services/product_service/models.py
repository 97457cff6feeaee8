from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, Integer, String
from shared.config.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    image = Column(String, nullable=True)
    price = Column(Float, nullable=False)
    discount = Column(Float, nullable=False, default=0)  # percentage, 0-100
    stock = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=10)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @property
    def discounted_price(self) -> float:
        if self.discount and self.discount > 0:
            return self.price - (self.price * self.discount) / 100
        return self.price

    @property
    def stock_status(self) -> str:
        if self.stock == 0:
            return "out-of-stock"
        if self.stock <= self.low_stock_threshold:
            return "low-stock"
        return "in-stock"

    @property
    def is_purchasable(self) -> bool:
        return bool(self.is_active) and self.stock > 0
