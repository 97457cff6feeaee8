import enum
import secrets
import string
import time

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import relationship
from shared.config.database import Base
from services.product_service.models import utcnow


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    CASH_ON_DELIVERY = "cash_on_delivery"
    BANK_TRANSFER = "bank_transfer"


CANCELLABLE_STATUSES = {OrderStatus.PENDING, OrderStatus.PROCESSING}

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number() -> str:
    """ORD-<epoch millis>-<5 base36 chars>."""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(5))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("items_price >= 0", name="ck_orders_items_price"),
        CheckConstraint("tax_price >= 0", name="ck_orders_tax_price"),
        CheckConstraint("shipping_price >= 0", name="ck_orders_shipping_price"),
        CheckConstraint("total_price >= 0", name="ck_orders_total_price"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), nullable=False, unique=True, index=True, default=generate_order_number)
    user_id = Column(String, nullable=False, index=True)
    shipping_address = Column(JSON, nullable=False)
    payment_method = Column(String(32), nullable=False)
    payment_result = Column(JSON, nullable=True)  # opaque gateway record
    # Fixed at creation; never recomputed from items afterwards
    items_price = Column(Float, nullable=False, default=0.0)
    tax_price = Column(Float, nullable=False, default=0.0)
    shipping_price = Column(Float, nullable=False, default=0.0)
    total_price = Column(Float, nullable=False, default=0.0)
    status = Column(String(16), nullable=False, default=OrderStatus.PENDING.value, index=True)
    is_paid = Column(Boolean, nullable=False, default=False, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    is_delivered = Column(Boolean, nullable=False, default=False)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    tracking_number = Column(String, nullable=True)
    estimated_delivery = Column(DateTime(timezone=True), nullable=True)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id",
    )
    status_history = relationship(
        "OrderStatusHistory",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderStatusHistory.id",
    )

    def set_status(self, status: OrderStatus, note: str | None = None) -> None:
        """Moves to ``status`` and appends the change to the audit trail."""
        self.status = OrderStatus(status).value
        self.status_history.append(
            OrderStatusHistory(status=self.status, timestamp=utcnow(), note=note)
        )

    @property
    def is_cancellable(self) -> bool:
        return OrderStatus(self.status) in CANCELLABLE_STATUSES

    def mark_paid(self, payment_result: dict) -> None:
        # Repeated calls re-stamp paid_at
        self.is_paid = True
        self.paid_at = utcnow()
        self.payment_result = payment_result
        if self.status == OrderStatus.PENDING.value:
            self.set_status(OrderStatus.PROCESSING)

    def mark_delivered(self) -> None:
        self.is_delivered = True
        self.delivered_at = utcnow()


class OrderItem(Base):
    """Frozen copy of a purchased product line."""

    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity"),
        CheckConstraint("price >= 0", name="ck_order_items_price"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    image = Column(String, nullable=False, default="")
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")


class OrderStatusHistory(Base):
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(16), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    note = Column(String(500), nullable=True)

    order = relationship("Order", back_populates="status_history")
