from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from shared.config.database import Base
from services.product_service.models import utcnow

class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, unique=True, index=True)  # one cart per user
    total_items = Column(Integer, nullable=False, default=0)
    total_amount = Column(Float, nullable=False, default=0.0)
    last_modified = Column(DateTime(timezone=True), default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartItem.id",
    )

    def find_item(self, item_id: int):
        return next((item for item in self.items if item.id == item_id), None)

    def find_product(self, product_id: int):
        return next((item for item in self.items if item.product_id == product_id), None)

    def recalculate_totals(self) -> None:
        """Derives totals from the current items; called before every persist."""
        self.total_items = sum(item.quantity for item in self.items)
        self.total_amount = sum(item.price * item.quantity for item in self.items)
        self.last_modified = utcnow()

    def clear(self) -> None:
        self.items.clear()
        self.total_items = 0
        self.total_amount = 0.0


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
        CheckConstraint("price >= 0", name="ck_cart_items_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Float, nullable=False)  # discounted price when last mutated

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product", lazy="selectin")
