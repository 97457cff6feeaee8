from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from .models import OrderStatus, PaymentMethod

class ShippingAddress(BaseModel):
    address: str
    city: str
    postal_code: str
    country: str
    phone: Optional[str] = None

class OrderItemCreate(BaseModel):
    product_id: int
    name: str
    image: str = ""
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)

class OrderCreate(BaseModel):
    # Emptiness and missing address/method are reported by the checkout
    # workflow itself, so they are optional at the schema level.
    order_items: List[OrderItemCreate] = []
    shipping_address: Optional[ShippingAddress] = None
    payment_method: Optional[PaymentMethod] = None
    items_price: Optional[float] = Field(default=None, ge=0)
    tax_price: float = Field(default=0.0, ge=0)
    shipping_price: float = Field(default=0.0, ge=0)
    total_price: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)

class PaymentResult(BaseModel):
    id: str
    status: str
    update_time: Optional[str] = None
    email_address: Optional[EmailStr] = None

class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=500)

class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    name: str
    image: str
    price: float
    quantity: int

    class Config:
        from_attributes = True

class StatusHistoryEntry(BaseModel):
    status: OrderStatus
    timestamp: datetime
    note: Optional[str] = None

    class Config:
        from_attributes = True

class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: str
    items: List[OrderItemResponse]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    payment_result: Optional[PaymentResult] = None
    items_price: float
    tax_price: float
    shipping_price: float
    total_price: float
    status: OrderStatus
    is_paid: bool
    paid_at: Optional[datetime] = None
    is_delivered: bool
    delivered_at: Optional[datetime] = None
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    notes: Optional[str] = None
    status_history: List[StatusHistoryEntry] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

class OrderPage(BaseModel):
    orders: List[OrderResponse]
    pagination: Pagination

class OverallStats(BaseModel):
    total_orders: int = 0
    total_revenue: float = 0.0
    average_order_value: float = 0.0

class StatusCount(BaseModel):
    status: OrderStatus
    count: int

class OrderStats(BaseModel):
    overall: OverallStats
    status_breakdown: List[StatusCount]
