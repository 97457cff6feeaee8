from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from services.product_service.schemas import ProductSummary

class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = 1

class CartItemUpdate(BaseModel):
    quantity: int

class CartItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    price: float
    product: Optional[ProductSummary] = None

    class Config:
        from_attributes = True

class CartResponse(BaseModel):
    id: int
    user_id: str
    items: List[CartItemResponse] = []
    total_items: int
    total_amount: float
    last_modified: Optional[datetime] = None

    class Config:
        from_attributes = True

class CartCount(BaseModel):
    count: int
