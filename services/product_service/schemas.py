from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    image: Optional[str] = None
    price: float = Field(ge=0)
    discount: float = Field(default=0, ge=0, le=100)
    stock: int = Field(default=0, ge=0)
    low_stock_threshold: int = Field(default=10, ge=0)
    is_active: bool = True

class ProductResponse(BaseModel):
    id: int
    name: str
    image: Optional[str]
    price: float
    discount: float
    discounted_price: float
    stock: int
    stock_status: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ProductSummary(BaseModel):
    id: int
    name: str
    image: Optional[str]
    price: float
    stock: int
    is_active: bool

    class Config:
        from_attributes = True
