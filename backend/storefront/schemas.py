"""
API Schemas
===========

Pydantic models for request validation and response serialization.

- *Create / *Update: what clients send (validated before reaching services)
- Product / Order / OrderItem: what the API returns (read from ORM objects)

Money fields are Decimal end to end; JSON carries them as strings.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.models import OrderStatus


# ============================================================================
# PRODUCTS
# ============================================================================

class ProductBase(BaseModel):
    name: str = Field(..., max_length=255)
    brand: str = Field("", max_length=100)
    price: Decimal = Field(..., max_digits=12, decimal_places=2)
    original_price: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    category: str = Field("", max_length=100)
    description: Optional[str] = None
    image_url: str = Field("", max_length=1000)
    stock: int = Field(0, ge=0)
    is_featured: bool = False


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    """Partial update: only the fields the client sends are changed."""
    name: Optional[str] = Field(None, max_length=255)
    brand: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    original_price: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=1000)
    stock: Optional[int] = Field(None, ge=0)
    is_featured: Optional[bool] = None


class Product(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    rating: Decimal
    review_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================================
# ORDERS
# ============================================================================

class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int


class OrderCreate(BaseModel):
    """
    Checkout payload. Business rules (non-blank customer fields, positive
    quantities, at least one line) are enforced by OrderPlacementService so
    every caller gets the same errors, HTTP or not.
    """
    user_id: Optional[str] = Field(None, max_length=100)
    customer_name: str = Field(..., max_length=200)
    customer_email: str = Field(..., max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=50)
    shipping_address: str
    payment_method: Optional[str] = Field(None, max_length=50)
    items: List[OrderItemCreate]


class OrderItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    product_name: str
    quantity: int
    price: Decimal


class Order(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[str] = None
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    shipping_address: str
    payment_method: Optional[str] = None
    status: OrderStatus
    total_amount: Decimal
    created_at: Optional[datetime] = None
    items: List[OrderItem]


class OrderStatusUpdate(BaseModel):
    # Plain str: unknown values are reported as InvalidStatus by the service
    status: str


class ErrorResponse(BaseModel):
    """Error body; some kinds add context such as product_id or available."""
    model_config = ConfigDict(extra="allow")

    detail: str
    error: str
