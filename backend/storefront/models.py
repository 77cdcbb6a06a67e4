"""
Database Models
===============

Defines the database schema using SQLAlchemy ORM.

Tables:
- products: Electronics for sale
- orders: Customer orders (with a snapshot of the customer details)
- order_items: Lines of each order, with the unit price frozen at purchase
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.database import Base


class OrderStatus(str, enum.Enum):
    """Closed set of order states. Delivered and Cancelled are terminal."""

    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    @classmethod
    def values(cls):
        return [member.value for member in cls]


# Money columns: 12 digits, 2 after the point
Money = Numeric(12, 2)


# ============================================================================
# PRODUCT MODEL
# ============================================================================

class Product(Base):
    """
    Products available for purchase.

    Attributes:
        id: Primary key
        name: Product name (unique by catalog policy, max 255 chars)
        brand: Manufacturer
        price: Current unit price
        original_price: List price before discount (optional)
        category: Catalog section, e.g. "Laptops"
        stock: Available quantity, never negative
        rating / review_count / is_featured: storefront metadata

    Stock is only decreased through ProductCatalog.decrement_stock.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(255), nullable=False, unique=True, index=True)
    brand = Column(String(100), nullable=False, default="")
    price = Column(Money, nullable=False)
    original_price = Column(Money, nullable=True)
    category = Column(String(100), nullable=False, default="", index=True)
    description = Column(Text, nullable=True)
    image_url = Column(String(1000), nullable=False, default="")
    stock = Column(Integer, default=0, nullable=False)

    rating = Column(Numeric(3, 2), nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)
    is_featured = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# ============================================================================
# ORDER MODEL
# ============================================================================

class Order(Base):
    """
    Customer orders.

    Customer name/email/phone are copied at creation time, not linked to a
    live user record. user_id is an opaque identifier from the caller.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(String(100), nullable=True, index=True)
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    shipping_address = Column(Text, nullable=False)
    # Recorded only, never charged
    payment_method = Column(String(50), nullable=True)

    status = Column(
        Enum(
            OrderStatus,
            native_enum=False,
            length=20,
            validate_strings=True,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=OrderStatus.PENDING,
        nullable=False,
    )
    total_amount = Column(Money, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


# ============================================================================
# ORDER ITEM MODEL
# ============================================================================

class OrderItem(Base):
    """
    Individual lines within an order.

    product_id has no foreign key: products can be deleted from the catalog
    while past orders keep their lines. product_name and price are copies
    taken when the order was placed.
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)

    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False, index=True)
    product_name = Column(String(255), nullable=False, default="")

    quantity = Column(Integer, nullable=False)
    price = Column(Money, nullable=False)

    order = relationship("Order", back_populates="items")
