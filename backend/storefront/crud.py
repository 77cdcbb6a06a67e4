"""
CRUD Operations
===============

Storage access for products and orders.

ProductCatalog and OrderStore wrap one SQLAlchemy session. They never
commit: transaction boundaries belong to the services, so that an order,
its items and the stock decrements land in a single COMMIT.

Pattern:
    catalog = ProductCatalog(db)
    product = catalog.get(product_id)
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from storefront import models

# Integer primary keys are 32-bit on PostgreSQL; larger ids cannot exist
MAX_ID = 2**31 - 1


def valid_id(record_id: int) -> bool:
    return 1 <= record_id <= MAX_ID


# ============================================================================
# PRODUCT CATALOG
# ============================================================================

class ProductCatalog:

    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> Optional[models.Product]:
        """
        Retrieve a single product by ID.

        SQL generated:
            SELECT * FROM products WHERE id = product_id LIMIT 1
        """
        if not valid_id(product_id):
            return None
        return self.db.query(models.Product).filter(models.Product.id == product_id).first()

    def get_many_for_update(self, product_ids: Iterable[int]) -> Dict[int, models.Product]:
        """
        Load and row-lock several products, keyed by id.

        Rows are locked in ascending id order so two orders touching the
        same products cannot deadlock each other. Backends without row locks
        (SQLite) render no FOR UPDATE clause.

        SQL generated:
            SELECT * FROM products WHERE id IN (...) ORDER BY id FOR UPDATE
        """
        ids = sorted({pid for pid in product_ids if valid_id(pid)})
        if not ids:
            return {}
        rows = (
            self.db.query(models.Product)
            .filter(models.Product.id.in_(ids))
            .order_by(models.Product.id)
            .with_for_update()
            .all()
        )
        return {product.id: product for product in rows}

    def list(self, skip: int = 0, limit: int = 100) -> List[models.Product]:
        """
        Retrieve products with pagination.

        Page 1: skip=0, limit=10   → Products 1-10
        Page 2: skip=10, limit=10  → Products 11-20
        """
        return (
            self.db.query(models.Product)
            .order_by(models.Product.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def list_by_category(self, category: str) -> List[models.Product]:
        """Case-insensitive category match."""
        return (
            self.db.query(models.Product)
            .filter(func.lower(models.Product.category) == category.lower())
            .order_by(models.Product.id)
            .all()
        )

    def find_by_name(self, name: str) -> Optional[models.Product]:
        return self.db.query(models.Product).filter(models.Product.name == name).first()

    def add(self, fields: dict) -> models.Product:
        """
        Stage a new product and flush it to obtain its id.

        SQL generated:
            INSERT INTO products (name, brand, price, ...) VALUES (...)
        """
        db_product = models.Product(**fields)
        self.db.add(db_product)
        self.db.flush()
        return db_product

    def update(self, db_product: models.Product, fields: dict) -> models.Product:
        for field, value in fields.items():
            setattr(db_product, field, value)
        self.db.flush()
        return db_product

    def delete(self, db_product: models.Product) -> None:
        self.db.delete(db_product)
        self.db.flush()

    def decrement_stock(self, product_id: int, amount: int) -> bool:
        """
        Atomically take `amount` units out of stock.

        Compare-and-set: the row only changes if it still holds enough
        stock at write time, whatever was read earlier.

        Returns:
            True if the stock was decremented, False if the product is gone
            or holds fewer than `amount` units.

        SQL generated:
            UPDATE products
            SET stock = stock - amount
            WHERE id = ? AND stock >= amount
        """
        updated = (
            self.db.query(models.Product)
            .filter(models.Product.id == product_id, models.Product.stock >= amount)
            .update(
                {models.Product.stock: models.Product.stock - amount},
                synchronize_session="fetch",
            )
        )
        return updated == 1

    def current_stock(self, product_id: int) -> Optional[int]:
        """Read the stock count from the database, bypassing objects cached in the session."""
        return (
            self.db.query(models.Product.stock)
            .filter(models.Product.id == product_id)
            .scalar()
        )


# ============================================================================
# ORDER STORE
# ============================================================================

class OrderStore:

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(models.Order).options(selectinload(models.Order.items))

    def get(self, order_id: int) -> Optional[models.Order]:
        """
        Retrieve a single order by ID (includes items).

        SQL generated (2 queries due to relationships):
            SELECT * FROM orders WHERE id = ?
            SELECT * FROM order_items WHERE order_id IN (?)
        """
        if not valid_id(order_id):
            return None
        return self._query().filter(models.Order.id == order_id).first()

    def list(self, skip: int = 0, limit: int = 100) -> List[models.Order]:
        return self._query().order_by(models.Order.id).offset(skip).limit(limit).all()

    def list_by_user(self, user_id: str) -> List[models.Order]:
        return self._query().filter(models.Order.user_id == user_id).order_by(models.Order.id).all()

    def create(self, order: models.Order) -> models.Order:
        """
        Stage an order together with its items.

        flush() writes the rows inside the open transaction without
        committing, which assigns order.id and the item ids. The caller
        commits order, items and stock changes together.

        SQL generated:
            INSERT INTO orders (...) VALUES (...);
            INSERT INTO order_items (order_id, product_id, quantity, price) VALUES (...);
        """
        self.db.add(order)
        self.db.flush()
        return order

    def update_status(self, order_id: int, status: models.OrderStatus) -> Optional[models.Order]:
        if not valid_id(order_id):
            return None
        db_order = self.db.query(models.Order).filter(models.Order.id == order_id).first()
        if db_order is None:
            return None
        db_order.status = status
        self.db.flush()
        return db_order
