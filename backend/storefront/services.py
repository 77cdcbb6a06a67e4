"""
Business Services
=================

OrderPlacementService turns a cart into a persisted order:

    1. validate every line against live stock (nothing is written yet)
    2. decrement stock, insert the order and its items
    3. COMMIT once

Any error in 1 or 2 rolls the whole transaction back, so a rejected order
never leaves stock changed or a half-written order behind.

ProductService holds the catalog management rules used by the admin UI.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront import models, schemas
from storefront.crud import OrderStore, ProductCatalog
from storefront.errors import (
    Conflict,
    InsufficientStock,
    InvalidStatus,
    OrderNotFound,
    ProductNotFound,
    StoreError,
    ValidationError,
)
from storefront.telemetry import orders_total, revenue_total, tracer

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


# ============================================================================
# ORDER PLACEMENT
# ============================================================================

class OrderPlacementService:

    def __init__(
        self,
        db: Session,
        catalog: Optional[ProductCatalog] = None,
        orders: Optional[OrderStore] = None,
    ):
        self.db = db
        self.catalog = catalog or ProductCatalog(db)
        self.orders = orders or OrderStore(db)

    def place_order(self, order_in: schemas.OrderCreate) -> models.Order:
        """
        Validate a cart and persist it as a Pending order.

        Raises:
            ValidationError: empty cart, non-positive quantity, blank customer fields
            ProductNotFound: a line references an unknown product
            InsufficientStock: a product holds fewer units than requested
        """
        with tracer.start_as_current_span("create_order") as span:
            span.set_attribute("order.item_count", len(order_in.items))
            if order_in.user_id:
                span.set_attribute("order.user_id", order_in.user_id)

            try:
                self._validate_request(order_in)
                order = self._place(order_in, span)
                self.db.commit()
            except StoreError as e:
                self.db.rollback()
                span.add_event(e.kind, {k: str(v) for k, v in e.context().items()})
                orders_total.labels(status='rejected').inc()
                logger.warning("Order rejected: %s", e.message)
                raise
            except SQLAlchemyError as e:
                self.db.rollback()
                span.record_exception(e)
                span.set_attribute("error", True)
                orders_total.labels(status='error').inc()
                logger.exception("Order placement failed in storage")
                raise

            self.db.refresh(order)
            span.set_attribute("order.id", order.id)
            span.add_event("order_created", {"order_id": order.id, "total_amount": str(order.total_amount)})

        orders_total.labels(status='success').inc()
        revenue_total.inc(float(order.total_amount))
        logger.info(
            "Order %s placed: %d line(s), total %s",
            order.id, len(order.items), order.total_amount,
        )
        return order

    def _validate_request(self, order_in: schemas.OrderCreate) -> None:
        if not order_in.items:
            raise ValidationError("Order must contain at least one item")
        for item in order_in.items:
            if item.quantity <= 0:
                raise ValidationError(
                    f"Quantity for product {item.product_id} must be a positive integer"
                )
        for field in ("customer_name", "customer_email", "shipping_address"):
            if _blank(getattr(order_in, field)):
                raise ValidationError(f"{field} is required")

    def _place(self, order_in: schemas.OrderCreate, span) -> models.Order:
        with tracer.start_as_current_span("validate_products"):
            products = self.catalog.get_many_for_update(item.product_id for item in order_in.items)

            reserved: Dict[int, int] = {}
            lines: List[models.OrderItem] = []
            total_amount = Decimal("0")

            for item in order_in.items:
                product = products.get(item.product_id)
                if product is None:
                    raise ProductNotFound(item.product_id)

                # Repeated lines for one product draw from the same stock
                requested = reserved.get(product.id, 0) + item.quantity
                if product.stock < requested:
                    raise InsufficientStock(product.id, product.stock, requested)
                reserved[product.id] = requested

                unit_price = product.price
                total_amount += unit_price * item.quantity
                lines.append(models.OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=item.quantity,
                    price=unit_price,
                ))

            span.set_attribute("order.total_amount", str(total_amount))

        with tracer.start_as_current_span("update_inventory"):
            for product_id in sorted(reserved):
                quantity = reserved[product_id]
                if not self.catalog.decrement_stock(product_id, quantity):
                    # Another order took the stock after our read
                    available = self.catalog.current_stock(product_id) or 0
                    raise InsufficientStock(product_id, available, quantity)

        with tracer.start_as_current_span("save_order"):
            order = models.Order(
                user_id=order_in.user_id,
                customer_name=order_in.customer_name.strip(),
                customer_email=order_in.customer_email.strip(),
                customer_phone=order_in.customer_phone,
                shipping_address=order_in.shipping_address.strip(),
                payment_method=order_in.payment_method,
                status=models.OrderStatus.PENDING,
                total_amount=total_amount,
                items=lines,
            )
            return self.orders.create(order)

    def update_order_status(self, order_id: int, new_status: Union[str, models.OrderStatus]) -> models.Order:
        """
        Set an order's status.

        Any recognized status can be set from any other one, and setting
        the current status again is a no-op. Cancelling does not restock.
        """
        try:
            status = models.OrderStatus(new_status)
        except ValueError:
            raise InvalidStatus(new_status, models.OrderStatus.values()) from None

        try:
            db_order = self.orders.update_status(order_id, status)
            if db_order is None:
                raise OrderNotFound(order_id)
            self.db.commit()
        except (StoreError, SQLAlchemyError):
            self.db.rollback()
            raise

        self.db.refresh(db_order)
        logger.info("Order %s status set to %s", order_id, status.value)
        return db_order

    def get_order(self, order_id: int) -> models.Order:
        db_order = self.orders.get(order_id)
        if db_order is None:
            raise OrderNotFound(order_id)
        return db_order

    def list_orders(self, skip: int = 0, limit: int = 100) -> List[models.Order]:
        return self.orders.list(skip=skip, limit=limit)

    def list_orders_by_user(self, user_id: str) -> List[models.Order]:
        return self.orders.list_by_user(user_id)


# ============================================================================
# CATALOG MANAGEMENT
# ============================================================================

# Columns that cannot be cleared with an explicit null in a partial update
_REQUIRED_PRODUCT_FIELDS = ("name", "brand", "price", "category", "image_url", "stock", "is_featured")


class ProductService:

    def __init__(self, db: Session, catalog: Optional[ProductCatalog] = None):
        self.db = db
        self.catalog = catalog or ProductCatalog(db)

    def get_product(self, product_id: int) -> models.Product:
        db_product = self.catalog.get(product_id)
        if db_product is None:
            raise ProductNotFound(product_id)
        return db_product

    def list_products(self, skip: int = 0, limit: int = 100) -> List[models.Product]:
        return self.catalog.list(skip=skip, limit=limit)

    def list_by_category(self, category: str) -> List[models.Product]:
        return self.catalog.list_by_category(category)

    def create_product(self, product_in: schemas.ProductCreate) -> models.Product:
        fields = product_in.model_dump()
        self._check_fields(fields)
        fields["name"] = fields["name"].strip()

        if self.catalog.find_by_name(fields["name"]) is not None:
            raise Conflict(f"Product with the name {fields['name']!r} already exists")

        db_product = self._commit(lambda: self.catalog.add(fields), fields["name"])
        logger.info("Product %s created: %s", db_product.id, db_product.name)
        return db_product

    def update_product(self, product_id: int, product_update: schemas.ProductUpdate) -> models.Product:
        db_product = self.get_product(product_id)

        # Only fields explicitly sent by the client
        fields = product_update.model_dump(exclude_unset=True)
        for field in _REQUIRED_PRODUCT_FIELDS:
            if field in fields and fields[field] is None:
                raise ValidationError(f"{field} cannot be null")
        self._check_fields(fields)

        if "name" in fields:
            fields["name"] = fields["name"].strip()
            existing = self.catalog.find_by_name(fields["name"])
            if existing is not None and existing.id != db_product.id:
                raise Conflict(f"Product with the name {fields['name']!r} already exists")

        db_product = self._commit(lambda: self.catalog.update(db_product, fields), fields.get("name"))
        logger.info("Product %s updated: %s", product_id, ", ".join(sorted(fields)) or "no changes")
        return db_product

    def delete_product(self, product_id: int) -> None:
        """Remove a product. Past order items keep their own copies."""
        db_product = self.get_product(product_id)
        self._commit(lambda: self.catalog.delete(db_product))
        logger.info("Product %s deleted", product_id)

    def _check_fields(self, fields: dict) -> None:
        if "name" in fields and _blank(fields["name"]):
            raise ValidationError("Product name is required")
        for field in ("price", "original_price"):
            if fields.get(field) is not None and fields[field] < 0:
                raise ValidationError(f"{field} must be >= 0")
        if fields.get("stock") is not None and fields["stock"] < 0:
            raise ValidationError("stock must be >= 0")

    def _commit(self, write, name: Optional[str] = None):
        try:
            result = write()
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if name is None:
                raise
            # Unique index on name: a concurrent write took the name first
            raise Conflict(f"Product with the name {name!r} already exists")
        except SQLAlchemyError:
            self.db.rollback()
            raise
        if result is not None:
            self.db.refresh(result)
        return result
