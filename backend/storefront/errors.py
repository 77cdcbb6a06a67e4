"""
Business errors raised by the catalog and order services.

Every error is local to one request and leaves storage untouched. The HTTP
layer maps each class to a status code (see main.py).
"""


class StoreError(Exception):
    """Base class. `kind` is the stable name reported to API callers."""

    kind = "store_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def context(self) -> dict:
        return {}


class ValidationError(StoreError):
    kind = "validation_error"


class NotFound(StoreError):
    kind = "not_found"


class ProductNotFound(NotFound):
    kind = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product with ID {product_id} not found")
        self.product_id = product_id

    def context(self) -> dict:
        return {"product_id": self.product_id}


class OrderNotFound(NotFound):
    kind = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__(f"Order with ID {order_id} not found")
        self.order_id = order_id

    def context(self) -> dict:
        return {"order_id": self.order_id}


class InsufficientStock(StoreError):
    kind = "insufficient_stock"

    def __init__(self, product_id: int, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested

    def context(self) -> dict:
        return {
            "product_id": self.product_id,
            "available": self.available,
            "requested": self.requested,
        }


class Conflict(StoreError):
    kind = "conflict"


class InvalidStatus(StoreError):
    kind = "invalid_status"

    def __init__(self, status, valid):
        super().__init__(f"Invalid status {status!r}. Valid values: {', '.join(valid)}")
        self.status = status
        self.valid = list(valid)

    def context(self) -> dict:
        return {"valid_statuses": self.valid}
