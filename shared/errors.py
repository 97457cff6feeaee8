"""Domain exceptions shared by the cart, order and inventory services.

Each error carries the HTTP status it maps to; the handlers registered in
``main.create_app`` turn them into the standard response envelope.
"""


class ShopError(Exception):
    """Base exception for all storefront errors."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(ShopError):
    """Referenced entity does not exist."""

    status_code = 404


class Unavailable(ShopError):
    """Entity exists but is inactive."""


class InsufficientStock(ShopError):
    """Requested quantity exceeds the available stock."""

    def __init__(self, message: str, product_id: int | None = None):
        self.product_id = product_id
        super().__init__(message)


class InvalidTransition(ShopError):
    """Order status change not allowed from the current status."""

    def __init__(self, current: str, target: str, message: str | None = None):
        self.current = current
        self.target = target
        super().__init__(message or f"Order cannot move from '{current}' to '{target}'")


class Unauthorized(ShopError):
    """Actor lacks ownership of the resource or the required role."""

    status_code = 401


class EmptyOrder(ShopError):
    def __init__(self, message: str = "No order items provided"):
        super().__init__(message)


class MissingField(ShopError):
    def __init__(self, message: str = "Shipping address and payment method are required"):
        super().__init__(message)


class ValidationError(ShopError):
    """Input rejected after schema validation (quantities, price breakdown)."""
