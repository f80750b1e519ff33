"""
Typed failures raised by the service layer.

Every rejection carries a stable `code` and a `details` dict with enough context
to build a precise user-facing message. The HTTP layer maps the classes below to
status codes; services never deal with HTTP concerns.
"""
from typing import Any, Dict, Optional


class RetailOpsError(Exception):
    code = "ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code, "details": self.details}


class InvalidInput(RetailOpsError):
    code = "INVALID_INPUT"


class InvalidQuantity(InvalidInput):
    code = "INVALID_QUANTITY"


class UnsupportedFormat(InvalidInput):
    code = "UNSUPPORTED_FORMAT"


class InvalidDiscount(InvalidInput):
    code = "INVALID_DISCOUNT"


class NotFound(RetailOpsError):
    code = "NOT_FOUND"


class ProductNotFound(NotFound):
    code = "PRODUCT_NOT_FOUND"


class OrderNotFound(NotFound):
    code = "ORDER_NOT_FOUND"


class DuplicateSku(RetailOpsError):
    code = "DUPLICATE_SKU"


class DuplicateBarcode(RetailOpsError):
    code = "DUPLICATE_BARCODE"


class BusinessRuleViolation(RetailOpsError):
    """Checkout rejections: the request is well-formed but can't be honoured."""

    code = "BUSINESS_RULE"


class InsufficientStock(BusinessRuleViolation):
    code = "INSUFFICIENT_STOCK"


class InsufficientPayment(BusinessRuleViolation):
    code = "INSUFFICIENT_PAYMENT"


class DiscountExceedsSubtotal(BusinessRuleViolation):
    code = "DISCOUNT_EXCEEDS_SUBTOTAL"


class CardAmountMismatch(BusinessRuleViolation):
    code = "CARD_AMOUNT_MISMATCH"


class Conflict(RetailOpsError):
    """Lost a race on a unique index or a stock lock. Safe to retry once."""

    code = "CONFLICT"


class StorageFailure(RetailOpsError):
    code = "STORAGE_FAILURE"


class PermissionDenied(RetailOpsError):
    code = "PERMISSION_DENIED"
