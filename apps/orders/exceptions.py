from apps.utils.exceptions import (
    BusinessLogicException,
    Conflict,
    IntegrityFault,
    NotFound,
)


class EmptyOrderRequest(BusinessLogicException):
    default_code = "empty_order_request"


class ProductUnavailable(BusinessLogicException):
    default_code = "product_unavailable"


class InsufficientStock(BusinessLogicException):
    default_code = "insufficient_stock"


class CartItemNotFound(NotFound):
    default_code = "cart_item_not_found"


class OrderNotFound(NotFound):
    default_code = "order_not_found"


class ProductNotFound(IntegrityFault):
    """A cart line points at a product row that no longer exists."""
    default_code = "product_not_found"


class InvalidStatusTransition(Conflict):
    default_code = "invalid_status_transition"


class CartItemsAlreadyConsumed(Conflict):
    """Another checkout consumed some of the same cart lines first."""
    default_code = "cart_items_already_consumed"
