"""
Domain errors raised by the services.

Each error carries the HTTP status the API answers with; main.py registers a
single handler for StorefrontError so routers never translate them by hand.
"""

class StorefrontError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

# --- Order placement ---

class UserInactiveOrNotFound(StorefrontError):
    status_code = 404

class ProductNotFound(StorefrontError):
    status_code = 404

class InvalidQuantity(StorefrontError):
    status_code = 400

class DuplicateLineItem(StorefrontError):
    status_code = 400

class InsufficientStock(StorefrontError):
    status_code = 409

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Not enough stock for product {product_id}. "
            f"Requested: {requested}, available: {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available

class StorageUnavailable(StorefrontError):
    """The transaction could not commit; nothing from the request was persisted."""
    status_code = 503

# --- Orders after placement ---

class OrderNotFound(StorefrontError):
    status_code = 404

class InvalidStatusTransition(StorefrontError):
    status_code = 409

# --- Accounts and catalog ---

class EmailAlreadyRegistered(StorefrontError):
    status_code = 409

class UserHasOrders(StorefrontError):
    status_code = 409

class InvalidProductData(StorefrontError):
    status_code = 400

class DuplicateSku(StorefrontError):
    status_code = 409

class ProductInUse(StorefrontError):
    status_code = 409
