"""
Error taxonomy for the storefront.

Domain modules raise these; main.py turns them into JSON responses shaped like
FastAPI's HTTPException ({"detail": ...}).
"""


class StorefrontError(Exception):
    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class AuthenticationFailure(StorefrontError):
    status_code = 401
    default_detail = "Invalid credentials"


class Forbidden(AuthenticationFailure):
    status_code = 403
    default_detail = "Not allowed"


class ProfileNotFound(StorefrontError):
    """Login found no profile of the role the login path requires."""

    status_code = 401
    default_detail = "Profile not found"


class ValidationError(StorefrontError):
    status_code = 400
    default_detail = "Invalid request"


class ProductNotFound(StorefrontError):
    status_code = 404
    default_detail = "Product not found"


class OrderNotFound(StorefrontError):
    status_code = 404
    default_detail = "Order not found"


class InvalidTransition(StorefrontError):
    status_code = 409
    default_detail = "Order status change not allowed"

    def __init__(self, current: str = None, target: str = None):
        detail = None
        if current and target:
            detail = f"Cannot move order from {current} to {target}"
        self.current = current
        self.target = target
        super().__init__(detail)


class StoreUnavailable(StorefrontError):
    status_code = 503
    default_detail = "Database not available"
