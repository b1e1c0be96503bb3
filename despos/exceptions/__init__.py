"""Custom exceptions for the DesPOS application."""


class DesposError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class ValidationError(DesposError):
    """Raised when a draft or a submitted row fails its preconditions."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(DesposError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class NoPriceLevelError(ValidationError):
    """Raised when a product has no price level to sell it at."""
    def __init__(self, product_name=None):
        name = f'"{product_name}"' if product_name else 'This product'
        super().__init__(f'{name} has no price level and cannot be added to an order')


class AlreadyExpiredStockError(DesposError):
    """Raised when a product with no remaining stock is added to an order."""
    def __init__(self, product_name, available):
        message = f'No stock left for "{product_name}" (available: {available})'
        super().__init__(message, status_code=409)


class LineNotFoundError(NotFoundError):
    """Raised when removing a line that is not part of the draft."""
    def __init__(self, product_id):
        super().__init__(f'Product {product_id} is not in the order', payload={'product_id': product_id})


class PersistenceError(DesposError):
    """Raised when a gateway write fails."""
    def __init__(self, message="Could not write to the database", payload=None):
        super().__init__(message, 500, payload)


class PartialSettlementError(DesposError):
    """
    Raised after the sales header was committed but one or more of the
    product/selection writes that follow it failed.

    ``result`` holds the SettlementResult, ``failures`` the failed writes.
    """
    def __init__(self, result, failures):
        self.result = result
        self.failures = failures
        payload = {
            'sales_id': result.sales_id,
            'failures': failures,
        }
        message = f'Sale saved but {len(failures)} write(s) failed; retry the settlement'
        super().__init__(message, 207, payload)
