# storefront/domain/errors.py
from typing import Any, Dict


class StoreError(Exception):
    """
    Base for errors that reach the client as {ok: false, error: code, ...context}.
    """

    code = "server_error"
    status_code = 500

    def __init__(self, message: str | None = None, **context: Any):
        super().__init__(message or self.code)
        self.context = context

    def to_body(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.code, **self.context}


class Unauthenticated(StoreError, PermissionError):
    code = "unauthenticated"
    status_code = 401


class Forbidden(StoreError, PermissionError):
    code = "forbidden"
    status_code = 403


class NotFound(StoreError, LookupError):
    code = "not_found"
    status_code = 404


class InvalidAddress(StoreError, ValueError):
    code = "invalid_address"
    status_code = 422


class CartEmpty(StoreError, ValueError):
    code = "cart_empty"
    status_code = 400


class OutOfStock(StoreError, ValueError):
    code = "out_of_stock"
    status_code = 409


class AlreadyPaid(StoreError, ValueError):
    code = "already_paid"
    status_code = 409


class ServerError(StoreError):
    """Opaque to the client, details go to the log only."""
