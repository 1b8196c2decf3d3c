# storefront/api/__init__.py
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.domain.errors import StoreError


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed headers, path params or bodies, in the same {ok, error} shape."""
    return JSONResponse(
        status_code=422,
        content={"ok": False, "error": "invalid_request", "detail": jsonable_encoder(exc.errors())},
    )
