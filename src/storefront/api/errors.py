"""Exception handlers mapping domain errors onto the response envelope."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.api.schemas import failure
from storefront.exceptions import PaymentError, PermissionDenied, WebhookSignatureError

logger = structlog.get_logger(__name__)


def _messages(exc):
    return getattr(exc, "messages", None) or str(exc)


async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content=failure(_messages(exc), "Validation failed"))


async def not_found_handler(request: Request, exc: ObjectNotFoundError):
    return JSONResponse(status_code=404, content=failure(_messages(exc), "Not found"))


async def permission_denied_handler(request: Request, exc: PermissionDenied):
    return JSONResponse(status_code=403, content=failure(exc.messages, "Forbidden"))


async def payment_error_handler(request: Request, exc: PaymentError):
    logger.error("Payment gateway error", path=request.url.path, gateway=exc.gateway, error=exc.message)
    return JSONResponse(status_code=502, content=failure(exc.message, "Payment gateway error"))


async def webhook_signature_handler(request: Request, exc: WebhookSignatureError):
    logger.warning("Rejected webhook", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=400, content=failure(str(exc), "Invalid webhook signature"))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]} for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=failure(errors, "Invalid request"))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=failure(exc.detail), headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", path=request.url.path, method=request.method)
    return JSONResponse(status_code=500, content=failure("Internal server error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(PermissionDenied, permission_denied_handler)
    app.add_exception_handler(PaymentError, payment_error_handler)
    app.add_exception_handler(WebhookSignatureError, webhook_signature_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
