"""Storefront FastAPI application.

Web server that processes commands synchronously via HTTP. Every request
runs inside the storefront domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.domain import storefront
from storefront.utils.logging import add_context, clear_context, configure_logging

configure_logging()
storefront.init()

API_PREFIX = "/api/v1"

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="E-commerce backend: catalogue, cart, checkout, payments and reviews",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context and bind request log context."""
    add_context(method=request.method, path=request.url.path)
    try:
        with storefront.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api.admin import router as admin_router  # noqa: E402
from storefront.api.cart import router as cart_router  # noqa: E402
from storefront.api.coupons import router as coupon_router  # noqa: E402
from storefront.api.customers import router as customer_router  # noqa: E402
from storefront.api.errors import register_error_handlers  # noqa: E402
from storefront.api.orders import router as order_router  # noqa: E402
from storefront.api.payments import router as payment_router  # noqa: E402
from storefront.api.products import router as product_router  # noqa: E402
from storefront.api.reviews import router as review_router  # noqa: E402
from storefront.api.wishlist import router as wishlist_router  # noqa: E402

app.include_router(product_router, prefix=API_PREFIX)
app.include_router(cart_router, prefix=API_PREFIX)
app.include_router(order_router, prefix=API_PREFIX)
app.include_router(payment_router, prefix=API_PREFIX)
app.include_router(review_router, prefix=API_PREFIX)
app.include_router(wishlist_router, prefix=API_PREFIX)
app.include_router(coupon_router, prefix=API_PREFIX)
app.include_router(customer_router, prefix=API_PREFIX)
app.include_router(admin_router, prefix=API_PREFIX)

register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": storefront.name}})
