"""Payment gateway webhooks and fake-gateway controls."""

from fastapi import APIRouter, Depends, HTTPException, Request

from storefront.api.dependencies import Principal, require_admin
from storefront.api.schemas import ConfigureGatewayRequest, ok
from storefront.config import is_production
from storefront.payments.gateway import GatewayName, get_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.webhook import receive_webhook

router = APIRouter(prefix="/payments", tags=["payments"])

SIGNATURE_HEADERS = {
    GatewayName.STRIPE: "stripe-signature",
    GatewayName.PAYPAL: "paypal-transmission-sig",
}


def _gateway_name(gateway: str) -> GatewayName:
    try:
        return GatewayName(gateway)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown payment gateway `{gateway}`") from None


@router.post("/webhooks/{gateway}")
async def payment_webhook(gateway: str, request: Request):
    """Authenticate a gateway callback against the raw body, then apply it.

    Every authenticated event is acknowledged with 200, including event types
    and payment references the store does not know.
    """
    name = _gateway_name(gateway)
    payload = await request.body()
    signature = request.headers.get(SIGNATURE_HEADERS[name], "")
    result = receive_webhook(name, payload, signature, dict(request.headers))
    return ok({"received": True, "status": result})


@router.post("/gateways/{gateway}/configure")
async def configure_gateway(
    gateway: str,
    body: ConfigureGatewayRequest,
    admin: Principal = Depends(require_admin),
):
    """Toggle fake gateway outcomes for manual testing (non-production only)."""
    if is_production():
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    instance = get_gateway(_gateway_name(gateway))
    if not isinstance(instance, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    instance.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return ok(
        {
            "gateway": instance.name,
            "should_succeed": instance.should_succeed,
            "failure_reason": instance.failure_reason,
        }
    )
