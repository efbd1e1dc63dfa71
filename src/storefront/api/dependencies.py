"""Request principal forwarded by the upstream auth gateway."""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    customer_id: str
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


async def current_principal(
    x_customer_id: str = Header(default=""),
    x_customer_role: str = Header(default="customer"),
) -> Principal:
    if not x_customer_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return Principal(customer_id=x_customer_id, role=x_customer_role or "customer")


async def require_admin(principal: Principal = Depends(current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal
