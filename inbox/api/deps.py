"""FastAPI dependencies for tenant resolution."""

from typing import Annotated

from fastapi import Header, HTTPException, status

from inbox.core.tenant_context import set_tenant_context


async def require_tenant_context(
    x_tenant_id: Annotated[str | None, Header(alias="X-Tenant-Id")] = None,
) -> str:
    """Require a tenant context to be present.

    Authentication happens upstream; the gateway forwards the tenant in
    the X-Tenant-Id header.

    Raises:
        HTTPException: If no tenant header is present
    """
    tenant_id = (x_tenant_id or "").strip()
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant context required",
        )
    set_tenant_context(tenant_id)
    return tenant_id
