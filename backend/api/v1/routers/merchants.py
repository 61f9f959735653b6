"""
Merchants Router — merchant list, lookup, search and lifecycle per cluster.
"""

from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from api.deps import get_service
from merchant_api import MerchantService

router = APIRouter(prefix="/api/v1/merchants", tags=["merchants"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class MerchantCreate(BaseModel):
    email: str = Field(..., min_length=3)
    user_name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    first_name: str = ""
    last_name: str = ""
    auth_type: str | None = None
    role: str | None = None


class MerchantStatusUpdate(BaseModel):
    status: Literal["Active", "Inactive"]


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/")
async def list_merchants(
    cluster: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(100, ge=1, le=500),
    service: MerchantService = Depends(get_service),
):
    """One page of merchants from a cluster."""
    result = await service.get_merchants(cluster, page, size)
    return result.as_dict()


@router.get("/search")
async def search_merchants(
    q: str = Query(..., min_length=1),
    search_type: Literal["merchantId", "email", "merchantStatus"] | None = None,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    """Search by merchant id, email or status (detected from the query when not given)."""
    merchants = await service.search_merchants(q, search_type, cluster)
    return [merchant.as_dict() for merchant in merchants]


@router.get("/{merchant_id}")
async def get_merchant(
    merchant_id: str,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    merchant = await service.get_merchant(merchant_id, cluster)
    if merchant is None:
        raise HTTPException(status_code=404, detail="Merchant not found")
    return merchant.as_dict()


@router.post("/", status_code=201)
async def create_merchant(
    payload: MerchantCreate,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    """Create a merchant account on a cluster."""
    merchant = await service.create_merchant(
        email=payload.email,
        user_name=payload.user_name,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        auth_type=payload.auth_type,
        role=payload.role,
        cluster=cluster,
    )
    return merchant.as_dict()


@router.put("/{merchant_id}")
async def update_merchant(
    merchant_id: str,
    changes: dict[str, Any],
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    merchant = await service.update_merchant(merchant_id, changes, cluster)
    return merchant.as_dict()


@router.post("/{merchant_id}/attributes")
async def update_merchant_attributes(
    merchant_id: str,
    attributes: dict[str, Any],
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    merchant = await service.update_merchant_attributes(merchant_id, attributes, cluster)
    return merchant.as_dict()


@router.post("/{merchant_id}/custom-config")
async def update_custom_config(
    merchant_id: str,
    custom_config: dict[str, Any],
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    return {"result": await service.update_custom_config(merchant_id, custom_config, cluster)}


@router.patch("/{merchant_id}/status")
async def update_merchant_status(
    merchant_id: str,
    payload: MerchantStatusUpdate,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    merchant = await service.update_merchant_status(merchant_id, payload.status, cluster)
    return merchant.as_dict()


@router.delete("/{merchant_id}")
async def delete_merchant(
    merchant_id: str,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    return {"deleted": await service.delete_merchant(merchant_id, cluster)}


@router.get("/{merchant_id}/attributes")
async def get_merchant_attributes(
    merchant_id: str,
    cluster: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    service: MerchantService = Depends(get_service),
):
    result = await service.get_merchant_attributes(merchant_id, cluster, page, size)
    return result.as_dict()


@router.get("/{merchant_id}/channels")
async def get_merchant_channels(
    merchant_id: str,
    cluster: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    service: MerchantService = Depends(get_service),
):
    result = await service.get_merchant_channels(merchant_id, cluster, page, size)
    return result.as_dict()
