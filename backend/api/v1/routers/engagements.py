"""
Engagements Router — engagement list with preview links, update and removal.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from api.deps import get_service
from merchant_api import MerchantService

router = APIRouter(prefix="/api/v1/merchants/{merchant_id}/engagements", tags=["engagements"])


@router.get("/")
async def list_engagements(
    merchant_id: str,
    cluster: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    service: MerchantService = Depends(get_service),
):
    result = await service.get_engagements(merchant_id, cluster, page, size)
    return result.as_dict()


@router.post("/update")
async def update_engagement(
    merchant_id: str,
    payload: dict[str, Any],
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    result = await service.update_engagement({"merchantId": merchant_id, **payload}, cluster)
    return {"result": result}


@router.post("/remove")
async def remove_engagement(
    merchant_id: str,
    payload: dict[str, Any],
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    result = await service.delete_engagement({"merchantId": merchant_id, **payload}, cluster)
    return {"result": result}
