"""
Users & Visitors Router — console users and visitor activity per cluster.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from api.deps import get_service
from merchant_api import MerchantService

router = APIRouter(prefix="/api/v1", tags=["users"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class UserInvite(BaseModel):
    email: str = Field(..., min_length=3)
    role: str = "USER"
    auth_type: str = "PG"


# ─── Users ──────────────────────────────────────────────────────────────────


@router.get("/users")
async def list_cluster_users(
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    """Every user of a cluster."""
    users = await service.get_users(None, cluster)
    return [user.as_dict() for user in users]


@router.get("/merchants/{merchant_id}/users")
async def list_merchant_users(
    merchant_id: str,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    users = await service.get_users(merchant_id, cluster)
    return [user.as_dict() for user in users]


@router.post("/merchants/{merchant_id}/users/invite")
async def invite_user(
    merchant_id: str,
    payload: UserInvite,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    result = await service.invite_user(merchant_id, payload.email, payload.role, payload.auth_type, cluster)
    return {"result": result}


@router.put("/users")
async def update_user_account(
    user: dict[str, Any],
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    return {"result": await service.update_user_account(user, cluster)}


# ─── Visitors ───────────────────────────────────────────────────────────────


@router.get("/visitors")
async def list_cluster_visitors(
    cluster: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(50, ge=1, le=500),
    start_date: str | None = None,
    end_date: str | None = None,
    service: MerchantService = Depends(get_service),
):
    """Visitors across the cluster; defaults to the last 30 days."""
    result = await service.get_cluster_visitors(cluster, page, size, start_date, end_date)
    return result.as_dict()


@router.get("/merchants/{merchant_id}/visitors")
async def list_merchant_visitors(
    merchant_id: str,
    cluster: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=500),
    start_date: str | None = None,
    end_date: str | None = None,
    service: MerchantService = Depends(get_service),
):
    result = await service.get_raw_visitors(merchant_id, cluster, page, size, start_date, end_date)
    return result.as_dict()
