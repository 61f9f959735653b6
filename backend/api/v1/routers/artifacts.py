"""
AI Artifacts Router — artifact list and edits for a merchant.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from api.deps import get_service
from merchant_api import MerchantService
from merchant_api.base import NormalizeContext
from merchant_api.normalizers import normalize_ai_artifact

router = APIRouter(prefix="/api/v1/merchants/{merchant_id}/artifacts", tags=["artifacts"])


@router.get("/")
async def list_artifacts(
    merchant_id: str,
    cluster: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=200),
    service: MerchantService = Depends(get_service),
):
    result = await service.get_ai_artifacts(merchant_id, cluster, page, size)
    return result.as_dict()


@router.put("/{artifact_id}")
async def update_artifact(
    merchant_id: str,
    artifact_id: str,
    payload: dict[str, Any],
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    """Accepts the artifact in its upstream shape; it is normalized before being sent back."""
    artifact = normalize_ai_artifact(
        {**payload, "id": artifact_id},
        NormalizeContext(cluster=cluster, merchant_id=merchant_id),
    )
    result = await service.update_ai_artifact(artifact, cluster)
    return {"artifact": artifact.as_dict(), "result": result}


@router.delete("/{artifact_id}")
async def delete_artifact(
    merchant_id: str,
    artifact_id: str,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    return {"result": await service.delete_ai_artifact(artifact_id, cluster)}
