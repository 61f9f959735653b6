"""
Clusters Router — cluster catalogue and reachability.
"""

from fastapi import APIRouter, Depends

from api.deps import get_service
from merchant_api import MerchantService

router = APIRouter(prefix="/api/v1/clusters", tags=["clusters"])


@router.get("/")
async def list_clusters(service: MerchantService = Depends(get_service)):
    """Configured clusters with the base URL each key resolves to."""
    return [
        {**cluster, "base_url": service.resolver.resolve_base_url(cluster.get("id"))}
        for cluster in service.list_clusters()
    ]


@router.get("/{cluster}/ping")
async def ping_cluster(cluster: str, service: MerchantService = Depends(get_service)):
    return {"cluster": service.resolver.resolve_key(cluster), "reachable": await service.ping(cluster)}
