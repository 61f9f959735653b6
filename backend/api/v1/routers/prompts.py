"""
Prompts Router — prompt lab and knowledge bases of a merchant.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from api.deps import get_service
from merchant_api import MerchantService
from merchant_api.models import Prompt

router = APIRouter(prefix="/api/v1/merchants/{merchant_id}", tags=["prompts"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class PromptWrite(BaseModel):
    title: str = Field(..., min_length=1)
    prompt_text: str = Field(..., min_length=1)
    type: str = "Standard"
    model_id: str | int | None = None
    request_params: dict[str, Any] = Field(default_factory=dict)
    knowledge_base_id: str | int | None = None
    media: list[Any] = Field(default_factory=list)

    def to_prompt(self, merchant_id: str, prompt_id: str = "") -> Prompt:
        return Prompt(
            id=prompt_id,
            merchant_id=merchant_id,
            prompt_text=self.prompt_text,
            title=self.title,
            type=self.type,
            model_id=self.model_id,
            request_params=self.request_params,
            knowledge_base_id=self.knowledge_base_id,
        )


class PromptExecute(BaseModel):
    prompt_title: str
    request_params: dict[str, Any] = Field(default_factory=dict)


class PromptRun(BaseModel):
    prompt_text: str = Field(..., min_length=1)
    request_params: dict[str, Any] = Field(default_factory=dict)
    model_id: str | int | None = None


# ─── Prompts ────────────────────────────────────────────────────────────────


@router.get("/prompts")
async def list_prompts(
    merchant_id: str,
    cluster: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    service: MerchantService = Depends(get_service),
):
    result = await service.get_prompts(merchant_id, cluster, page, size)
    return result.as_dict()


@router.post("/prompts", status_code=201)
async def create_prompt(
    merchant_id: str,
    payload: PromptWrite,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    result = await service.create_prompt(payload.to_prompt(merchant_id), cluster, payload.media)
    return {"result": result}


@router.put("/prompts/{prompt_id}")
async def update_prompt(
    merchant_id: str,
    prompt_id: str,
    payload: PromptWrite,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    result = await service.update_prompt(payload.to_prompt(merchant_id, prompt_id), cluster, payload.media)
    return {"result": result}


@router.delete("/prompts/{prompt_id}")
async def delete_prompt(
    merchant_id: str,
    prompt_id: str,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    return {"result": await service.delete_prompt(merchant_id, prompt_id, cluster)}


@router.post("/prompts/{prompt_id}/execute")
async def execute_prompt(
    merchant_id: str,
    prompt_id: str,
    payload: PromptExecute,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    result = await service.execute_prompt(
        merchant_id, prompt_id, payload.prompt_title, payload.request_params, cluster
    )
    return {"result": result}


@router.post("/prompts/run")
async def run_prompt(
    merchant_id: str,
    payload: PromptRun,
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    """Render ``$param`` placeholders and generate a completion."""
    result = await service.run_prompt(
        merchant_id, payload.prompt_text, payload.request_params, payload.model_id, cluster
    )
    return {"result": result}


# ─── Knowledge bases ────────────────────────────────────────────────────────


@router.get("/knowledge-bases")
async def list_knowledge_bases(
    merchant_id: str,
    cluster: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    service: MerchantService = Depends(get_service),
):
    result = await service.get_knowledge_bases(merchant_id, cluster, page, size)
    return result.as_dict()


@router.post("/knowledge-bases", status_code=201)
async def add_knowledge_base(
    merchant_id: str,
    payload: dict[str, Any],
    cluster: str | None = None,
    service: MerchantService = Depends(get_service),
):
    result = await service.add_knowledge_base({"merchantId": merchant_id, **payload}, cluster)
    return {"result": result}
