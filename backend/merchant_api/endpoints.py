"""
Cluster endpoint catalogue.

Paths are relative to the cluster base URL. Legacy services (curo
merchant admin, chimes, model-service, aiservices) expect the token as
an ``access_token`` query parameter; the paginated v2 resources take it
as a bearer header.
"""

from __future__ import annotations

from merchant_api.base import CredentialPlacement, Endpoint, PagingStyle

QUERY = CredentialPlacement.QUERY
HEADER = CredentialPlacement.HEADER


# ── Session & health ──────────────────────────────────────────────────────

PING = Endpoint("ping", "GET", "ping", credential=CredentialPlacement.NONE)
AUTH_TOKEN = Endpoint("auth_token", "POST", "ecloudbl/auth/token", credential=CredentialPlacement.NONE)

# ── Merchants ─────────────────────────────────────────────────────────────

GET_MERCHANTS = Endpoint(
    "get_merchants", "GET", "curo/merchant/getMerchants", credential=QUERY, paging=PagingStyle.QUERY_PAGE_SIZE
)
GET_MERCHANT_BY_ID = Endpoint("get_merchant_by_id", "GET", "curo/merchant/merchantId/{merchant_id}", credential=QUERY)
SEARCH_MERCHANTS = Endpoint("search_merchants", "GET", "merchants/search", credential=QUERY)
CREATE_ACCOUNT = Endpoint("create_account", "PUT", "curo/merchant/createAccount", credential=QUERY)
UPDATE_MERCHANT = Endpoint("update_merchant", "PUT", "merchants/{merchant_id}", credential=QUERY)
UPDATE_MERCHANT_ATTRIBUTES = Endpoint(
    "update_merchant_attributes", "POST", "chimes/updateMerchantAttributes", credential=QUERY
)
UPDATE_MERCHANT_STATUS = Endpoint(
    "update_merchant_status", "PATCH", "merchants/{merchant_id}/status", credential=QUERY
)
DELETE_MERCHANT = Endpoint("delete_merchant", "DELETE", "curo/merchant/deleteMerchant", credential=QUERY)
# Legacy attribute list: one unpaged response per merchant
GET_MERCHANT_ATTRIBUTES = Endpoint(
    "get_merchant_attributes",
    "GET",
    "chimes/getMerchantAttributes",
    credential=QUERY,
)
GET_MERCHANT_CHANNELS = Endpoint(
    "get_merchant_channels",
    "GET",
    "channels/by-merchant/{merchant_id}/paginated",
    credential=HEADER,
    paging=PagingStyle.QUERY_PAGE_SIZE,
)

# ── Prompts & knowledge bases ─────────────────────────────────────────────

# Prompt lab returns every prompt of the merchant in one response
GET_PROMPTS = Endpoint("get_prompts", "POST", "model-service/promptlab/getPrompt", credential=QUERY)
CREATE_PROMPT = Endpoint("create_prompt", "POST", "model-service/promptlab/create", credential=QUERY)
MODIFY_PROMPT = Endpoint(
    "modify_prompt", "PUT", "model-service/promptlab/modify/{merchant_id}/{prompt_id}", credential=QUERY
)
REMOVE_PROMPT = Endpoint(
    "remove_prompt", "DELETE", "model-service/promptlab/remove/{merchant_id}/{prompt_id}", credential=QUERY
)
EXECUTE_PROMPT = Endpoint(
    "execute_prompt", "POST", "model-service/api/v1/promptlab/executePrompt", credential=QUERY
)
RUN_PROMPT = Endpoint("run_prompt", "POST", "aiservices/api/v1/genAI/generate", credential=QUERY)

GET_KNOWLEDGE_BASES = Endpoint(
    "get_knowledge_bases",
    "POST",
    "model-service/knowledgeBase/getKnowledgeBaseDetails",
    credential=QUERY,
    paging=PagingStyle.BODY_INDEX_COUNT,
)
ADD_KNOWLEDGE_BASE = Endpoint("add_knowledge_base", "POST", "knowledge-bases/create", credential=QUERY)

# ── AI artifacts ──────────────────────────────────────────────────────────

GET_AI_ARTIFACTS = Endpoint(
    "get_ai_artifacts",
    "GET",
    "ai-artifacts/by-merchant/{merchant_id}/paginated",
    credential=HEADER,
    paging=PagingStyle.QUERY_PAGE_SIZE,
)
UPDATE_AI_ARTIFACT = Endpoint("update_ai_artifact", "PUT", "chimes/api/aiArtifact/{artifact_id}", credential=QUERY)
DELETE_AI_ARTIFACT = Endpoint("delete_ai_artifact", "DELETE", "chimes/api/aiArtifact/{artifact_id}", credential=QUERY)

# ── Engagements ───────────────────────────────────────────────────────────

GET_ENGAGEMENTS = Endpoint(
    "get_engagements",
    "GET",
    "engagements/by-merchant/{merchant_id}/paginated",
    credential=HEADER,
    paging=PagingStyle.QUERY_PAGE_SIZE,
)
UPDATE_ENGAGEMENT = Endpoint("update_engagement", "POST", "chimes/updateEngagement", credential=QUERY)
REMOVE_ENGAGEMENT = Endpoint("remove_engagement", "POST", "chimes/removeEngagement", credential=QUERY)

# ── Users & visitors ──────────────────────────────────────────────────────

GET_USERS = Endpoint("get_users", "GET", "curo/userDetails", credential=HEADER)
INVITE_USER = Endpoint(
    "invite_user",
    "GET",
    "curo/merchant/user/register/{merchant_id}/{email}/{role}/{auth_type}",
    credential=HEADER,
)
UPDATE_USER_ACCOUNT = Endpoint("update_user_account", "PUT", "curo/updateUserAccount", credential=HEADER)

GET_VISITORS = Endpoint(
    "get_visitors", "GET", "chimes/visitorsList", credential=QUERY, paging=PagingStyle.QUERY_INDEX_COUNT
)
