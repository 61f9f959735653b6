"""
Session Router — platform credential state, token install, login.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.deps import get_service, get_session
from core.security import CredentialState, SessionContext
from merchant_api import MerchantService, WriteOperationError

router = APIRouter(prefix="/api/v1/session", tags=["session"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class TokenInstall(BaseModel):
    token: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    user_name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    cluster: str | None = None


class SessionResponse(BaseModel):
    state: CredentialState
    authenticated: bool


def _describe(session: SessionContext) -> SessionResponse:
    return SessionResponse(state=session.state, authenticated=session.state is CredentialState.VALID)


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("", response_model=SessionResponse)
async def get_session_state(session: SessionContext = Depends(get_session)):
    """Current credential state (absent, valid or expired)."""
    return _describe(session)


@router.put("", response_model=SessionResponse)
async def install_token(
    payload: TokenInstall,
    session: SessionContext = Depends(get_session),
):
    """Install an externally issued platform token."""
    session.install(payload.token)
    return _describe(session)


@router.delete("", response_model=SessionResponse)
async def logout(session: SessionContext = Depends(get_session)):
    session.clear()
    return _describe(session)


@router.post("/login", response_model=SessionResponse)
async def login(
    payload: LoginRequest,
    service: MerchantService = Depends(get_service),
):
    """Exchange user credentials for a platform token."""
    try:
        await service.authenticate(payload.user_name, payload.password, payload.cluster)
    except WriteOperationError as exc:
        if exc.status_code in (400, 401, 403):
            raise HTTPException(status_code=401, detail="Invalid credentials") from exc
        raise
    return _describe(service.session)
