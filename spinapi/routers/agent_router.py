from fastapi import APIRouter, Depends

from spinapi.deps import get_agent_key_service
from spinapi.schemas.auth import AgentKeyValidateRequest, AgentKeyValidateResponse
from spinapi.services.agent_key_service import AgentKeyService

router = APIRouter(prefix="/agent", tags=["agent"])


@router.post("/keys/validate", response_model=AgentKeyValidateResponse)
async def validate_agent_key(
    payload: AgentKeyValidateRequest,
    agent_key_service: AgentKeyService = Depends(get_agent_key_service),
) -> AgentKeyValidateResponse:
    """게임 서버가 로그인 전에 키 상태를 확인"""
    key = agent_key_service.validate_key(payload.key)
    if key is None:
        return AgentKeyValidateResponse(valid=False)
    return AgentKeyValidateResponse(
        valid=True, name=key.name, user_id=key.user_id, expires_at=key.expires_at
    )
