from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from loan_manager.api import deps
from loan_manager.core.settings import Settings, get_settings
from loan_manager.schemas.auth import VerifyResponse
from loan_manager.services import users

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get(
    "/verify",
    response_model=VerifyResponse,
    summary="Sync the caller's identity-provider profile into the local store",
)
async def verify(
    provider_id: str = Depends(deps.get_current_identity),
    db: AsyncSession = Depends(deps.get_db_session),
    settings: Settings = Depends(get_settings),
) -> VerifyResponse:
    user = await users.sync_user(db, provider_id, settings)
    return VerifyResponse(
        user_id=provider_id,
        email=user.email,
        name=user.name,
        is_admin=user.is_admin,
    )
