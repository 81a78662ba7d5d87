from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from loan_manager.core import security
from loan_manager.core.context import set_user_id
from loan_manager.db.session import get_db
from loan_manager.models.user import User
from loan_manager.services import authz

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthenticated(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_db_session(db: AsyncSession = Depends(get_db)) -> AsyncSession:
    return db


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Resolve the caller's provider identifier from the bearer token."""
    if credentials is None or not credentials.credentials:
        raise _unauthenticated("Not authenticated")
    try:
        payload = await security.verify_session_token(credentials.credentials)
    except security.VerificationKeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token verification is not configured",
        ) from exc
    except ValueError as exc:
        raise _unauthenticated(str(exc)) from exc
    provider_id = payload["sub"]
    set_user_id(provider_id)
    return provider_id


async def require_admin(
    provider_id: str = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    user = await authz.get_user_by_provider_id(db, provider_id)
    if user is None or not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized - Admin access required",
        )
    return user
