from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loan_manager.models.user import User


async def get_user_by_provider_id(db: AsyncSession, provider_id: str) -> User | None:
    stmt = select(User).where(User.provider_id == provider_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def is_admin(db: AsyncSession, provider_id: str) -> bool:
    user = await get_user_by_provider_id(db, provider_id)
    return bool(user and user.is_admin)


def is_admin_email(email: str, admin_emails: list[str]) -> bool:
    return email.strip().lower() in admin_emails
