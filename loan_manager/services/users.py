from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from loan_manager.core.errors import ConflictError
from loan_manager.core.settings import Settings
from loan_manager.models.user import User
from loan_manager.services import authz, identity_provider

logger = logging.getLogger(__name__)


async def upsert_user(
    db: AsyncSession,
    profile: identity_provider.ProviderProfile,
    *,
    is_admin: bool,
) -> User:
    values = {"name": profile.name, "email": profile.email, "is_admin": is_admin}
    stmt = (
        insert(User)
        .values(provider_id=profile.provider_id, **values)
        .on_conflict_do_update(
            index_elements=[User.provider_id],
            set_={**values, "updated_at": func.now()},
        )
        .returning(User)
        .execution_options(populate_existing=True)
    )
    try:
        result = await db.execute(stmt)
        user = result.scalar_one()
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(
            "Email address is already linked to another account",
            details={"email": profile.email},
        ) from exc
    return user


async def sync_user(db: AsyncSession, provider_id: str, settings: Settings) -> User:
    """Mirror the provider profile into the local users table."""
    profile = await identity_provider.fetch_user_profile(provider_id, settings)
    admin = authz.is_admin_email(profile.email, settings.admin_emails)
    user = await upsert_user(db, profile, is_admin=admin)
    logger.info("User %s synced from identity provider (admin=%s)", provider_id, user.is_admin)
    return user


async def list_users(db: AsyncSession, *, page: int, limit: int) -> tuple[list[User], int]:
    total = int((await db.execute(select(func.count()).select_from(User))).scalar_one())
    stmt = select(User).order_by(User.name.asc()).offset((page - 1) * limit).limit(limit)
    users = (await db.execute(stmt)).scalars().all()
    return list(users), total
