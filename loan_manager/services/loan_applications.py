from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from loan_manager.core.errors import ForbiddenError, InvalidArgumentError, NotFoundError
from loan_manager.core.logging import get_audit_logger
from loan_manager.models.loan_application import LoanApplication, LoanStatus
from loan_manager.schemas.loan import LoanApplicationCreate
from loan_manager.services import authz

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()

STATUS_FILTER_ALL = "all"


async def create_application(
    db: AsyncSession,
    user_id: str,
    payload: LoanApplicationCreate,
) -> LoanApplication:
    application = LoanApplication(
        user_id=user_id,
        full_name=payload.full_name,
        loan_amount=payload.loan_amount,
        duration=payload.duration,
        purpose=payload.purpose,
        employment_status=payload.employment_status,
        employment_address=payload.employment_address,
        status=LoanStatus.PENDING.value,
        applied_at=datetime.now(timezone.utc),
    )
    db.add(application)
    try:
        await db.flush()
        await db.commit()
    except (IntegrityError, DBAPIError) as exc:
        await db.rollback()
        logger.warning("Store rejected loan application for %s: %s", user_id, exc)
        raise InvalidArgumentError("Failed to submit loan application") from exc
    await db.refresh(application)
    logger.info("Loan application %s created for %s", application.id, user_id)
    return application


async def list_for_user(db: AsyncSession, user_id: str) -> list[LoanApplication]:
    stmt = (
        select(LoanApplication)
        .where(LoanApplication.user_id == user_id)
        .order_by(LoanApplication.applied_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_for_caller(db: AsyncSession, user_id: str, caller_id: str) -> list[LoanApplication]:
    """List another user's applications; the caller must be that user or an admin."""
    if caller_id != user_id and not await authz.is_admin(db, caller_id):
        raise ForbiddenError(
            "Not authorized to view these loan applications",
            details={"user_id": user_id},
        )
    return await list_for_user(db, user_id)


async def get_application(db: AsyncSession, loan_id: UUID) -> LoanApplication:
    stmt = select(LoanApplication).where(LoanApplication.id == loan_id)
    application = (await db.execute(stmt)).scalar_one_or_none()
    if application is None:
        raise NotFoundError("Loan not found", details={"loan_id": str(loan_id)})
    return application


def normalize_status_filter(status: str | None) -> str | None:
    if status is None:
        return None
    value = status.strip().lower()
    if not value or value == STATUS_FILTER_ALL:
        return None
    if value not in LoanStatus._value2member_map_:
        raise InvalidArgumentError(
            "Invalid status filter",
            details={"status": status, "allowed": [s.value for s in LoanStatus] + [STATUS_FILTER_ALL]},
        )
    return value


async def list_admin_applications(
    db: AsyncSession,
    *,
    page: int,
    limit: int,
    status: str | None = None,
) -> tuple[list[LoanApplication], int]:
    conditions = []
    status_value = normalize_status_filter(status)
    if status_value:
        conditions.append(LoanApplication.status == status_value)

    count_stmt = select(func.count()).select_from(LoanApplication).where(*conditions)
    total = int((await db.execute(count_stmt)).scalar_one())

    stmt = (
        select(LoanApplication)
        .where(*conditions)
        .order_by(LoanApplication.applied_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    applications = (await db.execute(stmt)).scalars().all()
    return list(applications), total


async def delete_application(db: AsyncSession, loan_id: UUID, caller_id: str) -> None:
    application = await get_application(db, loan_id)
    if application.user_id != caller_id and not await authz.is_admin(db, caller_id):
        raise ForbiddenError(
            "Not authorized to delete this loan application",
            details={"loan_id": str(loan_id)},
        )

    await db.delete(application)
    try:
        await db.flush()
    except StaleDataError as exc:
        # Removed or rewritten by another request after we loaded it
        await db.rollback()
        raise NotFoundError("Loan not found", details={"loan_id": str(loan_id)}) from exc
    await db.commit()
    audit_logger.info(
        "loan_application.deleted",
        extra={
            "event": {
                "loan_id": str(loan_id),
                "owner_id": application.user_id,
                "actor_id": caller_id,
                "status": application.status,
            }
        },
    )
