"""Administrative status transitions for loan applications.

Transitions are caller-supplied. The only forbidden moves are out of
``verified`` (repaid) into ``approved`` or ``rejected``; everything else,
including reverting an approval back to ``pending``, is allowed so admins can
correct mistakes.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from loan_manager.core.errors import ConflictError, InvalidArgumentError, InvalidTransitionError
from loan_manager.core.logging import get_audit_logger
from loan_manager.models.loan_application import LoanApplication, LoanStatus
from loan_manager.services import loan_applications

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()

FORBIDDEN_TRANSITIONS: frozenset[tuple[LoanStatus, LoanStatus]] = frozenset(
    {
        (LoanStatus.VERIFIED, LoanStatus.APPROVED),
        (LoanStatus.VERIFIED, LoanStatus.REJECTED),
    }
)


def parse_status(value: Any) -> LoanStatus:
    try:
        return LoanStatus(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(
            "Invalid status value",
            details={"status": value, "allowed": [status.value for status in LoanStatus]},
        ) from exc


def check_transition(current: str | LoanStatus, target: LoanStatus) -> None:
    current_status = LoanStatus(current)
    if (current_status, target) in FORBIDDEN_TRANSITIONS:
        raise InvalidTransitionError(
            f"Cannot change loan status from {current_status.value} to {target.value}",
            details={"from": current_status.value, "to": target.value},
        )


async def set_status(db: AsyncSession, loan_id: UUID, new_status: Any) -> LoanApplication:
    target = parse_status(new_status)
    application = await loan_applications.get_application(db, loan_id)
    previous = application.status
    check_transition(previous, target)

    application.status = target.value
    db.add(application)
    try:
        # version_id_col turns this flush into UPDATE ... WHERE version = :loaded
        await db.flush()
    except StaleDataError as exc:
        await db.rollback()
        logger.warning("Concurrent update detected for loan %s", loan_id)
        raise ConflictError(
            "The loan was updated by another request. Please refresh and retry.",
            code="concurrent_update",
            details={"loan_id": str(loan_id)},
        ) from exc
    await db.commit()
    await db.refresh(application)

    audit_logger.info(
        "loan_application.status_changed",
        extra={"event": {"loan_id": str(loan_id), "from": previous, "to": target.value}},
    )
    return application
