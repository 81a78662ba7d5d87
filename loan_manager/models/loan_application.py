import uuid
from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from loan_manager.db.base import Base


class LoanStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    VERIFIED = "verified"


class LoanApplication(Base):
    __tablename__ = "loan_applications"
    __table_args__ = (
        CheckConstraint("loan_amount > 0", name="ck_loan_app_amount_positive"),
        CheckConstraint("duration >= 1", name="ck_loan_app_duration_positive"),
        CheckConstraint("version >= 1", name="ck_loan_app_version_positive"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'verified')",
            name="ck_loan_app_status",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Provider identifier of the applicant; users.provider_id is not a hard FK
    user_id = Column(String(255), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    loan_amount = Column(Numeric(14, 2), nullable=False)
    duration = Column(Integer, nullable=False)
    purpose = Column(Text, nullable=False)
    employment_status = Column(String(100), nullable=False)
    employment_address = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=LoanStatus.PENDING.value, index=True)
    version = Column(Integer, nullable=False, default=1)
    applied_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)

    __mapper_args__ = {"version_id_col": version}
