"""Create loan_applications table"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0002_loan_applications"
down_revision = "0001_users"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "loan_applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("loan_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=False),
        sa.Column("employment_status", sa.String(length=100), nullable=False),
        sa.Column("employment_address", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("applied_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("loan_amount > 0", name="ck_loan_app_amount_positive"),
        sa.CheckConstraint("duration >= 1", name="ck_loan_app_duration_positive"),
        sa.CheckConstraint("version >= 1", name="ck_loan_app_version_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'verified')",
            name="ck_loan_app_status",
        ),
    )
    op.create_index("ix_loan_applications_user_id", "loan_applications", ["user_id"])
    op.create_index("ix_loan_applications_status", "loan_applications", ["status"])
    op.create_index("ix_loan_applications_applied_at", "loan_applications", ["applied_at"])


def downgrade() -> None:
    op.drop_index("ix_loan_applications_applied_at", table_name="loan_applications")
    op.drop_index("ix_loan_applications_status", table_name="loan_applications")
    op.drop_index("ix_loan_applications_user_id", table_name="loan_applications")
    op.drop_table("loan_applications")
