"""job ticket records

Revision ID: 0001_job_ticket_records
Revises: 
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


revision = "0001_job_ticket_records"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "job_ticket_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("job_name", sa.String(length=255), nullable=False),
        sa.Column("ticket_key", sa.String(length=64), nullable=False),
        sa.Column("last_build_number", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_job_ticket_records"),
        sa.UniqueConstraint("job_name", name="uq_job_ticket_records_job_name"),
    )
    op.create_index(op.f("ix_job_ticket_records_job_name"), "job_ticket_records", ["job_name"], unique=True)


def downgrade() -> None:
    op.drop_index(op.f("ix_job_ticket_records_job_name"), table_name="job_ticket_records")
    op.drop_table("job_ticket_records")
