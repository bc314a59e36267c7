"""add_daily_reports_and_time_entries

Revision ID: 8e45b2c6d1f0
Revises: 3c1f0a7d92b4
Create Date: 2026-09-14 10:47:03.881620

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8e45b2c6d1f0'
down_revision: Union[str, Sequence[str], None] = '3c1f0a7d92b4'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "daily_reports",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("supervisor_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("attendance_records", sa.JSON(), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("photo_refs", sa.JSON(), nullable=False),
        sa.Column("supervisor_validated", sa.Boolean(), nullable=False),
        sa.Column("supervisor_validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subcontractor_validated", sa.Boolean(), nullable=False),
        sa.Column("subcontractor_validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("general_contractor_validated", sa.Boolean(), nullable=False),
        sa.Column("general_contractor_validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("modified_by_delegate_id", sa.String(), nullable=True),
        sa.Column("modified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("original_attendance_snapshot", sa.JSON(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint("supervisor_validated", name="ck_daily_reports_supervisor_validated"),
        sa.CheckConstraint(
            "NOT subcontractor_validated OR supervisor_validated",
            name="ck_daily_reports_subcontractor_after_supervisor",
        ),
        sa.CheckConstraint(
            "NOT general_contractor_validated OR subcontractor_validated",
            name="ck_daily_reports_general_contractor_after_subcontractor",
        ),
        sa.CheckConstraint(
            "NOT subcontractor_validated OR subcontractor_validated_at IS NOT NULL",
            name="ck_daily_reports_subcontractor_timestamp",
        ),
        sa.CheckConstraint(
            "NOT general_contractor_validated OR general_contractor_validated_at IS NOT NULL",
            name="ck_daily_reports_general_contractor_timestamp",
        ),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_daily_reports_project_id", "daily_reports", ["project_id"])
    op.create_index("ix_daily_reports_report_date", "daily_reports", ["report_date"])
    op.create_index("ix_daily_reports_supervisor_id", "daily_reports", ["supervisor_id"])
    op.create_index(
        "ix_daily_reports_project_date", "daily_reports", ["project_id", "report_date"]
    )

    op.create_table(
        "time_entries",
        sa.Column("time_entry_id", sa.String(), nullable=False),
        sa.Column("worker_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["worker_id"], ["workers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("time_entry_id"),
    )
    op.create_index("ix_time_entries_time_entry_id", "time_entries", ["time_entry_id"])
    op.create_index("ix_time_entries_worker_id", "time_entries", ["worker_id"])
    op.create_index("ix_time_entries_project_id", "time_entries", ["project_id"])
    op.create_index("ix_time_entries_status", "time_entries", ["status"])
    op.create_index(
        "uq_time_entries_active",
        "time_entries",
        ["worker_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("uq_time_entries_active", table_name="time_entries")
    op.drop_index("ix_time_entries_status", table_name="time_entries")
    op.drop_index("ix_time_entries_project_id", table_name="time_entries")
    op.drop_index("ix_time_entries_worker_id", table_name="time_entries")
    op.drop_index("ix_time_entries_time_entry_id", table_name="time_entries")
    op.drop_table("time_entries")
    op.drop_index("ix_daily_reports_project_date", table_name="daily_reports")
    op.drop_index("ix_daily_reports_supervisor_id", table_name="daily_reports")
    op.drop_index("ix_daily_reports_report_date", table_name="daily_reports")
    op.drop_index("ix_daily_reports_project_id", table_name="daily_reports")
    op.drop_table("daily_reports")
