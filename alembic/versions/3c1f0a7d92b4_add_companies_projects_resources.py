"""add_companies_projects_resources

Revision ID: 3c1f0a7d92b4
Revises:
Create Date: 2026-09-14 10:12:41.204519

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a7d92b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "general_contractors",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "subcontractors",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "subcontractor_clients",
        sa.Column("subcontractor_id", sa.String(), nullable=False),
        sa.Column("general_contractor_id", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["subcontractor_id"], ["subcontractors.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["general_contractor_id"], ["general_contractors.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("subcontractor_id", "general_contractor_id"),
    )

    op.create_table(
        "projects",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=False),
        sa.Column("general_contractor_id", sa.String(), nullable=False),
        sa.Column("subcontractor_id", sa.String(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("client_name", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR end_date >= start_date",
            name="ck_projects_end_after_start",
        ),
        sa.ForeignKeyConstraint(["general_contractor_id"], ["general_contractors.id"]),
        sa.ForeignKeyConstraint(["subcontractor_id"], ["subcontractors.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_projects_general_contractor_id", "projects", ["general_contractor_id"])
    op.create_index("ix_projects_subcontractor_id", "projects", ["subcontractor_id"])

    op.create_table(
        "workers",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("subcontractor_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("access_code", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["subcontractor_id"], ["subcontractors.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "subcontractor_id", "access_code", name="uq_workers_subcontractor_access_code"
        ),
    )
    op.create_index("ix_workers_subcontractor_id", "workers", ["subcontractor_id"])

    op.create_table(
        "worker_project_assignments",
        sa.Column("worker_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["worker_id"], ["workers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("worker_id", "project_id"),
    )

    op.create_table(
        "machinery",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("subcontractor_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("registration_code", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["subcontractor_id"], ["subcontractors.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_machinery_subcontractor_id", "machinery", ["subcontractor_id"])

    op.create_table(
        "machinery_project_assignments",
        sa.Column("machinery_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["machinery_id"], ["machinery.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("machinery_id", "project_id"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("machinery_project_assignments")
    op.drop_index("ix_machinery_subcontractor_id", table_name="machinery")
    op.drop_table("machinery")
    op.drop_table("worker_project_assignments")
    op.drop_index("ix_workers_subcontractor_id", table_name="workers")
    op.drop_table("workers")
    op.drop_index("ix_projects_subcontractor_id", table_name="projects")
    op.drop_index("ix_projects_general_contractor_id", table_name="projects")
    op.drop_table("projects")
    op.drop_table("subcontractor_clients")
    op.drop_table("subcontractors")
    op.drop_table("general_contractors")
