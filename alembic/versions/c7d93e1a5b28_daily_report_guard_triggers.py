"""daily_report_guard_triggers

Revision ID: c7d93e1a5b28
Revises: 8e45b2c6d1f0
Create Date: 2026-09-15 09:03:17.552048

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = 'c7d93e1a5b28'
down_revision: Union[str, Sequence[str], None] = '8e45b2c6d1f0'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Postgres-only; SQLite databases rely on the service-level checks.
    if op.get_bind().dialect.name != "postgresql":
        return

    op.execute(
        """
        CREATE OR REPLACE FUNCTION daily_reports_guard_mutation()
        RETURNS trigger AS $$
        BEGIN
            IF TG_OP = 'DELETE' THEN
                RAISE EXCEPTION 'daily_reports rows cannot be deleted';
            END IF;

            IF (OLD.supervisor_validated AND NOT NEW.supervisor_validated)
                OR (OLD.subcontractor_validated AND NOT NEW.subcontractor_validated)
                OR (OLD.general_contractor_validated AND NOT NEW.general_contractor_validated) THEN
                RAISE EXCEPTION 'daily_reports validation stages cannot be revoked';
            END IF;

            IF (OLD.subcontractor_validated OR OLD.general_contractor_validated)
                AND (NEW.attendance_records::jsonb IS DISTINCT FROM OLD.attendance_records::jsonb) THEN
                RAISE EXCEPTION 'daily_reports attendance is locked once validated by the subcontractor';
            END IF;

            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;

        DROP TRIGGER IF EXISTS trg_daily_reports_guard_update ON daily_reports;
        CREATE TRIGGER trg_daily_reports_guard_update
        BEFORE UPDATE ON daily_reports
        FOR EACH ROW
        EXECUTE FUNCTION daily_reports_guard_mutation();

        DROP TRIGGER IF EXISTS trg_daily_reports_guard_delete ON daily_reports;
        CREATE TRIGGER trg_daily_reports_guard_delete
        BEFORE DELETE ON daily_reports
        FOR EACH ROW
        EXECUTE FUNCTION daily_reports_guard_mutation();
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    if op.get_bind().dialect.name != "postgresql":
        return

    op.execute("DROP TRIGGER IF EXISTS trg_daily_reports_guard_delete ON daily_reports;")
    op.execute("DROP TRIGGER IF EXISTS trg_daily_reports_guard_update ON daily_reports;")
    op.execute("DROP FUNCTION IF EXISTS daily_reports_guard_mutation();")
