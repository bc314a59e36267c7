from sqlalchemy import inspect, text

REPORT_GUARD_DDL = """
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


def table_exists(engine, table_name: str) -> bool:
    if engine is None:
        return False
    return inspect(engine).has_table(table_name)


def install_daily_report_guards(engine) -> None:
    """
    Postgres-only: install triggers that refuse to change attendance on a
    locked report, revoke a validation stage, or delete a report.
    Safe to run multiple times (idempotent).
    """
    if engine is None:
        return

    # Only apply to PostgreSQL
    dialect = getattr(engine, "dialect", None)
    if dialect is None or getattr(dialect, "name", "") != "postgresql":
        return

    if not table_exists(engine, "daily_reports"):
        return

    with engine.begin() as conn:
        conn.execute(text(REPORT_GUARD_DDL))
