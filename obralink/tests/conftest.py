import os
import subprocess
import tempfile
from pathlib import Path

import pytest
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url

_default_test_db = Path(tempfile.gettempdir()) / "obralink_test.db"
TEST_DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{_default_test_db}")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from obralink import database
from obralink.models import GeneralContractor, Machinery, Project, Subcontractor, Worker
from obralink.models.worker import worker_project_assignments


def _ensure_database_exists(database_url: str) -> None:
    url = make_url(database_url)

    if url.drivername.startswith("sqlite"):
        # Fresh file per session; alembic recreates the schema.
        if url.database and Path(url.database).exists():
            Path(url.database).unlink()
        return

    if not url.drivername.startswith("postgresql"):
        return

    db_name = url.database
    admin_url = url.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            ).scalar()
            if not exists:
                safe_db_name = db_name.replace('"', '""')
                conn.execute(text(f'CREATE DATABASE "{safe_db_name}"'))
    finally:
        admin_engine.dispose()


def _clear_tables() -> None:
    with database.engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            rows = conn.execute(
                text(
                    """
                    SELECT tablename
                    FROM pg_tables
                    WHERE schemaname = 'public'
                      AND tablename <> 'alembic_version'
                    """
                )
            ).fetchall()

            table_names = [row[0] for row in rows]
            if table_names:
                quoted = ", ".join([f'"public"."{name}"' for name in table_names])
                conn.execute(text(f"TRUNCATE TABLE {quoted} RESTART IDENTITY CASCADE"))
            return

        for table in reversed(database.Base.metadata.sorted_tables):
            conn.execute(table.delete())


def is_postgresql() -> bool:
    return database.engine.dialect.name == "postgresql"


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database() -> None:
    database.engine.dispose()
    _ensure_database_exists(TEST_DATABASE_URL)

    env = os.environ.copy()
    env["DATABASE_URL"] = TEST_DATABASE_URL

    subprocess.run(
        ["alembic", "upgrade", "head"],
        check=True,
        cwd=Path(__file__).resolve().parents[2],
        env=env,
    )

    database.configure_database()


@pytest.fixture(scope="function", autouse=True)
def _clean_tables_between_tests():
    _clear_tables()
    yield
    _clear_tables()


@pytest.fixture
def make_general_contractor():
    def _make(name: str = "Constructora Norte") -> GeneralContractor:
        db = database.SessionLocal()
        try:
            row = GeneralContractor(name=name)
            db.add(row)
            db.commit()
            return row
        finally:
            db.close()

    return _make


@pytest.fixture
def make_subcontractor():
    def _make(name: str = "Estructuras Sur", clients=()) -> Subcontractor:
        db = database.SessionLocal()
        try:
            row = Subcontractor(name=name)
            if clients:
                row.clients = [db.get(GeneralContractor, gc.id) for gc in clients]
            db.add(row)
            db.commit()
            return row
        finally:
            db.close()

    return _make


@pytest.fixture
def make_project(make_general_contractor, make_subcontractor):
    def _make(name: str = "Residencial Las Lomas", general_contractor=None, subcontractor=None) -> Project:
        general_contractor = general_contractor or make_general_contractor()
        subcontractor = subcontractor or make_subcontractor(clients=[general_contractor])

        db = database.SessionLocal()
        try:
            row = Project(
                name=name,
                address="Calle Mayor 1, Madrid",
                general_contractor_id=general_contractor.id,
                subcontractor_id=subcontractor.id,
            )
            db.add(row)
            db.commit()
            return row
        finally:
            db.close()

    return _make


@pytest.fixture
def make_worker():
    def _make(subcontractor_id: str, name: str = "Luis Romero", access_code=None, projects=()) -> Worker:
        db = database.SessionLocal()
        try:
            row = Worker(
                subcontractor_id=subcontractor_id,
                name=name,
                access_code=access_code or f"code-{name.lower().replace(' ', '-')}",
                category="oficial",
            )
            db.add(row)
            db.flush()
            for project in projects:
                db.execute(
                    worker_project_assignments.insert().values(
                        worker_id=row.id, project_id=project.id
                    )
                )
            db.commit()
            db.refresh(row, attribute_names=["projects"])
            return row
        finally:
            db.close()

    return _make


@pytest.fixture
def make_machinery():
    def _make(subcontractor_id: str, name: str = "Grua torre", registration_code: str = "GT-001") -> Machinery:
        db = database.SessionLocal()
        try:
            row = Machinery(
                subcontractor_id=subcontractor_id,
                name=name,
                registration_code=registration_code,
            )
            db.add(row)
            db.commit()
            db.refresh(row, attribute_names=["projects"])
            return row
        finally:
            db.close()

    return _make


@pytest.fixture
def before_first_flush():
    """Run a callback once, right before the given session's first flush."""
    registered = []

    def _register(session, callback):
        fired = []

        def _listener(sess, flush_context, instances):
            if not fired:
                fired.append(True)
                callback()

        event.listen(session, "before_flush", _listener)
        registered.append((session, _listener))

    yield _register

    for session, listener in registered:
        event.remove(session, "before_flush", listener)
