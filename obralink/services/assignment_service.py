import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from sqlalchemy import Table, delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from obralink.core.enums import ProfessionalCategory, ResourceKind
from obralink.core.errors import CoreError, ErrorKind, Result, invalid, not_found
from obralink.database import SessionLocal
from obralink.models.company import Subcontractor
from obralink.models.machinery import Machinery, machinery_project_assignments
from obralink.models.project import Project
from obralink.models.time_entry import TimeEntry
from obralink.models.worker import Worker, worker_project_assignments

logger = logging.getLogger(__name__)

Resource = Union[Worker, Machinery]


@dataclass(frozen=True)
class _ResourceTables:
    model: type
    links: Table
    resource_column: str
    label: str


_KINDS = {
    ResourceKind.WORKER: _ResourceTables(Worker, worker_project_assignments, "worker_id", "Worker"),
    ResourceKind.MACHINERY: _ResourceTables(
        Machinery, machinery_project_assignments, "machinery_id", "Machinery"
    ),
}


@dataclass(frozen=True)
class AssignmentResult:
    project_id: str
    kind: ResourceKind
    added: int
    already_assigned: int


@dataclass(frozen=True)
class WorkerRegistration:
    worker: Worker
    created: bool


def _tables_for(kind: Union[ResourceKind, str]) -> _ResourceTables:
    return _KINDS[ResourceKind(kind)]


def _link_rows(tables: _ResourceTables, project_id: str, resource_ids: Iterable[str]) -> List[dict]:
    return [{tables.resource_column: rid, "project_id": project_id} for rid in resource_ids]


def _insert_links(db: Session, tables: _ResourceTables, rows: List[dict]) -> int:
    """
    Add links with a single INSERT that skips pairs already present, so
    concurrent assignments never race on a read-modify-write of the set.
    """
    if not rows:
        return 0

    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(tables.links).values(rows).on_conflict_do_nothing()
    elif dialect == "sqlite":
        stmt = sqlite.insert(tables.links).values(rows).on_conflict_do_nothing()
    else:
        raise RuntimeError(f"Unsupported database dialect for assignments: {dialect}")

    result = db.execute(stmt)
    return max(int(result.rowcount or 0), 0)


def _reload_projects(db: Session, resource: Resource) -> Resource:
    db.refresh(resource, attribute_names=["projects"])
    return resource


def assign(
    project_id: str,
    resource_ids: Iterable[str],
    kind: Union[ResourceKind, str] = ResourceKind.WORKER,
    *,
    db: Optional[Session] = None,
) -> Result[AssignmentResult]:
    """
    Link resources to a project. Linking an already linked resource is a
    no-op. Nothing is written unless every resource exists and belongs to the
    project's subcontractor.
    """
    tables = _tables_for(kind)
    ids = list(dict.fromkeys(str(rid) for rid in resource_ids))

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        project = db.get(Project, str(project_id))
        if project is None:
            return not_found("Project", project_id)

        found = db.query(tables.model).filter(tables.model.id.in_(ids)).all() if ids else []
        missing = sorted(set(ids) - {r.id for r in found})
        if missing:
            return not_found(tables.label, ", ".join(missing))

        foreign = sorted(r.id for r in found if r.subcontractor_id != project.subcontractor_id)
        if foreign:
            return invalid(
                f"{tables.label} {', '.join(foreign)} belongs to another subcontractor "
                f"than project {project.id}"
            )

        added = _insert_links(db, tables, _link_rows(tables, project.id, ids))

        if owns_db:
            db.commit()

        logger.info(
            "resources assigned to project",
            extra={
                "project_id": project.id,
                "resource_kind": ResourceKind(kind).value,
                "requested": len(ids),
                "added": added,
            },
        )
        return AssignmentResult(
            project_id=project.id,
            kind=ResourceKind(kind),
            added=added,
            already_assigned=len(ids) - added,
        )
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def unassign(
    project_id: str,
    resource_id: str,
    kind: Union[ResourceKind, str] = ResourceKind.WORKER,
    *,
    db: Optional[Session] = None,
) -> Result[bool]:
    """Returns whether a link was removed; a missing link is not an error."""
    tables = _tables_for(kind)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        if db.get(tables.model, str(resource_id)) is None:
            return not_found(tables.label, resource_id)

        column = tables.links.c[tables.resource_column]
        result = db.execute(
            delete(tables.links).where(
                column == str(resource_id),
                tables.links.c.project_id == str(project_id),
            )
        )
        removed = int(result.rowcount or 0) > 0

        if owns_db:
            db.commit()

        if removed:
            logger.info(
                "resource unassigned from project",
                extra={
                    "project_id": project_id,
                    "resource_id": resource_id,
                    "resource_kind": ResourceKind(kind).value,
                },
            )
        return removed
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def list_by_project(
    project_id: str,
    kind: Union[ResourceKind, str] = ResourceKind.WORKER,
    *,
    db: Optional[Session] = None,
) -> List[Resource]:
    tables = _tables_for(kind)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        column = tables.links.c[tables.resource_column]
        return (
            db.query(tables.model)
            .join(tables.links, column == tables.model.id)
            .filter(tables.links.c.project_id == str(project_id))
            .order_by(tables.model.name.asc(), tables.model.id.asc())
            .all()
        )
    finally:
        if owns_db:
            db.close()


def list_by_subcontractor(
    subcontractor_id: str,
    kind: Union[ResourceKind, str] = ResourceKind.WORKER,
    *,
    db: Optional[Session] = None,
) -> List[Resource]:
    tables = _tables_for(kind)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return (
            db.query(tables.model)
            .filter(tables.model.subcontractor_id == str(subcontractor_id))
            .order_by(tables.model.name.asc(), tables.model.id.asc())
            .all()
        )
    finally:
        if owns_db:
            db.close()


def get_resource(
    resource_id: str,
    kind: Union[ResourceKind, str] = ResourceKind.WORKER,
    *,
    db: Optional[Session] = None,
) -> Optional[Resource]:
    tables = _tables_for(kind)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return db.get(tables.model, str(resource_id))
    finally:
        if owns_db:
            db.close()


def _check_owner_and_project(
    db: Session, subcontractor_id: str, project_id: Optional[str]
) -> Optional[CoreError]:
    if db.get(Subcontractor, str(subcontractor_id)) is None:
        return not_found("Subcontractor", subcontractor_id)

    if project_id is None:
        return None

    project = db.get(Project, str(project_id))
    if project is None:
        return not_found("Project", project_id)
    if project.subcontractor_id != str(subcontractor_id):
        return invalid(f"Project {project_id} is not assigned to subcontractor {subcontractor_id}")
    return None


def create_worker(
    subcontractor_id: str,
    name: str,
    access_code: str,
    category: Optional[Union[ProfessionalCategory, str]] = None,
    project_id: Optional[str] = None,
    *,
    db: Optional[Session] = None,
) -> Result[WorkerRegistration]:
    """
    Register a worker on a subcontractor's roster.

    Access codes are unique per subcontractor: registering a code that is
    already on the roster returns the existing worker (with project_id
    attached) instead of creating a duplicate.

    When two registrations of a new code race, the loser gets a Conflict; a
    caller-owned session then needs a rollback before reuse.
    """
    name = (name or "").strip()
    access_code = (access_code or "").strip()
    if not name:
        return invalid("Worker name is required")
    if not access_code:
        return invalid("Worker access code is required")

    if category is not None:
        try:
            category = ProfessionalCategory(category).value
        except ValueError:
            return invalid(f"Unknown professional category {category!r}")

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        problem = _check_owner_and_project(db, subcontractor_id, project_id)
        if problem is not None:
            return problem

        worker = (
            db.query(Worker)
            .filter(
                Worker.subcontractor_id == str(subcontractor_id),
                Worker.access_code == access_code,
            )
            .first()
        )
        reused = worker is not None

        if worker is None:
            worker = Worker(
                subcontractor_id=str(subcontractor_id),
                name=name,
                access_code=access_code,
                category=category,
            )
            db.add(worker)
            try:
                db.flush()
            except IntegrityError:
                if owns_db:
                    db.rollback()
                return CoreError(
                    ErrorKind.CONFLICT,
                    f"Access code {access_code} was registered concurrently; retry the request",
                )

        if project_id is not None:
            _insert_links(
                db,
                _KINDS[ResourceKind.WORKER],
                [{"worker_id": worker.id, "project_id": str(project_id)}],
            )

        if owns_db:
            db.commit()

        _reload_projects(db, worker)

        logger.info(
            "worker reused for existing access code" if reused else "worker created",
            extra={
                "worker_id": worker.id,
                "subcontractor_id": subcontractor_id,
                "project_id": project_id,
            },
        )
        return WorkerRegistration(worker=worker, created=not reused)
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def create_machinery(
    subcontractor_id: str,
    name: str,
    registration_code: str,
    project_id: Optional[str] = None,
    *,
    db: Optional[Session] = None,
) -> Result[Machinery]:
    name = (name or "").strip()
    registration_code = (registration_code or "").strip()
    if not name:
        return invalid("Machinery name is required")
    if not registration_code:
        return invalid("Machinery registration or reference code is required")

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        problem = _check_owner_and_project(db, subcontractor_id, project_id)
        if problem is not None:
            return problem

        machine = Machinery(
            subcontractor_id=str(subcontractor_id),
            name=name,
            registration_code=registration_code,
        )
        db.add(machine)
        db.flush()

        if project_id is not None:
            _insert_links(
                db,
                _KINDS[ResourceKind.MACHINERY],
                [{"machinery_id": machine.id, "project_id": str(project_id)}],
            )

        if owns_db:
            db.commit()

        _reload_projects(db, machine)

        logger.info(
            "machinery created",
            extra={"machinery_id": machine.id, "subcontractor_id": subcontractor_id},
        )
        return machine
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def remove_resource(
    resource_id: str,
    kind: Union[ResourceKind, str] = ResourceKind.WORKER,
    *,
    db: Optional[Session] = None,
) -> Result[bool]:
    """Hard delete. All project links of the resource go with it."""
    tables = _tables_for(kind)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        if db.get(tables.model, str(resource_id)) is None:
            return not_found(tables.label, resource_id)

        column = tables.links.c[tables.resource_column]
        db.execute(delete(tables.links).where(column == str(resource_id)))

        if tables.model is Worker:
            db.query(TimeEntry).filter(TimeEntry.worker_id == str(resource_id)).delete(
                synchronize_session=False
            )

        db.query(tables.model).filter(tables.model.id == str(resource_id)).delete(
            synchronize_session=False
        )

        if owns_db:
            db.commit()

        logger.info(
            "resource removed",
            extra={"resource_id": resource_id, "resource_kind": ResourceKind(kind).value},
        )
        return True
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()
