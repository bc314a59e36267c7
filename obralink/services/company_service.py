import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from obralink.core.errors import Result, invalid, not_found
from obralink.database import SessionLocal
from obralink.models.company import GeneralContractor, Subcontractor
from obralink.models.project import Project

logger = logging.getLogger(__name__)

_EDITABLE_PROJECT_FIELDS = ("name", "address", "start_date", "end_date", "client_name")


def create_general_contractor(name: str, *, db: Optional[Session] = None) -> Result[GeneralContractor]:
    name = (name or "").strip()
    if not name:
        return invalid("General contractor name is required")

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        row = GeneralContractor(name=name)
        db.add(row)
        db.flush()

        if owns_db:
            db.commit()

        logger.info("general contractor created", extra={"general_contractor_id": row.id})
        return row
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def create_subcontractor(
    name: str,
    client_general_contractor_ids: Iterable[str] = (),
    *,
    db: Optional[Session] = None,
) -> Result[Subcontractor]:
    name = (name or "").strip()
    if not name:
        return invalid("Subcontractor name is required")

    client_ids = list(dict.fromkeys(str(i) for i in client_general_contractor_ids))

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        clients = (
            db.query(GeneralContractor).filter(GeneralContractor.id.in_(client_ids)).all()
            if client_ids
            else []
        )
        missing = sorted(set(client_ids) - {gc.id for gc in clients})
        if missing:
            return not_found("General contractor", ", ".join(missing))

        row = Subcontractor(name=name, clients=clients)
        db.add(row)
        db.flush()

        if owns_db:
            db.commit()

        logger.info(
            "subcontractor created",
            extra={"subcontractor_id": row.id, "client_count": len(clients)},
        )
        return row
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def list_general_contractors(*, db: Optional[Session] = None) -> List[GeneralContractor]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return db.query(GeneralContractor).order_by(GeneralContractor.name.asc()).all()
    finally:
        if owns_db:
            db.close()


def list_subcontractors(
    general_contractor_id: Optional[str] = None,
    *,
    db: Optional[Session] = None,
) -> List[Subcontractor]:
    """All subcontractors, or only those working for the given general contractor."""
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        q = db.query(Subcontractor)
        if general_contractor_id is not None:
            q = q.filter(Subcontractor.clients.any(GeneralContractor.id == str(general_contractor_id)))
        return q.order_by(Subcontractor.name.asc()).all()
    finally:
        if owns_db:
            db.close()


def get_general_contractor(gc_id: str, *, db: Optional[Session] = None) -> Optional[GeneralContractor]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return db.get(GeneralContractor, str(gc_id))
    finally:
        if owns_db:
            db.close()


def get_subcontractor(sub_id: str, *, db: Optional[Session] = None) -> Optional[Subcontractor]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return db.get(Subcontractor, str(sub_id))
    finally:
        if owns_db:
            db.close()


def _check_dates(start_date: Optional[date], end_date: Optional[date]):
    if start_date is not None and end_date is not None and end_date < start_date:
        return invalid("Project end date must not be before its start date")
    return None


def create_project(
    name: str,
    address: str,
    general_contractor_id: str,
    subcontractor_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    client_name: Optional[str] = None,
    *,
    db: Optional[Session] = None,
) -> Result[Project]:
    name = (name or "").strip()
    address = (address or "").strip()
    if not name:
        return invalid("Project name is required")
    if not address:
        return invalid("Project address is required")

    problem = _check_dates(start_date, end_date)
    if problem is not None:
        return problem

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        if db.get(GeneralContractor, str(general_contractor_id)) is None:
            return not_found("General contractor", general_contractor_id)
        if db.get(Subcontractor, str(subcontractor_id)) is None:
            return not_found("Subcontractor", subcontractor_id)

        project = Project(
            name=name,
            address=address,
            general_contractor_id=str(general_contractor_id),
            subcontractor_id=str(subcontractor_id),
            start_date=start_date,
            end_date=end_date,
            client_name=client_name,
        )
        db.add(project)
        db.flush()

        if owns_db:
            db.commit()

        logger.info(
            "project created",
            extra={
                "project_id": project.id,
                "general_contractor_id": project.general_contractor_id,
                "subcontractor_id": project.subcontractor_id,
            },
        )
        return project
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def get_project(project_id: str, *, db: Optional[Session] = None) -> Optional[Project]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return db.get(Project, str(project_id))
    finally:
        if owns_db:
            db.close()


def list_projects(
    *,
    general_contractor_id: Optional[str] = None,
    subcontractor_id: Optional[str] = None,
    db: Optional[Session] = None,
) -> List[Project]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        q = db.query(Project)
        if general_contractor_id is not None:
            q = q.filter(Project.general_contractor_id == str(general_contractor_id))
        if subcontractor_id is not None:
            q = q.filter(Project.subcontractor_id == str(subcontractor_id))
        return q.order_by(Project.created_at.desc(), Project.id.asc()).all()
    finally:
        if owns_db:
            db.close()


def update_project(project_id: str, *, db: Optional[Session] = None, **changes) -> Result[Project]:
    """
    Apply edits to a project's descriptive fields. Owning companies cannot
    be changed after creation.
    """
    unknown = sorted(set(changes) - set(_EDITABLE_PROJECT_FIELDS))
    if unknown:
        return invalid(f"Project fields cannot be changed: {', '.join(unknown)}")

    for field in ("name", "address"):
        if field in changes and not (changes[field] or "").strip():
            return invalid(f"Project {field} must not be empty")

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        project = db.get(Project, str(project_id))
        if project is None:
            return not_found("Project", project_id)

        problem = _check_dates(
            changes.get("start_date", project.start_date),
            changes.get("end_date", project.end_date),
        )
        if problem is not None:
            return problem

        for field, value in changes.items():
            setattr(project, field, value.strip() if isinstance(value, str) else value)

        db.flush()

        if owns_db:
            db.commit()

        logger.info(
            "project updated",
            extra={"project_id": project.id, "fields": sorted(changes)},
        )
        return project
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()
