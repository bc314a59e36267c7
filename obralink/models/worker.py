import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, UniqueConstraint
from sqlalchemy.orm import relationship

from obralink.database import Base

worker_project_assignments = Table(
    "worker_project_assignments",
    Base.metadata,
    Column("worker_id", String, ForeignKey("workers.id", ondelete="CASCADE"), primary_key=True),
    Column("project_id", String, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
)


class Worker(Base):
    __tablename__ = "workers"

    __table_args__ = (
        UniqueConstraint(
            "subcontractor_id",
            "access_code",
            name="uq_workers_subcontractor_access_code",
        ),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    subcontractor_id = Column(String, ForeignKey("subcontractors.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    access_code = Column(String, nullable=False)
    category = Column(String, nullable=True)  # oficial|peon|maquinista|encofrador
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    projects = relationship(
        "Project",
        secondary=worker_project_assignments,
        lazy="selectin",
        viewonly=True,
    )

    @property
    def assigned_project_ids(self) -> list[str]:
        return sorted(p.id for p in self.projects)
