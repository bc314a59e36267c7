import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Table
from sqlalchemy.orm import relationship

from obralink.database import Base

machinery_project_assignments = Table(
    "machinery_project_assignments",
    Base.metadata,
    Column(
        "machinery_id",
        String,
        ForeignKey("machinery.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("project_id", String, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
)


class Machinery(Base):
    __tablename__ = "machinery"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    subcontractor_id = Column(String, ForeignKey("subcontractors.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    registration_code = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    projects = relationship(
        "Project",
        secondary=machinery_project_assignments,
        lazy="selectin",
        viewonly=True,
    )

    @property
    def assigned_project_ids(self) -> list[str]:
        return sorted(p.id for p in self.projects)
