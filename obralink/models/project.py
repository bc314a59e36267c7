import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, String

from obralink.database import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    address = Column(String, nullable=False)

    # Ownership is fixed at creation; reports hang off the project id.
    general_contractor_id = Column(
        String, ForeignKey("general_contractors.id"), nullable=False, index=True
    )
    subcontractor_id = Column(
        String, ForeignKey("subcontractors.id"), nullable=False, index=True
    )

    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    client_name = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR end_date >= start_date",
            name="ck_projects_end_after_start",
        ),
    )
