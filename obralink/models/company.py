import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Table
from sqlalchemy.orm import relationship

from obralink.database import Base

subcontractor_clients = Table(
    "subcontractor_clients",
    Base.metadata,
    Column(
        "subcontractor_id",
        String,
        ForeignKey("subcontractors.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "general_contractor_id",
        String,
        ForeignKey("general_contractors.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class GeneralContractor(Base):
    __tablename__ = "general_contractors"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class Subcontractor(Base):
    __tablename__ = "subcontractors"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    clients = relationship(
        "GeneralContractor",
        secondary=subcontractor_clients,
        lazy="selectin",
    )

    @property
    def client_general_contractor_ids(self) -> list[str]:
        return sorted(gc.id for gc in self.clients)
