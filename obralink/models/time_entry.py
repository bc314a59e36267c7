from sqlalchemy import Column, ForeignKey, Index, String, text

from obralink.core.types import UTCDateTime
from obralink.database import Base


class TimeEntry(Base):
    __tablename__ = "time_entries"

    time_entry_id = Column(String, primary_key=True, index=True)

    worker_id = Column(String, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)

    started_at = Column(UTCDateTime(), nullable=False)
    ended_at = Column(UTCDateTime(), nullable=True)

    status = Column(String, nullable=False, index=True)

    __table_args__ = (
        # At most one open clock-in per worker.
        Index(
            "uq_time_entries_active",
            "worker_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )
