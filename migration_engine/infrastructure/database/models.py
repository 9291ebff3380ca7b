#migration_engine\infrastructure\database\models.py
"""SQLAlchemy ORM models for database tables."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String

from migration_engine.infrastructure.database.database import Base


class DeviceSnapshotORM(Base):
    """
    Snapshot table - one row per engine mutation.

    Indexes:
    - Primary key on snapshot_id (monotonic, newest = highest)
    - Index on taken_at for time range queries
    """

    __tablename__ = "device_snapshots"

    snapshot_id = Column(Integer, primary_key=True, autoincrement=True)

    mutation = Column(String(50), nullable=False)
    device_id = Column(String(64), nullable=True)

    taken_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Full device collection, by value
    devices = Column(JSON, nullable=False)

    __table_args__ = (
        Index('ix_device_snapshots_taken_at', 'taken_at'),
    )

    def __repr__(self) -> str:
        return (
            f"<DeviceSnapshotORM(snapshot_id={self.snapshot_id}, "
            f"mutation={self.mutation}, "
            f"devices={len(self.devices or [])})>"
        )
