#migration_engine\infrastructure\database\sink.py

"""SQL snapshot sink using SQLAlchemy."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from migration_engine.core.errors import SnapshotPersistenceError
from migration_engine.core.sinks import SnapshotSink
from migration_engine.core.snapshot import Snapshot
from migration_engine.infrastructure.database.models import DeviceSnapshotORM


logger = logging.getLogger(__name__)


# ============================================
# Mapping Functions
# ============================================

def snapshot_to_orm(snapshot: Snapshot) -> DeviceSnapshotORM:
    """Convert snapshot to ORM row."""
    return DeviceSnapshotORM(
        mutation=snapshot.mutation,
        device_id=snapshot.device_id,
        taken_at=snapshot.taken_at,
        devices=list(snapshot.devices),
    )


# ============================================
# Sink Implementation
# ============================================

class SqlSnapshotSink(SnapshotSink):
    """Stores every snapshot as a row; keeps the newest `retention` rows."""

    def __init__(self, session_factory: sessionmaker, retention: int = 0):
        """
        Initialize sink with an injected session factory.

        Args:
            session_factory: SQLAlchemy session factory.
            retention: rows to keep after each write, 0 keeps everything.
        """
        self._session_factory = session_factory
        self._retention = retention

    def _get_session(self) -> Session:
        return self._session_factory()

    # -------------------------
    # WRITE
    # -------------------------

    def emit(self, snapshot: Snapshot) -> None:
        """Persist one snapshot."""
        session = self._get_session()
        try:
            session.add(snapshot_to_orm(snapshot))
            session.flush()
            if self._retention:
                self._prune(session)
            session.commit()
            logger.debug(f"[database] stored snapshot {snapshot.mutation} ({len(snapshot.devices)} devices)")
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"[database] failed to store snapshot {snapshot.mutation}: {e}")
            raise SnapshotPersistenceError(f"Failed to store snapshot: {e}") from e
        finally:
            session.close()

    def _prune(self, session: Session) -> None:
        stale = (
            session.query(DeviceSnapshotORM.snapshot_id)
            .order_by(DeviceSnapshotORM.snapshot_id.desc())
            .offset(self._retention)
            .all()
        )
        if stale:
            session.query(DeviceSnapshotORM).filter(
                DeviceSnapshotORM.snapshot_id.in_([row.snapshot_id for row in stale])
            ).delete(synchronize_session=False)

    # -------------------------
    # READ
    # -------------------------

    def latest_devices(self) -> Optional[List[Dict[str, Any]]]:
        """Device records of the newest snapshot, or None when nothing is stored."""
        session = self._get_session()
        try:
            row = (
                session.query(DeviceSnapshotORM)
                .order_by(DeviceSnapshotORM.snapshot_id.desc())
                .first()
            )
            if row is None:
                return None
            return list(row.devices)
        except SQLAlchemyError as e:
            raise SnapshotPersistenceError(f"Failed to read snapshot: {e}") from e
        finally:
            session.close()

    def count(self) -> int:
        session = self._get_session()
        try:
            return session.query(DeviceSnapshotORM).count()
        finally:
            session.close()
