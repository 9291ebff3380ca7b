#migration_engine\container.py

"""Dependency wiring - builds services on demand, no module-level singletons."""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from migration_engine.catalog.racks import RackCatalog, build_rack_catalog
from migration_engine.core.config import EngineSettings
from migration_engine.core.errors import SnapshotPersistenceError
from migration_engine.core.repository import DeviceRepository
from migration_engine.core.service import MigrationService
from migration_engine.core.sinks import NullSnapshotSink, SnapshotSink
from migration_engine.infrastructure.database.config import DatabaseSettings
from migration_engine.infrastructure.database.database import (
    create_db_engine,
    get_session_factory,
    init_db,
)
from migration_engine.infrastructure.database.sink import SqlSnapshotSink
from migration_engine.infrastructure.memory.repository import InMemoryDeviceRepository


# ============================================
# RACKS
# ============================================

def build_racks(settings: Optional[EngineSettings] = None) -> RackCatalog:
    settings = settings or EngineSettings()
    return build_rack_catalog(
        settings.rack_ids,
        capacity=settings.rack_capacity,
        name_prefix=settings.rack_name_prefix,
    )


# ============================================
# PERSISTENCE
# ============================================

def build_sql_sink(settings: Optional[DatabaseSettings] = None) -> SqlSnapshotSink:
    """SQL sink with its tables created."""
    settings = settings or DatabaseSettings()
    try:
        engine = create_db_engine(settings)
        init_db(engine)
    except SQLAlchemyError as e:
        raise SnapshotPersistenceError(f"Failed to open snapshot database: {e}") from e
    return SqlSnapshotSink(
        session_factory=get_session_factory(engine),
        retention=settings.snapshot_retention,
    )


# ============================================
# SERVICES
# ============================================

def build_service(
    settings: Optional[EngineSettings] = None,
    sink: Optional[SnapshotSink] = None,
    repository: Optional[DeviceRepository] = None,
) -> MigrationService:
    """A fresh, independently owned engine."""
    return MigrationService(
        repository=repository or InMemoryDeviceRepository(),
        racks=build_racks(settings),
        sink=sink or NullSnapshotSink(),
    )
