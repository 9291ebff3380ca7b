#tests\conftest.py

"""Pytest configuration and fixtures."""

import pytest

from migration_engine.catalog.racks import build_rack_catalog
from migration_engine.core.models import DeviceCategory
from migration_engine.core.schemas import DeviceDraft
from migration_engine.core.service import MigrationService
from migration_engine.core.sinks import RecordingSnapshotSink
from migration_engine.infrastructure.database.config import DatabaseSettings
from migration_engine.infrastructure.database.database import (
    create_db_engine,
    get_session_factory,
    init_db,
)
from migration_engine.infrastructure.database.sink import SqlSnapshotSink
from migration_engine.infrastructure.memory.repository import InMemoryDeviceRepository


@pytest.fixture
def racks():
    """Three standard 42U racks."""
    return build_rack_catalog(["A1", "A2", "B1"], capacity=42)


@pytest.fixture
def sink():
    return RecordingSnapshotSink()


@pytest.fixture
def repository():
    return InMemoryDeviceRepository()


@pytest.fixture
def service(repository, racks, sink):
    """Create service with in-memory registry and recording sink."""
    return MigrationService(repository, racks, sink)


@pytest.fixture
def add_device(service):
    """Factory: add a device with sensible defaults and return its id."""
    counter = {"n": 0}

    def _add(size=1, category=DeviceCategory.SERVER, code=None, name=None, **extra):
        counter["n"] += 1
        n = counter["n"]
        return service.add_device(
            DeviceDraft(
                category=category,
                code=code or f"DEV-{n:02d}",
                name=name or f"Device {n}",
                brand="Dell",
                model="R740",
                ports=4,
                size=size,
                **extra,
            )
        )

    return _add


@pytest.fixture
def db_settings(tmp_path):
    """Snapshot database in a temporary SQLite file."""
    return DatabaseSettings(
        database_url=f"sqlite:///{tmp_path / 'snapshots.db'}",
        snapshot_retention=0,
    )


@pytest.fixture
def sql_sink(db_settings):
    engine = create_db_engine(db_settings)
    init_db(engine)
    yield SqlSnapshotSink(session_factory=get_session_factory(engine))
    engine.dispose()
