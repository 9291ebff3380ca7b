"""Snapshot sinks for the migration engine."""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from migration_engine.core.snapshot import Snapshot


logger = logging.getLogger(__name__)


class SnapshotSink(ABC):
    """Receives the full state after each successful mutation."""

    @abstractmethod
    def emit(self, snapshot: Snapshot) -> None:
        """Store or forward one snapshot."""
        pass


class RecordingSnapshotSink(SnapshotSink):
    """Keeps snapshots in memory. Used by tests and interactive sessions."""

    def __init__(self):
        self.snapshots: List[Snapshot] = []

    def emit(self, snapshot: Snapshot) -> None:
        if not isinstance(snapshot, Snapshot):
            raise ValueError("Sink only accepts Snapshot instances")
        self.snapshots.append(snapshot)
        logger.debug(
            f"[snapshot] {snapshot.mutation} | device={snapshot.device_id} "
            f"| devices={len(snapshot.devices)}"
        )

    @property
    def last(self) -> Optional[Snapshot]:
        return self.snapshots[-1] if self.snapshots else None

    def mutations(self) -> List[str]:
        return [s.mutation for s in self.snapshots]


class MultiSnapshotSink(SnapshotSink):
    """Fan-out to multiple sinks."""

    def __init__(self, sinks: Iterable[SnapshotSink]):
        self._sinks = list(sinks)

    def emit(self, snapshot: Snapshot) -> None:
        """Emit to all sinks."""
        for sink in self._sinks:
            sink.emit(snapshot)


class NullSnapshotSink(SnapshotSink):
    """No-op sink (used when persistence is not needed)."""

    def emit(self, snapshot: Snapshot) -> None:
        """Do nothing."""
        pass
