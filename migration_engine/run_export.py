# migration_engine/run_export.py
"""Export the latest stored snapshot as CSV."""

import logging
import sys
from typing import List, Optional

from migration_engine.container import build_service, build_sql_sink
from migration_engine.core.config import EngineSettings
from migration_engine.core.errors import SnapshotPersistenceError
from migration_engine.core.export import export_devices_csv
from migration_engine.core.sinks import NullSnapshotSink
from migration_engine.infrastructure.database.config import DatabaseSettings


logger = logging.getLogger(__name__)


def main(
    argv: Optional[List[str]] = None,
    engine_settings: Optional[EngineSettings] = None,
    db_settings: Optional[DatabaseSettings] = None,
) -> int:
    """Main entry point. Writes to the path in argv[0], or stdout."""
    argv = sys.argv[1:] if argv is None else argv
    engine_settings = engine_settings or EngineSettings()

    logging.basicConfig(
        level=engine_settings.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        records = build_sql_sink(db_settings).latest_devices()
    except SnapshotPersistenceError as e:
        logger.error(f"Could not read snapshots: {e}", exc_info=True)
        return 1

    if records is None:
        logger.info("No snapshot stored yet, exporting an empty table")
        records = []

    # read-only: seeding must not write a new snapshot row
    service = build_service(engine_settings, sink=NullSnapshotSink())
    loaded = service.load_snapshot(records)
    content = export_devices_csv(service.list_devices())

    if argv:
        with open(argv[0], "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        logger.info(f"Exported {loaded} devices to {argv[0]}")
    else:
        sys.stdout.write(content)
    return 0


if __name__ == "__main__":
    sys.exit(main())
