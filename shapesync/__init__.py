# ==============================================
# shapesync
# ==============================================
#
# Package Structure:
#
# shapesync/
# ├── schema/          # Shapes, type mapping, coercion, analysis
# ├── sql/             # DDL and upsert statement synthesis
# ├── registry/        # Known shapes + per-entity migration locks
# ├── storage/         # MySQL / MariaDB client
# ├── config.py        # Configuration management
# ├── errors.py        # Exception hierarchy
# ├── subscriber.py    # Lifecycle handlers, data point sequencing
# ├── pipeline.py      # HTTP / file record sources
# └── cli.py           # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
