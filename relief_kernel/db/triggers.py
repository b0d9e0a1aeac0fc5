"""
Module: relief_kernel.db.triggers
Responsibility: Installing and verifying SQLite immutability triggers
    (Layer 2 of 2).  Database-level complement to the ORM listeners in
    db/immutability.py.
Architecture position: Kernel > DB.  May import from db/ only.  MUST NOT import
    from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - inventory_transactions rows: no UPDATE, no DELETE, ever.
    - distribution_items rows: no UPDATE.

Failure modes:
    - SQLite RAISE(ABORT, ...) on violation, surfaced by SQLAlchemy as
      IntegrityError.
    - Non-SQLite dialects are skipped (installation is a no-op); those
      deployments rely on Layer 1 only.
"""

from sqlalchemy import text
from sqlalchemy.engine import Engine

from relief_kernel.logging_config import get_logger

logger = get_logger("db.triggers")

TRIGGERS: dict[str, str] = {
    "trg_inventory_transactions_no_update": """
        CREATE TRIGGER IF NOT EXISTS trg_inventory_transactions_no_update
        BEFORE UPDATE ON inventory_transactions
        BEGIN
            SELECT RAISE(ABORT, 'inventory_transactions is append-only: UPDATE rejected');
        END
    """,
    "trg_inventory_transactions_no_delete": """
        CREATE TRIGGER IF NOT EXISTS trg_inventory_transactions_no_delete
        BEFORE DELETE ON inventory_transactions
        BEGIN
            SELECT RAISE(ABORT, 'inventory_transactions is append-only: DELETE rejected');
        END
    """,
    "trg_distribution_items_no_update": """
        CREATE TRIGGER IF NOT EXISTS trg_distribution_items_no_update
        BEFORE UPDATE ON distribution_items
        BEGIN
            SELECT RAISE(ABORT, 'distribution_items are immutable: UPDATE rejected');
        END
    """,
}

ALL_TRIGGER_NAMES = tuple(TRIGGERS)


def _supported(engine: Engine) -> bool:
    return engine.dialect.name == "sqlite"


def install_immutability_triggers(engine: Engine) -> None:
    """
    Install database-level immutability triggers.

    Preconditions: Tables must exist (call after metadata.create_all()).
    Postconditions: All triggers in ALL_TRIGGER_NAMES exist (IF NOT EXISTS,
        so repeated calls are harmless).
    """
    if not _supported(engine):
        logger.warning(
            "immutability_triggers_skipped",
            extra={"dialect": engine.dialect.name},
        )
        return

    with engine.begin() as conn:
        for ddl in TRIGGERS.values():
            conn.execute(text(ddl))

    logger.info("immutability_triggers_installed", extra={"count": len(TRIGGERS)})


def uninstall_immutability_triggers(engine: Engine) -> None:
    """
    Remove database-level immutability triggers.

    Only for maintenance and tests.  Re-install immediately afterwards.
    """
    if not _supported(engine):
        return

    with engine.begin() as conn:
        for name in TRIGGERS:
            conn.execute(text(f"DROP TRIGGER IF EXISTS {name}"))


def get_installed_triggers(engine: Engine) -> list[str]:
    """Return the names of installed immutability triggers, sorted."""
    if not _supported(engine):
        return []

    with engine.connect() as conn:
        rows = conn.execute(
            text("SELECT name FROM sqlite_master WHERE type = 'trigger' ORDER BY name")
        )
        return [row[0] for row in rows if row[0] in TRIGGERS]


def triggers_installed(engine: Engine) -> bool:
    """True if every trigger in ALL_TRIGGER_NAMES is installed."""
    return set(get_installed_triggers(engine)) == set(ALL_TRIGGER_NAMES)
