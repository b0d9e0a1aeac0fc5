"""
ORM-Level Immutability Enforcement (Layer 1 of 2).

===============================================================================
WHY THIS EXISTS
===============================================================================

The inventory ledger is the audit trail of record: every on-hand quantity
change can be explained by walking its entries.  Entries are never edited
or removed -- mistakes are corrected with new entries (a Set Quantity, or a
Void Distribution that compensates a Distribution).

  Layer 1: THIS FILE (ORM event listeners)
    - Catches modifications through Python/SQLAlchemy code
    - Fires BEFORE the SQL is sent to the database

  Layer 2: db/triggers.py (SQLite triggers)
    - Catches raw SQL and bulk UPDATE/DELETE statements
    - Fires AT the database level, independent of application code

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                 | When Immutable          | Operations blocked
-----------------------|-------------------------|--------------------
InventoryTransaction   | ALWAYS (from creation)  | UPDATE, DELETE
DistributionItem       | ALWAYS (from creation)  | UPDATE (deleted only with its distribution)

===============================================================================
"""

from sqlalchemy import event

from relief_kernel.exceptions import ImmutabilityViolationError
from relief_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _blocked(entity_type: str, entity_id, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_ledger_entry_immutability(mapper, connection, target):
    """Prevent any updates to InventoryTransaction records."""
    _blocked(
        "InventoryTransaction",
        target.id,
        "UPDATE",
        "Ledger entries are immutable and cannot be modified",
    )


def _check_ledger_entry_delete(mapper, connection, target):
    """Prevent deletion of InventoryTransaction records."""
    _blocked(
        "InventoryTransaction",
        target.id,
        "DELETE",
        "Ledger entries cannot be deleted",
    )


def _check_distribution_item_immutability(mapper, connection, target):
    """Prevent updates to distribution lines after creation."""
    _blocked(
        "DistributionItem",
        target.id,
        "UPDATE",
        "Distribution lines cannot be modified; void the distribution instead",
    )


_LISTENERS = (
    ("InventoryTransaction", "before_update", _check_ledger_entry_immutability),
    ("InventoryTransaction", "before_delete", _check_ledger_entry_delete),
    ("DistributionItem", "before_update", _check_distribution_item_immutability),
)


def _targets():
    from relief_kernel.models.distribution import DistributionItem
    from relief_kernel.models.ledger import InventoryTransaction

    return {
        "InventoryTransaction": InventoryTransaction,
        "DistributionItem": DistributionItem,
    }


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent.  Call after models are imported and before any database
    operations begin (init_engine_from_url does this).
    """
    targets = _targets()
    for name, event_name, fn in _LISTENERS:
        if not event.contains(targets[name], event_name, fn):
            event.listen(targets[name], event_name, fn)


def _safe_remove_listener(target, event_name, listener_fn):
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove all immutability listeners.

    FOR TESTING ONLY -- used to prove the database triggers hold on their own.
    """
    targets = _targets()
    for name, event_name, fn in _LISTENERS:
        _safe_remove_listener(targets[name], event_name, fn)
