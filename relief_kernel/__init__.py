"""
Relief Kernel - inventory ledger and distribution transaction engine.

Keeps on-hand quantities, distribution records and an immutable audit
trail consistent under create/void, restock and set-quantity operations.

Layers:
    db/         engine, sessions, declarative base, immutability enforcement
    models/     ORM tables
    domain/     clock, DTOs, pure stock and template logic
    services/   write side (units of work)
    selectors/  read side (reports, lookups)
"""

__version__ = "0.1.0"
