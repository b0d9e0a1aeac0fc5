"""
Config -> Kernel Bridges.

Functions that turn a ReliefConfig into kernel objects.  They live here
because the kernel must NEVER import relief_config.

Usage:
    from relief_config import get_active_config
    from relief_config.bridges import init_database, build_orchestrator

    config = get_active_config()
    init_database(config)
    with session_scope() as session:
        relief = build_orchestrator(session, config, auto_commit=False)
"""

from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from relief_config.schema import ReliefConfig
from relief_kernel.db.engine import create_tables, init_engine_from_url
from relief_kernel.domain.clock import Clock
from relief_kernel.logging_config import configure_logging
from relief_kernel.services.relief_orchestrator import ReliefOrchestrator


def init_database(config: ReliefConfig, create_schema: bool = True) -> Engine:
    """Configure logging, initialize the engine and (optionally) create tables."""
    configure_logging(level=config.log_level)
    engine = init_engine_from_url(config.database_url, echo=config.echo_sql)
    if create_schema:
        create_tables()
    return engine


def build_orchestrator(
    session: Session,
    config: ReliefConfig,
    clock: Clock | None = None,
    auto_commit: bool = True,
) -> ReliefOrchestrator:
    """ReliefOrchestrator carrying the configured policy values."""
    return ReliefOrchestrator(
        session,
        clock=clock,
        auto_commit=auto_commit,
        default_low_stock_threshold=config.default_low_stock_threshold,
        report_top_n=config.report_top_n,
    )
