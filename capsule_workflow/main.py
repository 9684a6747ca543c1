"""Capsule Workflow: engine entry point.

Wires settings, logging, the database and the SQL-backed store into a
ready-to-use WorkflowService.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from capsule_workflow.core.config import get_settings
from capsule_workflow.core.logging import configure_structlog
from capsule_workflow.db import close_db, get_session_factory, init_db
from capsule_workflow.services.workflow_service import WorkflowService
from capsule_workflow.store.sql import SqlItemStore

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def workflow_engine(
    database_url: str | None = None, configure_logging: bool = True
) -> AsyncIterator[WorkflowService]:
    """Start the engine and yield a WorkflowService; dispose the engine on exit.

    Args:
        database_url: Overrides settings.database_url
        configure_logging: Call configure_structlog from settings first. Must
            happen before the first log line, so embedders that own logging
            pass False.
    """
    settings = get_settings()
    if configure_logging:
        configure_structlog(
            log_level="DEBUG" if settings.debug else settings.log_level,
            json_logs=settings.json_logs,
        )

    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)
    await init_db(database_url)
    logger.info("db_initialized")

    try:
        yield WorkflowService(SqlItemStore(get_session_factory()))
    finally:
        await close_db()
        logger.info("shutdown_complete")
