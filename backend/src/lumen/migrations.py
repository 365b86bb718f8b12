"""Alembic entry points for the analytics report store."""
from pathlib import Path
from typing import Optional

import structlog
from alembic import command
from alembic.config import Config

from lumen.config import settings

logger = structlog.get_logger(__name__)

# backend/alembic.ini, next to the alembic/ script directory
ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"


def alembic_config(database_url: Optional[str] = None) -> Config:
    """Build the Alembic config for ``database_url`` (defaults to settings.database_url)."""
    if not ALEMBIC_INI.exists():
        logger.error("alembic_config_missing", path=str(ALEMBIC_INI))
        raise FileNotFoundError(f"Alembic config not found: {ALEMBIC_INI}")

    cfg = Config(str(ALEMBIC_INI))
    # ConfigParser interpolation treats % specially
    cfg.set_main_option("sqlalchemy.url", (database_url or settings.database_url).replace("%", "%%"))
    return cfg


def upgrade_database(database_url: Optional[str] = None) -> None:
    """Apply pending migrations up to head. Blocking; run it off the event loop."""
    logger.info("database_migration_starting")
    command.upgrade(alembic_config(database_url), "head")
    logger.info("database_migration_complete")
