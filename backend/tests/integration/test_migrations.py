"""Integration tests for the Alembic migrations of the report store."""
import asyncio
from datetime import datetime
from pathlib import Path

import pytest
from alembic import command
from sqlalchemy import create_engine, inspect
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from lumen.migrations import alembic_config, upgrade_database
from lumen.models.analytics_report import AnalyticsReport as AnalyticsReportRecord
from lumen.models.analytics_report import ReportType
from lumen.services.analytics_service import AnalyticsService

REPORT_INDEXES = {
    "ix_analytics_reports_id",
    "ix_analytics_reports_created_at",
    "ix_analytics_reports_period_end",
    "ix_analytics_reports_generated_by",
    "ix_analytics_reports_type_period_start",
}


def _urls(path: Path) -> tuple[str, str]:
    return f"sqlite+aiosqlite:///{path}", f"sqlite:///{path}"


def test_upgrade_creates_report_table(tmp_path: Path) -> None:
    """Test that upgrading a fresh database creates only the report table."""
    async_url, sync_url = _urls(tmp_path / "reports.db")

    command.upgrade(alembic_config(async_url), "head")

    engine = create_engine(sync_url)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        assert "analytics_reports" in tables
        assert "subscriptions" not in tables
        assert "plans" not in tables

        indexes = {index["name"] for index in inspector.get_indexes("analytics_reports")}
        assert REPORT_INDEXES <= indexes

        columns = {column["name"] for column in inspector.get_columns("analytics_reports")}
        assert {"report_type", "period_start", "period_end", "data", "data_quality", "version"} <= columns
    finally:
        engine.dispose()


def test_downgrade_drops_report_table(tmp_path: Path) -> None:
    """Test that downgrading to base removes the report table."""
    async_url, sync_url = _urls(tmp_path / "reports.db")
    cfg = alembic_config(async_url)

    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    engine = create_engine(sync_url)
    try:
        assert "analytics_reports" not in inspect(engine).get_table_names()
    finally:
        engine.dispose()


@pytest.mark.asyncio
async def test_migrated_table_stores_reports(tmp_path: Path) -> None:
    """Test that the report model reads and writes the migrated table."""
    async_url, _ = _urls(tmp_path / "reports.db")
    await asyncio.to_thread(upgrade_database, async_url)

    engine = create_async_engine(async_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with session_factory() as session:
            session.add(
                AnalyticsReportRecord(
                    report_type=ReportType.REVENUE_ANALYTICS,
                    period_start=datetime(2025, 1, 1),
                    period_end=datetime(2025, 3, 31, 23, 59, 59),
                    data={},
                    insights=[],
                    recommendations=[],
                    data_quality={},
                )
            )
            await session.commit()

            latest = await AnalyticsService(session).get_latest_report(ReportType.REVENUE_ANALYTICS)

        assert latest is not None
        assert latest.type == ReportType.REVENUE_ANALYTICS
    finally:
        await engine.dispose()


def test_alembic_config_uses_given_url() -> None:
    """Test that the URL passed in overrides the configured database."""
    cfg = alembic_config("sqlite+aiosqlite:///reports%20db.sqlite")

    assert cfg.get_main_option("sqlalchemy.url") == "sqlite+aiosqlite:///reports%20db.sqlite"
