"""FastAPI dependencies for database sessions and report parameters."""
from datetime import date, datetime
from typing import AsyncGenerator, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from lumen.database import AsyncSessionLocal
from lumen.schemas.error import ErrorCode
from lumen.utils.periods import day_end, day_start, trailing_window

logger = structlog.get_logger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields:
        AsyncSession: Database session for the request lifecycle
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def parse_date(value: str, field: str) -> date:
    """
    Parse a YYYY-MM-DD query parameter.

    Raises:
        HTTPException 400: If the value is not an ISO date
    """
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": ErrorCode.INVALID_DATE,
                "message": f"Invalid {field} format: {value}. Use YYYY-MM-DD.",
            },
        )


def resolve_window(
    start_date: Optional[str],
    end_date: Optional[str],
    default_days: int,
) -> Tuple[datetime, datetime]:
    """
    Turn optional start/end query parameters into a datetime window.

    A missing end defaults to now and a missing start to `default_days`
    before the end. Explicit dates cover whole days.

    Raises:
        HTTPException 400: If a date is malformed or start is after end
    """
    default_start, now = trailing_window(default_days)

    end = day_end(parse_date(end_date, "end_date")) if end_date else now
    if start_date:
        start = day_start(parse_date(start_date, "start_date"))
    elif end_date:
        start, _ = trailing_window(default_days, now=end)
    else:
        start = default_start

    if start > end:
        logger.warning("invalid_date_range", start_date=start.isoformat(), end_date=end.isoformat())
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": ErrorCode.INVALID_DATE_RANGE,
                "message": "start_date must be on or before end_date",
            },
        )

    return start, end
