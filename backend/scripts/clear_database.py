#!/usr/bin/env python3
"""
Delete every row (reservations, events, users), keeping the schema.

Run from backend/:  python -m scripts.clear_database
"""

import asyncio

from sqlalchemy import delete

from booknest.core.logging import setup_logging, get_logger
from booknest.db.session import AsyncSessionLocal, engine
from booknest.models import Event, Reservation, User

logger = get_logger(__name__)


async def clear() -> None:
    async with AsyncSessionLocal() as db:
        # Children first: reservations reference events and users
        for model in (Reservation, Event, User):
            result = await db.execute(delete(model))
            logger.info("table_cleared", table=model.__tablename__, rows=result.rowcount)
        await db.commit()


async def main() -> None:
    setup_logging()
    try:
        await clear()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
