"""
Unit-of-work helper.
Repositories called with commit=False only flush; this commits them
together or rolls all of them back.
"""
from contextlib import asynccontextmanager

from sqlmodel.ext.asyncio.session import AsyncSession


@asynccontextmanager
async def transaction(session: AsyncSession):
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
