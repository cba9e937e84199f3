# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role seed data.

Creates a row for every role name that does not exist yet. Existing rows
are left alone, so the seed can run on every startup.
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from martialbase.domains.access.roles import UserRoles
from martialbase.infrastructure.database.models import Role

logger = logging.getLogger(__name__)


async def seed_roles(session: AsyncSession) -> list[Role]:
    """Seed the fixed roles.

    Args:
        session: Database session. Flushed, not committed.

    Returns:
        List of created roles.
    """
    result = await session.execute(select(Role.name))
    existing = set(result.scalars().all())

    roles = [Role(name=name) for name in UserRoles.all() if name not in existing]
    session.add_all(roles)
    await session.flush()

    logger.info("Seeded %d roles", len(roles))
    return roles


if __name__ == "__main__":
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from martialbase.core.config import get_settings

    async def main():
        engine = create_async_engine(get_settings().db.url)
        async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

        async with async_session() as session:
            await seed_roles(session)
            await session.commit()

        await engine.dispose()

    asyncio.run(main())
