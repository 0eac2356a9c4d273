from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from pathlib import Path

import anyio
from alembic import command
from alembic.config import Config
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()
engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def build_alembic_config(url: str | None = None) -> Config:
    """Alembic config pointed at the migration URL (direct connection when one is set)."""
    config = Config(str(ALEMBIC_INI))
    # env.py would otherwise reconfigure logging and mute uvicorn's handlers
    config.attributes["configure_logger"] = False
    config.set_main_option("sqlalchemy.url", url or settings.direct_database_url or settings.database_url)
    return config


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session


async def init_db() -> None:
    """Upgrade the schema to head unless AUTO_RUN_MIGRATIONS is off."""
    if not settings.auto_run_migrations:
        logger.info("AUTO_RUN_MIGRATIONS disabled; run `alembic upgrade head` manually.")
        return
    config = build_alembic_config()
    await anyio.to_thread.run_sync(command.upgrade, config, "head")
    logger.info("Database schema is at head revision.")


async def dispose_engine() -> None:
    await engine.dispose()
    logger.debug("Database engine disposed.")
