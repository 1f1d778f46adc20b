from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.db.base import Base

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL, echo=settings.DATABASE_ECHO
)
SessionLocal = async_sessionmaker(
    autoflush=False, bind=engine, expire_on_commit=False
)


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    await engine.dispose()


# SQLAlchemy does not wrap connection failures (refused, unreachable, timeouts)
DB_ERRORS = (SQLAlchemyError, OSError)
