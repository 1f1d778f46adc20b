from typing import Annotated

from fastapi import Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.session import SessionLocal
from app.storage.adapter import StorageAdapter
from app.storage.purge import PurgeScheduler, purge_scheduler


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return SessionLocal


def get_purge_scheduler() -> PurgeScheduler:
    return purge_scheduler


SessionFactoryDependency = Annotated[
    async_sessionmaker[AsyncSession], Depends(get_session_factory)
]
PurgeSchedulerDependency = Annotated[PurgeScheduler, Depends(get_purge_scheduler)]


def get_store(
    session_factory: SessionFactoryDependency,
    purge: PurgeSchedulerDependency,
    name: Annotated[str, Path(min_length=1, max_length=64)],
) -> StorageAdapter:
    return StorageAdapter(name, session_factory=session_factory, purge=purge)


StoreDependency = Annotated[StorageAdapter, Depends(get_store)]
