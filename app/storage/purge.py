import threading
from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.exceptions.errors import StorageFailure
from app.db.models.record import StoredRecord
from app.db.session import DB_ERRORS
from app.storage.expiry import expired_clause
from app.utils.logging import get_logger

logger = get_logger()


class PurgeScheduler:
    """Sweeps expired records once every ``every`` upserts.

    Only upserts advance the counter; reads never trigger a sweep. The
    counter is shared by every adapter that uses the same scheduler, and
    across processes the cadence is approximate.
    """

    def __init__(self, every: int = 10):
        if every < 1:
            raise ValueError("every must be >= 1")
        self.every = every
        self._count = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> int:
        return self._count

    def tick(self) -> bool:
        with self._lock:
            self._count += 1
            if self._count < self.every:
                return False
            self._count = 0
            return True

    async def sweep(
        self, session_factory: async_sessionmaker[AsyncSession], now: datetime
    ) -> int:
        try:
            async with session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        delete(StoredRecord)
                        .where(expired_clause(now))
                        .execution_options(synchronize_session=False)
                    )
                    deleted = result.rowcount or 0
        except DB_ERRORS as e:
            raise StorageFailure("purge", str(e)) from e
        logger.info(f"Purged {deleted} expired record(s)")
        return deleted

    async def maybe_sweep(
        self, session_factory: async_sessionmaker[AsyncSession], now: datetime
    ) -> int:
        """Count one upsert and sweep when due.

        A failed sweep is logged and swallowed; the upsert that triggered it
        still runs.
        """
        if not self.tick():
            return 0
        try:
            return await self.sweep(session_factory, now)
        except StorageFailure:
            logger.exception("Expired record sweep failed; continuing with upsert")
            return 0


purge_scheduler = PurgeScheduler(settings.STORE_PURGE_EVERY)
