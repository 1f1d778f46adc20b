from collections.abc import Callable, Mapping
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Optional

from sqlalchemy import ColumnElement, and_, delete, func, select, type_coerce, update
from sqlalchemy.dialects.postgresql import JSONB, insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions.errors import InvalidPayload, RecordNotFound, StorageFailure
from app.db.models.record import StoredRecord
from app.db.schemas.record import RecordRead
from app.db.session import DB_ERRORS, SessionLocal
from app.storage.expiry import is_live, live_clause, utcnow
from app.storage.purge import PurgeScheduler, purge_scheduler
from app.utils.logging import get_logger

logger = get_logger()

Payload = dict[str, Any]

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def string_field_equals(
    dialect_name: str, field: str, value: str
) -> ColumnElement[bool]:
    """Match payloads whose top-level ``field`` is the JSON string ``value``.

    Numbers, booleans and nested values never match, even when their text
    form equals ``value``.
    """
    if dialect_name == "postgresql":
        return type_coerce(StoredRecord.data, JSONB).contains({field: value})
    return and_(
        func.json_type(StoredRecord.data, f'$."{field}"') == "text",
        StoredRecord.data[field].as_string() == value,
    )


def _dialect_name(session: AsyncSession) -> str:
    return session.get_bind().dialect.name


class StorageAdapter:
    """Expiring record store for one namespace.

    Payloads are opaque JSON mappings keyed by a globally unique id. Reads
    only ever return live records; writes never look at expiry. Every call
    runs in its own session and transaction.
    """

    def __init__(
        self,
        name: str,
        session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
        purge: PurgeScheduler = purge_scheduler,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.name = name
        self._session_factory = session_factory
        self._purge = purge
        self._clock = clock

    def __repr__(self) -> str:
        return f"StorageAdapter(name={self.name!r})"

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except DB_ERRORS as e:
            logger.exception(f"{self.name}.{operation} failed: {e}")
            raise StorageFailure(operation, str(e)) from e

    async def upsert(
        self, id: str, payload: Mapping[str, Any], expires_in: Optional[int] = None
    ) -> None:
        """Create the record or fully replace its payload and expiry.

        A falsy ``expires_in`` stores the record without expiry. The conflict
        target is the id alone, so an existing record is moved into this
        namespace. Concurrent upserts of one id are last-write-wins.
        """
        if not isinstance(payload, Mapping):
            raise InvalidPayload(id, type(payload))

        now = self._clock()
        await self._purge.maybe_sweep(self._session_factory, now)

        data = dict(payload)
        expires_at = now + timedelta(seconds=expires_in) if expires_in else None

        async with self._transaction("upsert") as session:
            dialect_name = _dialect_name(session)
            if dialect_name not in _INSERTS:
                raise StorageFailure("upsert", f"unsupported dialect '{dialect_name}'")

            stmt = _INSERTS[dialect_name](StoredRecord).values(
                id=id,
                name=self.name,
                data=data,
                expires_at=expires_at,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[StoredRecord.id],
                set_={
                    "name": stmt.excluded.name,
                    "data": stmt.excluded.data,
                    "expires_at": stmt.excluded.expires_at,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            await session.execute(stmt)

        logger.debug(f"{self.name}: upserted '{id}' (expires_at={expires_at})")

    async def find(self, id: str) -> Optional[Payload]:
        now = self._clock()
        async with self._transaction("find") as session:
            result = await session.execute(
                select(StoredRecord.data).where(
                    StoredRecord.id == id, live_clause(now)
                )
            )
            return result.scalar_one_or_none()

    async def find_by_uid(self, uid: str) -> Optional[Payload]:
        return await self._find_by_field("uid", uid)

    async def find_by_user_code(self, user_code: str) -> Optional[Payload]:
        return await self._find_by_field("userCode", user_code)

    async def _find_by_field(self, field: str, value: str) -> Optional[Payload]:
        # Duplicate live matches resolve to the most recently updated record
        now = self._clock()
        async with self._transaction(f"find_by_{field}") as session:
            result = await session.execute(
                select(StoredRecord.data)
                .where(
                    string_field_equals(_dialect_name(session), field, value),
                    live_clause(now),
                )
                .order_by(StoredRecord.updated_at.desc(), StoredRecord.id.desc())
                .limit(1)
            )
            return result.scalars().first()

    async def consume(self, id: str) -> None:
        """Stamp the payload with a ``consumed`` timestamp.

        Only the payload column is written; expiry and ordering are left
        alone. Raises RecordNotFound if no record has this id.
        """
        now = self._clock()
        async with self._transaction("consume") as session:
            result = await session.execute(
                select(StoredRecord.data).where(StoredRecord.id == id)
            )
            data = result.scalar_one_or_none()
            if data is None:
                raise RecordNotFound(id)

            data = dict(data)
            data["consumed"] = now.isoformat()
            await session.execute(
                update(StoredRecord)
                .where(StoredRecord.id == id)
                .values(data=data)
                .execution_options(synchronize_session=False)
            )

        logger.debug(f"{self.name}: consumed '{id}'")

    async def destroy(self, id: str) -> None:
        async with self._transaction("destroy") as session:
            await session.execute(
                delete(StoredRecord)
                .where(StoredRecord.id == id)
                .execution_options(synchronize_session=False)
            )
        logger.debug(f"{self.name}: destroyed '{id}'")

    async def revoke_by_grant_id(self, grant_id: str) -> int:
        """Delete every record carrying this grantId, expired or not."""
        async with self._transaction("revoke_by_grant_id") as session:
            result = await session.execute(
                delete(StoredRecord)
                .where(string_field_equals(_dialect_name(session), "grantId", grant_id))
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount or 0
        logger.info(f"Revoked grant '{grant_id}': {deleted} record(s) deleted")
        return deleted

    async def get_all(self) -> list[RecordRead]:
        """List the namespace newest first, expired records included.

        Each snapshot carries ``live`` as of the time of the call.
        """
        now = self._clock()
        async with self._transaction("get_all") as session:
            result = await session.execute(
                select(StoredRecord)
                .where(StoredRecord.name == self.name)
                .order_by(StoredRecord.updated_at.desc())
            )
            snapshots = []
            for record in result.scalars().all():
                snapshot = RecordRead.model_validate(record)
                snapshots.append(snapshot.model_copy(update={"live": is_live(record, now)}))
            return snapshots

    async def purge_expired(self) -> int:
        """Sweep expired records now, regardless of the upsert counter."""
        return await self._purge.sweep(self._session_factory, self._clock())
