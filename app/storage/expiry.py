from datetime import datetime, timezone

from sqlalchemy import ColumnElement, and_, or_

from app.db.models.record import StoredRecord


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_live(record: StoredRecord, now: datetime) -> bool:
    """A record is live until the instant its expiry is reached."""
    return record.expires_at is None or record.expires_at > now


def live_clause(now: datetime) -> ColumnElement[bool]:
    return or_(StoredRecord.expires_at.is_(None), StoredRecord.expires_at > now)


def expired_clause(now: datetime) -> ColumnElement[bool]:
    return and_(StoredRecord.expires_at.is_not(None), StoredRecord.expires_at <= now)
