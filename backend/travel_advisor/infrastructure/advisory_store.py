"""SQL Advisory Store — the AdvisoryStore contract over async SQLAlchemy.

Invariants:
    - One session per operation: concurrent sync pipelines never share a session
    - save() is an upsert by city_key; an existing created_at survives unless
      preserve_created_at=False (legacy reset-on-every-save behaviour)
    - find_all() pages by primary key and yields outside the session, so a slow
      consumer never holds a connection and memory stays bounded by page_size
    - All database failures surface as StoreError (mapped by DatabaseSessionManager)

Design Decisions:
    - Read-then-write upsert over dialect-specific ON CONFLICT: works on PostgreSQL and
      the SQLite test database alike. Two concurrent first-time saves of one key make the
      second commit fail on the primary key instead of silently duplicating.
"""

import logging
from collections.abc import AsyncIterator, Iterable

from sqlalchemy import delete, select

from travel_advisor.core.repository_protocols import AdvisoryPredicate
from travel_advisor.core.snapshots import TravelAdvisory
from travel_advisor.infrastructure.database import DatabaseSessionManager
from travel_advisor.models.advisory import AdvisoryRecord

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 500


class SqlAdvisoryStore:
    """Key-value document store for TravelAdvisory, keyed by normalized city."""

    def __init__(
        self,
        db: DatabaseSessionManager,
        *,
        preserve_created_at: bool = True,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self._db = db
        self._preserve_created_at = preserve_created_at
        self._page_size = page_size

    async def exists_by_id(self, key: str) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                select(AdvisoryRecord.city_key).where(AdvisoryRecord.city_key == key),
            )
            return result.scalar_one_or_none() is not None

    async def find_by_id(self, key: str) -> TravelAdvisory | None:
        async with self._db.session() as session:
            record = await session.get(AdvisoryRecord, key)
            return record.to_domain() if record else None

    async def find_all(self) -> AsyncIterator[TravelAdvisory]:
        """Stream every advisory ordered by key, one page per session."""
        last_key: str | None = None
        while True:
            async with self._db.session() as session:
                query = (
                    select(AdvisoryRecord)
                    .order_by(AdvisoryRecord.city_key)
                    .limit(self._page_size)
                )
                if last_key is not None:
                    query = query.where(AdvisoryRecord.city_key > last_key)
                result = await session.execute(query)
                page = [record.to_domain() for record in result.scalars().all()]

            for advisory in page:
                yield advisory
            if len(page) < self._page_size:
                return
            last_key = page[-1].key

    async def find_all_filtered(
        self, predicate: AdvisoryPredicate,
    ) -> AsyncIterator[TravelAdvisory]:
        async for advisory in self.find_all():
            if predicate(advisory):
                yield advisory

    async def save(self, advisory: TravelAdvisory) -> TravelAdvisory:
        async with self._db.session() as session:
            record = await session.get(AdvisoryRecord, advisory.key)
            if record is None:
                record = AdvisoryRecord.from_domain(advisory)
                session.add(record)
            else:
                record.apply(advisory)
                if not self._preserve_created_at:
                    record.created_at = advisory.created_at
            await session.commit()
            logger.debug("Saved advisory", extra={"city": advisory.key})
            return record.to_domain()

    async def delete_by_id(self, key: str) -> None:
        async with self._db.session() as session:
            await session.execute(
                delete(AdvisoryRecord).where(AdvisoryRecord.city_key == key),
            )
            await session.commit()

    async def delete_by_keys(self, keys: Iterable[str]) -> int:
        """Delete every listed key; returns how many rows went away."""
        key_list = list(dict.fromkeys(keys))
        if not key_list:
            return 0
        async with self._db.session() as session:
            result = await session.execute(
                delete(AdvisoryRecord).where(AdvisoryRecord.city_key.in_(key_list)),
            )
            await session.commit()
            return result.rowcount or 0
