from datetime import datetime, timedelta, timezone

from sqlalchemy import BigInteger, Column, MetaData, String, Table, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.schemas.history import AppHistory, ContainerHistory, HistoryFilters

APPLICATION_HISTORY_TYPE = "application"
CONTAINER_HISTORY_TYPE = "container"

metadata = MetaData()

history_table = Table(
    "history",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("created_at_nano", BigInteger, nullable=False),
    Column("deleted_at_nano", BigInteger, nullable=True),
    Column("history_type", String(32), nullable=False),
    Column("total_number", BigInteger, nullable=False),
    Column("timestamp", BigInteger, nullable=False),
)


class RepositoryError(Exception):
    """Raised when a history query or insert fails."""


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _unix_nano(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(microseconds=1) * 1_000


def _history_query(history_type: str, filters: HistoryFilters):
    query = (
        select(history_table)
        .where(history_table.c.history_type == history_type)
        .order_by(history_table.c.timestamp.desc())
    )
    if filters.timestamp_start is not None:
        query = query.where(history_table.c.timestamp >= _unix_nano(filters.timestamp_start))
    if filters.timestamp_end is not None:
        query = query.where(history_table.c.timestamp <= _unix_nano(filters.timestamp_end))
    if filters.limit is not None:
        query = query.limit(filters.limit)
    if filters.offset is not None:
        query = query.offset(filters.offset)
    return query


class HistoryRepository:
    """Stores point-in-time counts of applications and containers.

    Shares the process-wide engine with the health checks; never disposes it.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    async def insert_app_history(self, app_history: AppHistory):
        await self._insert(
            APPLICATION_HISTORY_TYPE, app_history, app_history.total_applications, "application history"
        )

    async def insert_container_history(self, container_history: ContainerHistory):
        await self._insert(
            CONTAINER_HISTORY_TYPE, container_history, container_history.total_containers, "container history"
        )

    async def get_applications_history(self, filters: HistoryFilters | None = None) -> list[AppHistory]:
        rows = await self._select(APPLICATION_HISTORY_TYPE, filters or HistoryFilters(), "applications history")
        return [
            AppHistory(
                id=row.id,
                created_at_nano=row.created_at_nano,
                deleted_at_nano=row.deleted_at_nano,
                total_applications=row.total_number,
                timestamp=row.timestamp,
            )
            for row in rows
        ]

    async def get_containers_history(self, filters: HistoryFilters | None = None) -> list[ContainerHistory]:
        rows = await self._select(CONTAINER_HISTORY_TYPE, filters or HistoryFilters(), "containers history")
        return [
            ContainerHistory(
                id=row.id,
                created_at_nano=row.created_at_nano,
                deleted_at_nano=row.deleted_at_nano,
                total_containers=row.total_number,
                timestamp=row.timestamp,
            )
            for row in rows
        ]

    async def _insert(self, history_type: str, record, total: int, what: str):
        statement = insert(history_table).values(
            id=record.id,
            created_at_nano=record.created_at_nano,
            deleted_at_nano=record.deleted_at_nano,
            history_type=history_type,
            total_number=total,
            timestamp=record.timestamp,
        )
        try:
            async with self._engine.begin() as conn:
                await conn.execute(statement)
        except SQLAlchemyError as e:
            raise RepositoryError(f"could not insert {what} into DB: {e}") from e

    async def _select(self, history_type: str, filters: HistoryFilters, what: str):
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(_history_query(history_type, filters))
                return result.all()
        except SQLAlchemyError as e:
            raise RepositoryError(f"could not get {what} from DB: {e}") from e
