"""Keyed record stores used by the OTP manager and the chat link flow.

Records are pydantic models. ``InMemoryRepository`` keeps copies in a dict and
is what the tests run against; ``SqlAlchemyRepository`` maps the same records
onto an ORM table inside an ``AsyncSession``.
"""

from __future__ import annotations

from typing import Any, Generic, Optional, Protocol, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

RecordT = TypeVar("RecordT", bound=BaseModel)


class Repository(Protocol[RecordT]):
    async def get(self, key: Any) -> Optional[RecordT]: ...

    async def set(self, key: Any, record: RecordT) -> None: ...

    async def delete(self, key: Any) -> None: ...

    async def find(self, **criteria: Any) -> list[RecordT]: ...


class InMemoryRepository(Generic[RecordT]):
    def __init__(self) -> None:
        self._records: dict[Any, RecordT] = {}

    async def get(self, key: Any) -> Optional[RecordT]:
        record = self._records.get(key)
        return record.model_copy(deep=True) if record is not None else None

    async def set(self, key: Any, record: RecordT) -> None:
        self._records[key] = record.model_copy(deep=True)

    async def delete(self, key: Any) -> None:
        self._records.pop(key, None)

    async def find(self, **criteria: Any) -> list[RecordT]:
        return [
            record.model_copy(deep=True)
            for record in self._records.values()
            if all(getattr(record, field) == value for field, value in criteria.items())
        ]

    def __len__(self) -> int:
        return len(self._records)


class SqlAlchemyRepository(Generic[RecordT]):
    """Stores records as rows of ``model``, one row per value of ``key_column``."""

    def __init__(
        self,
        session: AsyncSession,
        model: type[Base],
        schema: type[RecordT],
        key_column: str,
    ) -> None:
        self.session = session
        self.model = model
        self.schema = schema
        self.key_column = key_column

    def _column(self, name: str):
        return getattr(self.model, name)

    async def _row(self, key: Any) -> Optional[Base]:
        result = await self.session.execute(
            select(self.model).where(self._column(self.key_column) == key)
        )
        return result.scalars().first()

    async def get(self, key: Any) -> Optional[RecordT]:
        row = await self._row(key)
        return self.schema.model_validate(row) if row is not None else None

    async def set(self, key: Any, record: RecordT) -> None:
        values = record.model_dump()
        values[self.key_column] = key
        row = await self._row(key)
        if row is None:
            self.session.add(self.model(**values))
        else:
            for field, value in values.items():
                setattr(row, field, value)
        await self.session.commit()

    async def delete(self, key: Any) -> None:
        await self.session.execute(
            delete(self.model).where(self._column(self.key_column) == key)
        )
        await self.session.commit()

    async def find(self, **criteria: Any) -> list[RecordT]:
        stmt = select(self.model)
        for field, value in criteria.items():
            stmt = stmt.where(self._column(field) == value)
        result = await self.session.execute(stmt)
        return [self.schema.model_validate(row) for row in result.scalars().all()]
