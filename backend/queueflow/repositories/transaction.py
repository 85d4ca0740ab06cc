"""Transaction Client - Atomic units of work over the store

Every mutation goes through ``TransactionClient.transaction()``: the body
either commits as a whole or is rolled back as a whole.
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Type, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from .database import Database
from ..domain.errors import StoreError
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Transaction:
    """Query helpers bound to one open session"""

    def __init__(self, session: AsyncSession, backend_name: str):
        self.session = session
        self.backend_name = backend_name

    async def get(self, model: Type[T], ident: Any, for_update: bool = False) -> Optional[T]:
        """Load one record by primary key"""
        return await self.session.get(model, ident, with_for_update=for_update or None)

    async def scalar(self, statement: Executable) -> Any:
        """First column of the first row, or None"""
        result = await self.session.execute(statement)
        return result.scalar()

    async def first(self, statement: Executable) -> Any:
        """First mapped object of a select, or None"""
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def all(self, statement: Executable) -> List[Any]:
        """All mapped objects of a select"""
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def rows(self, statement: Executable) -> List[Any]:
        """All rows of a multi-column select"""
        result = await self.session.execute(statement)
        return list(result.all())

    async def execute(self, statement: Executable) -> int:
        """Run a bulk update/delete and return the affected row count"""
        result = await self.session.execute(statement)
        return result.rowcount or 0

    async def add(self, record: T) -> T:
        """Insert a record and flush so generated keys are populated"""
        self.session.add(record)
        await self.session.flush()
        return record

    async def delete(self, record: Any) -> None:
        await self.session.delete(record)
        await self.session.flush()

    async def flush(self) -> None:
        await self.session.flush()

    async def reset_sequence(self, table_name: str) -> None:
        """Restart the autoincrement counter of a table at 1"""
        if self.backend_name == "sqlite":
            await self.session.execute(
                text("DELETE FROM sqlite_sequence WHERE name = :name"),
                {"name": table_name}
            )
        elif self.backend_name == "postgresql":
            await self.session.execute(text(f"ALTER SEQUENCE {table_name}_id_seq RESTART WITH 1"))
        else:
            logger.warning(f"Sequence reset not supported for backend {self.backend_name}")


class TransactionClient:
    """Opens transactions on the application database"""

    def __init__(self, database: Database):
        self.database = database

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """
        Open a transaction.

        Commits when the block exits normally; rolls back and re-raises on
        any exception. Driver errors surface as StoreError.
        """
        async with self.database.sessionmaker() as session:
            tx = Transaction(session, self.database.backend_name)
            try:
                yield tx
                await session.commit()
            except BaseException as e:
                try:
                    await session.rollback()
                except Exception as rollback_error:
                    logger.error(f"Transaction rollback failed: {rollback_error}")
                if isinstance(e, SQLAlchemyError):
                    logger.error(f"Store operation failed: {e}", exc_info=True)
                    raise StoreError("Database operation failed", details={"cause": str(e)}) from e
                raise
