import asyncio
from typing import List, Dict, Any, Optional
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, URL
from sqlalchemy.exc import SQLAlchemyError
from dbmirror.connectors.base import TargetConnector
from dbmirror.errors import DatabaseConnectionError
from dbmirror.models.config import DatabaseConfig
from loguru import logger

class PostgreSQLConnector(TargetConnector):
    def __init__(self, config: DatabaseConfig):
        super().__init__(config)
        self._engine: Engine = None

    def _create_engine(self) -> Engine:
        url = URL.create(
            "postgresql+psycopg2",
            username=self.config.username,
            password=self.config.password,
            host=self.config.host,
            port=self.config.port,
            database=self.config.database,
        )
        return create_engine(url, pool_pre_ping=True)

    async def connect(self) -> None:
        try:
            self._engine = self._create_engine()

            # 测试连接
            await asyncio.to_thread(self._ping)
            logger.info(f"Successfully connected to target database: {self.config.database}")
        except SQLAlchemyError as e:
            logger.error(f"Failed to connect to target database {self.config.database}: {str(e)}")
            if self._engine:
                self._engine.dispose()
                self._engine = None
            raise DatabaseConnectionError(
                f"cannot connect to target database {self.config.database}: {e}"
            ) from e

    def _ping(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    async def disconnect(self) -> None:
        if self._engine:
            self._engine.dispose()
            self._engine = None
            logger.info(f"Disconnected from target database: {self.config.database}")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise DatabaseConnectionError(f"target database {self.config.database} is not connected")
        return self._engine

    def _execute(self, sql: str, params: Optional[Dict[str, Any]]) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(text(sql), params or {})
            return result.rowcount

    def _query(self, sql: str, params: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        with self.engine.connect() as conn:
            result = conn.execute(text(sql), params or {})
            return [dict(row) for row in result.mappings()]

    async def execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> int:
        try:
            rowcount = await asyncio.to_thread(self._execute, sql, params)
            logger.trace(f"Successfully executed SQL: {sql[:200]}")
            return rowcount
        except SQLAlchemyError as e:
            logger.debug(f"Failed to execute SQL: {sql[:200]}, error: {str(e)}")
            raise

    async def execute_query(self, query: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._query, query, params)

    async def truncate_table(self, table_name: str) -> None:
        await self.execute(f"TRUNCATE TABLE {self.quote_identifier(table_name)}")

    async def get_row_count(self, table_name: str) -> int:
        rows = await self.execute_query(f"SELECT COUNT(*) AS count FROM {self.quote_identifier(table_name)}")
        count = rows[0]["count"]
        logger.debug(f"Table {table_name} has {count} rows")
        return count
