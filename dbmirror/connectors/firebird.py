import asyncio
from contextlib import asynccontextmanager
from typing import List, Dict, Any, Sequence
from firebird.driver import connect as fb_connect, Error as FirebirdError
from dbmirror.connectors.base import SourceConnector, quote_identifier
from dbmirror.errors import DatabaseConnectionError
from dbmirror.models.config import DatabaseConfig
from loguru import logger

LIST_TABLES_SQL = """
SELECT TRIM(RDB$RELATION_NAME) AS TABLE_NAME
FROM RDB$RELATIONS
WHERE COALESCE(RDB$SYSTEM_FLAG, 0) = 0
  AND RDB$VIEW_BLR IS NULL
ORDER BY RDB$RELATION_NAME
"""

RELATION_EXISTS_SQL = """
SELECT COUNT(*)
FROM RDB$RELATIONS
WHERE RDB$RELATION_NAME = ?
"""

TABLE_SCHEMA_SQL = """
SELECT
    TRIM(RF.RDB$FIELD_NAME) AS FIELD_NAME,
    F.RDB$FIELD_TYPE AS FIELD_TYPE,
    F.RDB$FIELD_LENGTH AS FIELD_LENGTH,
    F.RDB$FIELD_PRECISION AS FIELD_PRECISION,
    F.RDB$FIELD_SCALE AS FIELD_SCALE,
    F.RDB$FIELD_SUB_TYPE AS FIELD_SUB_TYPE
FROM RDB$RELATION_FIELDS RF
JOIN RDB$FIELDS F ON RF.RDB$FIELD_SOURCE = F.RDB$FIELD_NAME
WHERE RF.RDB$RELATION_NAME = ?
ORDER BY RF.RDB$FIELD_POSITION
"""

class FirebirdConnector(SourceConnector):
    def __init__(self, config: DatabaseConfig):
        super().__init__(config)

    @property
    def dsn(self) -> str:
        if self.config.port:
            return f"{self.config.host}/{self.config.port}:{self.config.database}"
        return f"{self.config.host}:{self.config.database}"

    async def connect(self) -> None:
        try:
            self._connection = await asyncio.to_thread(
                fb_connect,
                self.dsn,
                user=self.config.username,
                password=self.config.password,
                charset=self.config.charset or "UTF8",
            )
            logger.info(f"Successfully attached to Firebird database: {self.config.host}:{self.config.database}")
        except FirebirdError as e:
            logger.error(f"Failed to attach to Firebird database: {str(e)}")
            raise DatabaseConnectionError(f"cannot attach to {self.dsn}: {e}") from e

    async def disconnect(self) -> None:
        if self._connection:
            connection, self._connection = self._connection, None
            await asyncio.to_thread(self._detach, connection)
            logger.info("Detached from Firebird database")

    @staticmethod
    def _detach(connection) -> None:
        try:
            if connection.main_transaction.is_active():
                connection.rollback()
        finally:
            connection.close()

    def _fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[tuple]:
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, params)
            return cursor.fetchall()
        finally:
            cursor.close()

    async def list_tables(self) -> List[str]:
        rows = await asyncio.to_thread(self._fetch_all, LIST_TABLES_SQL)
        return [row[0] for row in rows]

    async def relation_exists(self, table_name: str) -> bool:
        rows = await asyncio.to_thread(self._fetch_all, RELATION_EXISTS_SQL, (table_name,))
        return rows[0][0] > 0

    async def get_table_schema(self, table_name: str) -> List[Dict[str, Any]]:
        rows = await asyncio.to_thread(self._fetch_all, TABLE_SCHEMA_SQL, (table_name,))
        return [
            {
                "name": row[0],
                "type": row[1],
                "length": row[2],
                "precision": row[3] or 0,
                "scale": row[4] or 0,
                "sub_type": row[5],
            }
            for row in rows
        ]

    def _open_cursor(self, sql: str, deferred_columns: Sequence[str]):
        cursor = self._connection.cursor()
        # 文本BLOB以BlobReader返回，在游标关闭前按需读取
        cursor.stream_blobs.extend(deferred_columns)
        try:
            cursor.execute(sql)
            rows = [list(row) for row in cursor.fetchall()]
        except Exception:
            cursor.close()
            raise
        return cursor, rows

    @asynccontextmanager
    async def select_rows(self, table_name: str, columns: Sequence[str], deferred_columns: Sequence[str] = ()):
        column_list = ", ".join(quote_identifier(c) for c in columns)
        sql = f"SELECT {column_list} FROM {quote_identifier(table_name)}"
        cursor, rows = await asyncio.to_thread(self._open_cursor, sql, list(deferred_columns))
        try:
            yield rows
        finally:
            await asyncio.to_thread(self._close_cursor, cursor)

    def _close_cursor(self, cursor) -> None:
        cursor.close()
        # 结束只读事务，下一张表使用新的快照
        if self._connection.main_transaction.is_active():
            self._connection.commit()

    async def cancel_operation(self) -> None:
        if self._connection:
            await asyncio.to_thread(self._connection.cancel_operation)
