from datetime import datetime
from typing import Any, Dict, List, Optional
from dbmirror.connectors.base import TargetConnector
from dbmirror.models.result import SyncStatus, TableSyncResult

class SyncMetadataStore:
    """目标库中的同步状态表，每个源表一行，记录最近一次同步结果"""

    def __init__(self, table_name: str = "_sync_meta"):
        self.table_name = table_name

    async def ensure(self, target: TargetConnector) -> None:
        await target.execute(f"""
            CREATE TABLE IF NOT EXISTS {target.quote_identifier(self.table_name)} (
                table_name VARCHAR(255) PRIMARY KEY,
                last_sync_at TIMESTAMP NOT NULL,
                row_count INTEGER NOT NULL DEFAULT 0,
                status VARCHAR(20) NOT NULL DEFAULT 'ok',
                error_message TEXT
            )
        """)

    async def record(self, target: TargetConnector, result: TableSyncResult,
                     synced_at: Optional[datetime] = None) -> None:
        """写入或更新一张表的同步记录，成功时error_message为NULL"""
        status = SyncStatus(result.status)
        await target.execute(
            f"""
            INSERT INTO {target.quote_identifier(self.table_name)}
                (table_name, last_sync_at, row_count, status, error_message)
            VALUES (:table_name, :last_sync_at, :row_count, :status, :error_message)
            ON CONFLICT (table_name)
            DO UPDATE SET last_sync_at = EXCLUDED.last_sync_at,
                          row_count = EXCLUDED.row_count,
                          status = EXCLUDED.status,
                          error_message = EXCLUDED.error_message
            """,
            {
                "table_name": result.table_name,
                "last_sync_at": synced_at or datetime.now(),
                "row_count": result.row_count,
                "status": status.value,
                "error_message": result.error_message if status is SyncStatus.ERROR else None,
            },
        )

    async def fetch_all(self, target: TargetConnector) -> List[Dict[str, Any]]:
        return await target.execute_query(
            f"SELECT table_name, last_sync_at, row_count, status, error_message "
            f"FROM {target.quote_identifier(self.table_name)} ORDER BY table_name"
        )
