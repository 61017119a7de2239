import time
from enum import Enum
from loguru import logger
from dbmirror.connectors.base import SourceConnector, TargetConnector
from dbmirror.models.result import SyncStatus, TableSyncResult
from dbmirror.services.batch_loader import BatchLoader
from dbmirror.services.blob import BlobResolver
from dbmirror.services.schema import SchemaIntrospector
from dbmirror.services.type_map import BINARY_TYPE, BLOB, TEXT_TYPE


class SyncStage(str, Enum):
    INTROSPECTING = "introspecting"
    MAPPING = "mapping"
    TABLE_READY = "table_ready"
    EXTRACTING = "extracting"
    RESOLVING_BLOBS = "resolving_blobs"
    LOADING = "loading"


class TableSyncer:
    """单表全量同步：获取列定义 -> 类型映射 -> 建表 -> 读取 -> 解析BLOB -> 重载"""

    def __init__(self,
                 source: SourceConnector,
                 target: TargetConnector,
                 loader: BatchLoader,
                 blob_timeout: float = 5.0):
        self.source = source
        self.target = target
        self.loader = loader
        self.blob_timeout = blob_timeout
        self.introspector = SchemaIntrospector(source)

    async def sync_table(self, table_name: str) -> TableSyncResult:
        """
        同步单个表，所有异常都转换为error结果，不向上抛出

        Returns:
            TableSyncResult
        """
        start_time = time.monotonic()
        stage = SyncStage.INTROSPECTING

        def finish(status: SyncStatus, row_count: int = 0, error: str = None) -> TableSyncResult:
            return TableSyncResult(
                table_name=table_name,
                row_count=row_count,
                status=status,
                duration_ms=int((time.monotonic() - start_time) * 1000),
                error_message=error,
            )

        try:
            raw_columns = await self.introspector.get_columns(table_name)
            if not raw_columns:
                return finish(SyncStatus.SKIPPED)

            stage = SyncStage.MAPPING
            columns = self.introspector.map_columns(raw_columns)
            # 二进制BLOB不参与同步
            sync_columns = [c for c in columns if c.target_type != BINARY_TYPE]
            if not sync_columns:
                return finish(SyncStatus.SKIPPED)

            stage = SyncStage.TABLE_READY
            await self.loader.ensure_target_table(self.target, table_name, sync_columns)

            stage = SyncStage.EXTRACTING
            names = [c.name for c in sync_columns]
            blob_positions = [i for i, c in enumerate(sync_columns) if c.source_type_code == BLOB]
            # DECFLOAT等无对应类型的列以文本形式写入
            text_positions = [i for i, c in enumerate(sync_columns)
                              if c.target_type == TEXT_TYPE and c.source_type_code != BLOB]
            deferred = [names[i] for i in blob_positions]

            async with self.source.select_rows(table_name, names, deferred) as rows:
                if blob_positions and rows:
                    stage = SyncStage.RESOLVING_BLOBS
                    resolver = BlobResolver(self.blob_timeout, cancel=self.source.cancel_operation)
                    try:
                        for row in rows:
                            await resolver.resolve_row(row, blob_positions)
                    finally:
                        # 超时的读取必须在游标关闭前结束
                        await resolver.drain()

            for row in rows:
                for position in text_positions:
                    if row[position] is not None:
                        row[position] = str(row[position])

            stage = SyncStage.LOADING
            inserted = await self.loader.reload(self.target, table_name, sync_columns, rows)
            return finish(SyncStatus.OK, inserted)

        except Exception as e:
            logger.debug(f"{table_name}: failed while {stage.value}")
            return finish(SyncStatus.ERROR, error=str(e) or type(e).__name__)
