import time
from typing import Any, Dict, List, Sequence, Tuple
from loguru import logger
from dbmirror.connectors.base import TargetConnector
from dbmirror.errors import BatchLoadError
from dbmirror.models.result import ColumnDefinition

MAX_BATCH_SIZE = 1000
# PostgreSQL 单条语句最多 65535 个绑定参数，保留余量
MAX_PARAMETERS = 50000

def compute_batch_size(column_count: int,
                       max_parameters: int = MAX_PARAMETERS,
                       max_batch_size: int = MAX_BATCH_SIZE) -> int:
    """
    根据列数计算每批行数，保证 行数 * 列数 <= max_parameters 且 行数 <= max_batch_size

    Raises:
        ValueError: 列数或上限不是正数
        BatchLoadError: 单行的参数数已超过上限
    """
    if column_count <= 0:
        raise ValueError(f"column_count must be positive, got {column_count}")
    if max_parameters <= 0 or max_batch_size <= 0:
        raise ValueError("max_parameters and max_batch_size must be positive")

    batch_size = min(max_batch_size, max_parameters // column_count)
    if batch_size == 0:
        raise BatchLoadError(
            f"{column_count} columns exceed the limit of {max_parameters} parameters per statement"
        )
    return batch_size

def build_create_table(target: TargetConnector, table_name: str, columns: Sequence[ColumnDefinition]) -> str:
    col_defs = ", ".join(f"{target.quote_identifier(c.name)} {c.target_type}" for c in columns)
    return f"CREATE TABLE IF NOT EXISTS {target.quote_identifier(table_name)} ({col_defs})"

def build_insert(target: TargetConnector,
                 table_name: str,
                 columns: Sequence[ColumnDefinition],
                 batch: Sequence[Sequence[Any]]) -> Tuple[str, Dict[str, Any]]:
    """
    构建多行参数化INSERT，每行一组占位符，列顺序与columns一致

    Returns:
        (SQL, 参数字典)
    """
    column_names = ", ".join(target.quote_identifier(c.name) for c in columns)
    params: Dict[str, Any] = {}
    groups = []
    for row_idx, row in enumerate(batch):
        placeholders = []
        for col_idx in range(len(columns)):
            key = f"r{row_idx}_c{col_idx}"
            params[key] = row[col_idx] if col_idx < len(row) else None
            placeholders.append(f":{key}")
        groups.append(f"({', '.join(placeholders)})")
    sql = f"INSERT INTO {target.quote_identifier(table_name)} ({column_names}) VALUES {', '.join(groups)}"
    return sql, params

class BatchLoader:
    """全量重载：清空目标表后按批插入"""

    def __init__(self,
                 max_parameters: int = MAX_PARAMETERS,
                 max_batch_size: int = MAX_BATCH_SIZE,
                 verify_data: bool = True):
        self.max_parameters = max_parameters
        self.max_batch_size = max_batch_size
        self.verify_data = verify_data

    async def ensure_target_table(self, target: TargetConnector, table_name: str,
                                  columns: Sequence[ColumnDefinition]) -> None:
        """按列定义创建目标表（已存在时不做任何修改）"""
        await target.execute(build_create_table(target, table_name, columns))

    async def reload(self, target: TargetConnector, table_name: str,
                     columns: Sequence[ColumnDefinition], rows: List[Sequence[Any]]) -> int:
        """
        清空目标表并分批写入全部行

        Returns:
            写入的总行数

        Raises:
            BatchLoadError: 任意批次写入失败或校验行数不一致
        """
        await target.truncate_table(table_name)

        batch_size = compute_batch_size(len(columns), self.max_parameters, self.max_batch_size)
        total_batches = (len(rows) + batch_size - 1) // batch_size
        inserted = 0

        for batch_num, start in enumerate(range(0, len(rows), batch_size), 1):
            batch = rows[start:start + batch_size]
            sql, params = build_insert(target, table_name, columns, batch)
            batch_start_time = time.time()
            try:
                await target.execute(sql, params)
            except Exception as e:
                raise BatchLoadError(
                    f"batch {batch_num}/{total_batches} of {table_name} failed: {str(e)}"
                ) from e
            inserted += len(batch)
            logger.debug(
                f"{table_name}: batch {batch_num}/{total_batches} done, "
                f"{len(batch)} rows in {time.time() - batch_start_time:.2f}s"
            )

        if self.verify_data:
            target_count = await target.get_row_count(table_name)
            if target_count != inserted:
                raise BatchLoadError(
                    f"row count mismatch for {table_name}: inserted {inserted}, target has {target_count}"
                )

        return inserted
