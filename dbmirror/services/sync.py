import asyncio
import time
from typing import Optional
from loguru import logger
from dbmirror.connectors.base import SourceConnector
from dbmirror.connectors.factory import ConnectorFactory
from dbmirror.connectors.registry import TargetPoolRegistry
from dbmirror.errors import AggregateRunError, DatabaseConnectionError
from dbmirror.models.config import ConnectionPair, SyncConfig
from dbmirror.models.result import RunResult, RunSummary, SyncStatus
from dbmirror.services.batch_loader import BatchLoader
from dbmirror.services.metadata import SyncMetadataStore
from dbmirror.services.schema import SchemaIntrospector
from dbmirror.services.table_sync import TableSyncer


class DatabasePairOrchestrator:
    """同步一个源库到其对应的目标库，逐表顺序执行"""

    def __init__(self, config: SyncConfig, pair: ConnectionPair, registry: TargetPoolRegistry):
        self.config = config
        self.pair = pair
        self.registry = registry
        self.metadata = SyncMetadataStore(config.metadata_table)
        self.loader = BatchLoader(
            max_parameters=config.max_parameters,
            max_batch_size=config.max_batch_size,
            verify_data=config.verify_data,
        )

    async def _attach_source(self) -> SourceConnector:
        """连接源库，失败时按配置重试"""
        retry_count = 0
        while True:
            source = ConnectorFactory.get_connector(self.pair.source.type, self.pair.source)
            try:
                await source.connect()
                return source
            except Exception as e:
                retry_count += 1
                if retry_count >= self.config.retry_times:
                    if isinstance(e, DatabaseConnectionError):
                        raise
                    raise DatabaseConnectionError(str(e)) from e
                logger.warning(
                    f"{self.pair.name}: source connection failed ({str(e)}), "
                    f"retry {retry_count + 1}/{self.config.retry_times} in {self.config.retry_interval}s"
                )
                await asyncio.sleep(self.config.retry_interval)

    async def run(self) -> RunSummary:
        name = self.pair.name
        logger.info(f"Starting sync for {name} -> {self.pair.target_database}")

        source = await self._attach_source()
        try:
            target = await self.registry.get(self.pair.target_database)
            await self.metadata.ensure(target)

            tables = await SchemaIntrospector(source).list_user_tables()
            logger.info(f"{name}: found {len(tables)} tables")

            syncer = TableSyncer(source, target, self.loader, self.config.blob_timeout)
            summary = RunSummary(pair_name=name)
            for table_name in tables:
                result = await syncer.sync_table(table_name)
                summary.add(result)
                await self.metadata.record(target, result)

                if result.status is SyncStatus.OK:
                    logger.success(f"  {table_name}: {result.row_count} rows ({result.duration_ms}ms)")
                elif result.status is SyncStatus.SKIPPED:
                    logger.info(f"  {table_name}: skipped, no columns to sync ({result.duration_ms}ms)")
                else:
                    logger.error(f"  {table_name}: ERROR - {result.error_message} ({result.duration_ms}ms)")

            logger.info(
                f"{name}: done - {summary.tables_ok}/{summary.tables_total} OK, "
                f"{summary.tables_skipped} skipped, {summary.tables_error} errors, "
                f"{summary.total_rows} total rows"
            )
            return summary
        finally:
            try:
                await source.disconnect()
            except Exception as e:
                logger.warning(f"{name}: failed to detach source: {str(e)}")


class SyncRunCoordinator:
    """
    同步所有配置的库对，汇总结果

    目标连接池注册表由协调器持有，跨多次运行复用，进程退出前调用close()
    """

    def __init__(self, config: SyncConfig, registry: Optional[TargetPoolRegistry] = None):
        self.config = config
        self.registry = registry or TargetPoolRegistry(config.target)

    async def run(self) -> RunResult:
        """
        执行一次完整同步

        Returns:
            RunResult

        Raises:
            AggregateRunError: 任意表或库对失败，context中包含全部错误
        """
        start_time = time.time()
        result = RunResult()

        for pair in self.config.pairs:
            if not pair.source.host:
                logger.warning(f"Skipping {pair.name}: source host not set")
                continue

            try:
                summary = await DatabasePairOrchestrator(self.config, pair, self.registry).run()
            except Exception as e:
                logger.error(f"{pair.name}: FATAL - {str(e)}")
                result.errors.append(f"{pair.name}: {str(e)}")
                continue

            result.summaries.append(summary)
            result.errors.extend(f"{pair.name}.{error}" for error in summary.errors)

        logger.info(f"{result.message} in {time.time() - start_time:.2f}s")

        if result.errors:
            raise AggregateRunError(
                f"Sync completed with {len(result.errors)} error(s): {'; '.join(result.errors)}",
                context=result.context(),
            )
        return result

    async def close(self) -> None:
        await self.registry.close_all()
