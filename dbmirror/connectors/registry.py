from typing import Dict
from dbmirror.connectors.base import TargetConnector
from dbmirror.connectors.factory import ConnectorFactory
from dbmirror.models.config import DatabaseConfig
from loguru import logger

class TargetPoolRegistry:
    """按目标数据库名缓存已连接的目标连接器（每个连接器持有一个连接池）"""

    def __init__(self, target_config: DatabaseConfig):
        self.target_config = target_config
        self._pools: Dict[str, TargetConnector] = {}

    def __contains__(self, database: str) -> bool:
        return database in self._pools

    def __len__(self) -> int:
        return len(self._pools)

    async def get(self, database: str) -> TargetConnector:
        """获取或创建指定数据库的连接器，跨多次运行复用"""
        connector = self._pools.get(database)
        if connector is not None:
            return connector

        connector = ConnectorFactory.get_connector(
            self.target_config.type,
            self.target_config.with_database(database)
        )
        await connector.connect()
        self._pools[database] = connector
        return connector

    async def close_all(self) -> None:
        """关闭所有缓存的连接池，进程退出前调用"""
        while self._pools:
            database, connector = self._pools.popitem()
            try:
                await connector.disconnect()
            except Exception as e:
                logger.error(f"Failed to close pool for {database}: {str(e)}")
