from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Dict, List, Optional, Sequence
from dbmirror.models.config import DatabaseConfig


def quote_identifier(name: str) -> str:
    """用双引号包裹标识符，内部双引号加倍转义"""
    return '"' + str(name).replace('"', '""') + '"'


class BaseConnector(ABC):
    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._connection = None

    @abstractmethod
    async def connect(self) -> None:
        """建立数据库连接"""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """关闭数据库连接"""
        pass


class SourceConnector(BaseConnector):
    """只读的源数据库连接器"""

    @abstractmethod
    async def list_tables(self) -> List[str]:
        """列出用户表（不含系统表和视图）"""
        pass

    @abstractmethod
    async def relation_exists(self, table_name: str) -> bool:
        pass

    @abstractmethod
    async def get_table_schema(self, table_name: str) -> List[Dict[str, Any]]:
        """
        获取表的列定义，按字段位置排序

        Returns:
            每列一个字典: name, type, length, precision, scale, sub_type
        """
        pass

    @abstractmethod
    def select_rows(
        self,
        table_name: str,
        columns: Sequence[str],
        deferred_columns: Sequence[str] = (),
    ) -> AsyncContextManager[List[list]]:
        """
        读取表的全部行，列顺序与columns一致

        deferred_columns中的列以延迟句柄返回，句柄只在上下文内有效
        """
        pass

    async def cancel_operation(self) -> None:
        """中断连接上正在执行的操作（如卡住的BLOB读取）"""
        pass


class TargetConnector(BaseConnector):
    """可写的目标数据库连接器"""

    @abstractmethod
    async def execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> int:
        """
        在独立事务中执行SQL语句

        Returns:
            受影响的行数
        """
        pass

    @abstractmethod
    async def execute_query(self, query: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """执行查询并返回字典列表"""
        pass

    @abstractmethod
    async def truncate_table(self, table_name: str) -> None:
        pass

    @abstractmethod
    async def get_row_count(self, table_name: str) -> int:
        """
        获取表的总行数

        Args:
            table_name: 表名

        Returns:
            表中的记录数
        """
        pass

    def quote_identifier(self, name: str) -> str:
        """引用标识符；语句经SQLAlchemy text()执行，冒号需转义以免被解析为绑定参数"""
        return quote_identifier(name).replace(":", "\\:")
