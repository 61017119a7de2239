from typing import Any, Dict, List
from dbmirror.connectors.base import SourceConnector
from dbmirror.errors import SchemaError
from dbmirror.models.result import ColumnDefinition
from dbmirror.services.type_map import map_firebird_type

class SchemaIntrospector:
    """通过源库系统目录枚举用户表和列定义"""

    def __init__(self, connector: SourceConnector):
        self.connector = connector

    async def list_user_tables(self) -> List[str]:
        """
        列出用户表，去重并按名称排序

        Returns:
            表名列表，顺序稳定
        """
        tables = await self.connector.list_tables()
        return sorted({name.strip() for name in tables if name and name.strip()})

    async def get_columns(self, table_name: str) -> List[Dict[str, Any]]:
        """
        获取原始列描述，按字段位置排序

        Raises:
            SchemaError: 表在列出之后被删除，或目录查询失败
        """
        try:
            if not await self.connector.relation_exists(table_name):
                raise SchemaError(f"table {table_name} no longer exists")
            return await self.connector.get_table_schema(table_name)
        except SchemaError:
            raise
        except Exception as e:
            raise SchemaError(f"cannot introspect table {table_name}: {e}") from e

    @staticmethod
    def map_columns(raw_columns: List[Dict[str, Any]]) -> List[ColumnDefinition]:
        columns = []
        for raw in raw_columns:
            columns.append(ColumnDefinition(
                name=raw["name"],
                source_type_code=raw.get("type"),
                source_length=raw.get("length"),
                source_precision=raw.get("precision"),
                source_scale=raw.get("scale"),
                source_sub_type=raw.get("sub_type"),
                target_type=map_firebird_type(
                    raw.get("type"),
                    raw.get("length"),
                    raw.get("precision") or 0,
                    raw.get("scale") or 0,
                    raw.get("sub_type"),
                ),
            ))
        return columns
